"""Import texture sets as materials.

`MaterialImporter` runs resolve -> read -> create maps -> write -> assemble
for one texture set, and drives a batch of them in parallel.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml
from tqdm import tqdm

from .config import ImporterConfig, MapType
from .core import (
    ChannelPacker, MapImage, MapSet, assemble_material, discover_sources,
    get_map_path, get_material_dir, get_material_path, material_name_for,
    open_source, read_maps, resolve_map_types, save_image, split_map_types,
)
from .core.io import atomic_write_path
from .core.properties import PropertyKind

logger = logging.getLogger("material_import")


@dataclass
class ImportResult:
    """Outcome of importing one texture set."""

    name: str
    source: str
    output_dir: str = ""
    material_path: Optional[str] = None
    maps_written: Dict[str, str] = field(default_factory=dict)
    planned_reads: List[str] = field(default_factory=list)
    planned_syntheses: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MaterialImporter:
    """Import texture sets into material descriptions plus packed maps."""

    def __init__(self, config: ImporterConfig):
        """Parse the configured properties once; they are shared read-only."""
        self.config = config
        self.shader = config.resolved_shader()
        self.properties = config.build_properties()
        self.packer = ChannelPacker()
        self._failed_imports = 0
        self._lock = threading.Lock()

    @property
    def failed_imports(self) -> int:
        return self._failed_imports

    def _referenced_map_types(self) -> List[MapType]:
        """Map types bound by a property, in property order without repeats."""
        seen = []
        for prop in self.properties:
            if prop.kind is PropertyKind.MAP and prop.value not in seen:
                seen.append(prop.value)
        return seen

    def _map_types_to_write(self, resolved) -> List[MapType]:
        to_write = self._referenced_map_types()
        if self.config.write_dependency_maps:
            extra = sorted(
                (t for t in resolved if t not in to_write),
                key=lambda t: t.value,
            )
            to_write.extend(extra)
        return to_write

    def import_material(self, source: str, name: Optional[str] = None) -> ImportResult:
        """Import one texture set directory or zip file.

        Raises the underlying error on failure; `run` is the layer that
        records failures and carries on.
        """
        name = name or material_name_for(source)
        out_dir = get_material_dir(
            self.config.output_dir, name,
            category_dir=self.config.create_category_directory,
            material_dir=self.config.create_material_directory,
        )
        result = ImportResult(name=name, source=source, output_dir=out_dir)

        resolved = resolve_map_types(self.properties)
        raw, derived = split_map_types(resolved)
        if self.config.dry_run:
            result.planned_reads = sorted(t.value for t in raw)
            result.planned_syntheses = sorted(t.value for t in derived)
            logger.info(
                "[dry-run] %s: read %s; synthesize %s -> %s",
                name, result.planned_reads or "nothing",
                result.planned_syntheses or "nothing", out_dir,
            )
            return result

        map_set: Optional[MapSet] = None
        written: Optional[MapSet] = None
        with open_source(source) as source_dir:
            try:
                raw_set = read_maps(
                    raw, source_dir,
                    supported_formats=self.config.supported_formats,
                    max_pixels=self.config.max_image_pixels,
                )
                map_set = MapSet.placeholders(resolved).with_maps(raw_set.filled())
                map_set = self.packer.create_maps(map_set)
                logger.debug("%s: %r", name, map_set)

                os.makedirs(out_dir, exist_ok=True)
                persisted: Dict[MapType, MapImage] = {}
                for map_type in self._map_types_to_write(resolved):
                    image = map_set[map_type]
                    if image is None:
                        logger.info("%s: no %s map to write", name, map_type.value)
                        continue
                    out_path = get_map_path(out_dir, name, map_type)
                    save_image(image.pixels, out_path)
                    persisted[map_type] = MapImage(
                        pixels=image.pixels, srgb=image.srgb, source=out_path,
                    )
                    result.maps_written[map_type.value] = out_path
                written = MapSet.placeholders(resolved).with_maps(persisted)

                material = assemble_material(written, self.shader, self.properties, name=name)
                material_path = get_material_path(out_dir, name)
                _write_yaml(material.to_dict(relative_to=out_dir), material_path)
                result.material_path = material_path
            finally:
                if written is not None:
                    written.release()
                if map_set is not None:
                    map_set.release()

        logger.info(
            "Imported %s: %d map(s) -> %s",
            name, len(result.maps_written), out_dir,
        )
        return result

    def _import_safe(self, source: str) -> ImportResult:
        try:
            return self.import_material(source)
        except Exception as exc:
            name = material_name_for(source)
            logger.error("Import failed for %s: %s", source, exc, exc_info=True)
            with self._lock:
                self._failed_imports += 1
            return ImportResult(name=name, source=source, error=f"{type(exc).__name__}: {exc}")

    def run(self, input_path: Optional[str] = None) -> List[ImportResult]:
        """Import every source under ``input_path`` (default: config input_dir).

        Results come back in discovery order. Failed imports are recorded on
        their result and counted in `failed_imports`.
        """
        input_path = input_path or self.config.input_dir
        sources = discover_sources(input_path, self.config.supported_formats)
        if not sources:
            logger.warning("No material sources found in %s", input_path)
            return []

        self._failed_imports = 0
        results: List[Optional[ImportResult]] = [None] * len(sources)
        workers = min(self.config.max_workers, len(sources))
        desc = "Dry run" if self.config.dry_run else "Importing"

        if workers <= 1:
            for index, source in enumerate(tqdm(sources, desc=desc)):
                results[index] = self._import_safe(source)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self._import_safe, source): index
                    for index, source in enumerate(sources)
                }
                with tqdm(total=len(futures), desc=desc) as pbar:
                    for future in as_completed(futures):
                        results[futures[future]] = future.result()
                        pbar.update(1)

        logger.info(
            "Import complete: %d succeeded, %d failed",
            len(sources) - self._failed_imports, self._failed_imports,
        )
        return results


def _write_yaml(data: dict, path: str):
    with atomic_write_path(path) as tmp_path:
        with open(tmp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
