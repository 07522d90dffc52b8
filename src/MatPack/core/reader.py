"""Read raw maps from a texture set directory using the vendor suffix convention."""

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..config import MAP_SUFFIXES, MapType
from .errors import MissingColorMapError
from .io import load_image
from .records import MapImage, MapSet

logger = logging.getLogger("material_import.reader")

DEFAULT_FORMATS = (".png", ".jpg", ".jpeg", ".tga", ".bmp", ".tiff", ".tif")


def classify_map_file(filepath: str) -> Optional[MapType]:
    """Classify a source file by the text after its last underscore.

    Matching is exact and case-sensitive; ``Bricks090_2K_NormalGL.png``
    is a normal map, ``Bricks090_2K_normalgl.png`` is ignored.
    """
    suffix = Path(filepath).stem.split("_")[-1]
    return MAP_SUFFIXES.get(suffix)


def read_map(path: str, map_type: MapType, max_pixels: int = 0) -> MapImage:
    """Decode one source file; only the Color map is display-referred."""
    pixels = load_image(path, max_pixels=max_pixels)
    return MapImage(pixels=pixels, srgb=map_type is MapType.COLOR, source=path)


def read_maps(
    required_raw: Iterable[MapType],
    source_dir: str,
    supported_formats: Iterable[str] = DEFAULT_FORMATS,
    max_pixels: int = 0,
) -> MapSet:
    """Read the requested raw maps from ``source_dir`` (non-recursive).

    Files are visited in sorted name order; when two files carry the same
    suffix the later one wins. Raises ``MissingColorMapError`` when Color was
    requested but not found. Any other absent map stays pending.
    """
    required = frozenset(required_raw)
    derived = sorted(t.value for t in required if t.is_derived)
    if derived:
        raise ValueError(f"Packed maps cannot be read from disk: {', '.join(derived)}")

    formats = {ext.lower() for ext in supported_formats}
    found: Dict[MapType, MapImage] = {}
    try:
        for fname in sorted(os.listdir(source_dir)):
            fpath = os.path.join(source_dir, fname)
            if not os.path.isfile(fpath):
                continue
            if Path(fname).suffix.lower() not in formats:
                continue
            map_type = classify_map_file(fname)
            if map_type is None:
                logger.debug("Ignoring %s: unrecognized suffix", fname)
                continue
            if map_type not in required:
                logger.debug("Ignoring %s: %s map not requested", fname, map_type.value)
                continue

            previous = found.pop(map_type, None)
            if previous is not None:
                logger.warning(
                    "Multiple %s maps in %s; using %s over %s",
                    map_type.value, source_dir, fname,
                    os.path.basename(previous.source or ""),
                )
                previous.release()
            found[map_type] = read_map(fpath, map_type, max_pixels=max_pixels)
            logger.debug(
                "Read %s map %s (%dx%d)", map_type.value, fname, *found[map_type].size
            )

        if MapType.COLOR in required and MapType.COLOR not in found:
            raise MissingColorMapError(source_dir)
    except Exception:
        for img in found.values():
            img.release()
        raise

    for map_type in sorted(required - set(found), key=lambda t: t.value):
        logger.info(
            "No %s map in %s; a neutral default will be used where needed",
            map_type.value, source_dir,
        )
    return MapSet.placeholders(required).with_maps(found)
