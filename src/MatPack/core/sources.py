"""Discover texture set sources and open them as plain directories."""

import logging
import os
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List

from .reader import DEFAULT_FORMATS, classify_map_file

logger = logging.getLogger("material_import.sources")


def is_zip_source(path: str) -> bool:
    return os.path.isfile(path) and Path(path).suffix.lower() == ".zip"


def is_texture_set_dir(path: str, supported_formats: Iterable[str] = DEFAULT_FORMATS) -> bool:
    """Return whether ``path`` directly holds at least one recognized map file."""
    formats = {ext.lower() for ext in supported_formats}
    try:
        names = os.listdir(path)
    except OSError:
        return False
    for fname in names:
        if Path(fname).suffix.lower() not in formats:
            continue
        if classify_map_file(fname) is not None and os.path.isfile(os.path.join(path, fname)):
            return True
    return False


def discover_sources(input_path: str,
                     supported_formats: Iterable[str] = DEFAULT_FORMATS) -> List[str]:
    """Return the material sources under ``input_path`` in sorted order.

    ``input_path`` may be a zip file, a texture set directory, or a
    directory whose children are zip files and/or texture set directories.
    """
    formats = tuple(supported_formats)
    if is_zip_source(input_path):
        return [input_path]
    if not os.path.isdir(input_path):
        raise FileNotFoundError(f"Input path not found: {input_path}")
    if is_texture_set_dir(input_path, formats):
        return [input_path]

    sources = []
    for name in sorted(os.listdir(input_path)):
        child = os.path.join(input_path, name)
        if is_zip_source(child):
            sources.append(child)
        elif os.path.isdir(child):
            if is_texture_set_dir(child, formats):
                sources.append(child)
            else:
                logger.debug("Skipping %s: no recognized map files", child)
    logger.info("Discovered %d material source(s) under %s", len(sources), input_path)
    return sources


def _safe_extract(archive: zipfile.ZipFile, dest: str) -> None:
    """Extract ``archive`` into ``dest``, refusing members that escape it."""
    dest_real = os.path.realpath(dest)
    for member in archive.infolist():
        target = os.path.realpath(os.path.join(dest, member.filename))
        if os.path.commonpath([dest_real, target]) != dest_real:
            raise ValueError(
                f"Zip member escapes extraction directory: {member.filename}"
            )
    archive.extractall(dest)


@contextmanager
def open_source(source: str) -> Iterator[str]:
    """Yield a directory holding the source's map files.

    Zip sources are extracted to a temporary directory removed on exit.
    """
    if not is_zip_source(source):
        yield source
        return

    with tempfile.TemporaryDirectory(prefix="matpack_") as tmp:
        with zipfile.ZipFile(source) as archive:
            _safe_extract(archive, tmp)
        root = tmp
        entries = os.listdir(root)
        # Some archives wrap the maps in a single top-level folder.
        if len(entries) == 1 and os.path.isdir(os.path.join(root, entries[0])):
            root = os.path.join(root, entries[0])
        logger.debug("Extracted %s to %s", source, root)
        yield root
