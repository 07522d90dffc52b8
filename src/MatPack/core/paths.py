"""Output directory layout and file naming for imported materials."""

import os
import re
from pathlib import Path

from ..config import MapType

_LEADING_LETTERS = re.compile(r"^[^\W\d_]*")


def material_name_for(source_path: str) -> str:
    """Return the material name for a source directory or zip file."""
    p = Path(str(source_path).rstrip("/\\"))
    name = p.stem if p.suffix.lower() == ".zip" else p.name
    if not name:
        raise ValueError(f"Cannot derive a material name from '{source_path}'")
    return name


def material_category(material_name: str) -> str:
    """Return the leading run of letters, e.g. ``Bricks`` for ``Bricks090``."""
    return _LEADING_LETTERS.match(material_name).group(0)


def get_material_dir(output_dir: str, material_name: str,
                     category_dir: bool = False, material_dir: bool = False) -> str:
    """Return ``output_dir[/category][/material]`` for a material."""
    path = output_dir
    if category_dir:
        category = material_category(material_name)
        if category:
            path = os.path.join(path, category)
    if material_dir:
        path = os.path.join(path, material_name)
    return path


def get_map_path(material_dir: str, material_name: str, map_type: MapType) -> str:
    """Return ``<material_dir>/<material>_<MapType>.png``."""
    return os.path.join(material_dir, f"{material_name}_{map_type.value}.png")


def get_material_path(material_dir: str, material_name: str) -> str:
    """Return the material description path."""
    return os.path.join(material_dir, f"{material_name}.mat.yaml")
