"""Core utilities -- re-exports all public symbols for convenience."""

from .errors import (
    MaterialImportError,
    MissingColorMapError,
    NoSourceDimensionsError,
    UnresolvedMapReferenceError,
)
from .records import MapImage, MapSet
from .io import load_image, save_image, srgb_to_linear
from .properties import Color, PropertyKind, ShaderProperty, Vector4
from .resolve import resolve_map_types, split_map_types
from .reader import classify_map_file, read_maps
from .packer import RECIPES, ChannelPacker, ChannelSource, pack_channels
from .assemble import (
    MaterialDescription, PropertyBinding, TextureImportSettings, assemble_material,
)
from .paths import (
    get_map_path, get_material_dir, get_material_path,
    material_category, material_name_for,
)
from .sources import discover_sources, open_source
from .logging import setup_logging

__all__ = [
    "MaterialImportError", "MissingColorMapError",
    "NoSourceDimensionsError", "UnresolvedMapReferenceError",
    "MapImage", "MapSet",
    "load_image", "save_image", "srgb_to_linear",
    "Color", "PropertyKind", "ShaderProperty", "Vector4",
    "resolve_map_types", "split_map_types",
    "classify_map_file", "read_maps",
    "RECIPES", "ChannelPacker", "ChannelSource", "pack_channels",
    "MaterialDescription", "PropertyBinding", "TextureImportSettings",
    "assemble_material",
    "get_map_path", "get_material_dir", "get_material_path",
    "material_category", "material_name_for",
    "discover_sources", "open_source",
    "setup_logging",
]
