"""Define the map registry and typed importer configuration.

Use `ImporterConfig` to load, validate, and persist runtime settings.
"""

import copy
import dataclasses
import os
import logging
import threading
import yaml
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List
from enum import Enum

logger = logging.getLogger("material_import.config")


class MapType(Enum):
    """Enumerate supported map semantic types."""

    COLOR = "Color"
    NORMAL = "Normal"
    METALLIC = "Metallic"
    ROUGHNESS = "Roughness"
    OCCLUSION = "Occlusion"
    HEIGHT = "Height"
    # Packed maps, always synthesized from the raw maps above.
    SMOOTHNESS = "Smoothness"
    METALLIC_GLOSS = "MetallicGloss"
    MASK = "Mask"

    @property
    def is_derived(self) -> bool:
        """Return whether this map is synthesized rather than read from disk."""
        return self in DERIVED_MAP_DEPENDENCIES


DERIVED_MAP_DEPENDENCIES: Dict[MapType, FrozenSet[MapType]] = {
    MapType.SMOOTHNESS: frozenset({MapType.ROUGHNESS}),
    MapType.METALLIC_GLOSS: frozenset({MapType.METALLIC, MapType.ROUGHNESS}),
    MapType.MASK: frozenset({
        MapType.COLOR, MapType.METALLIC, MapType.OCCLUSION, MapType.ROUGHNESS,
    }),
}

# Vendor file suffix (text after the last underscore) -> map type.
MAP_SUFFIXES: Dict[str, MapType] = {
    "Color": MapType.COLOR,
    "NormalGL": MapType.NORMAL,
    "Metalness": MapType.METALLIC,
    "Roughness": MapType.ROUGHNESS,
    "AmbientOcclusion": MapType.OCCLUSION,
    "Displacement": MapType.HEIGHT,
}

RAW_MAP_TYPES: FrozenSet[MapType] = frozenset(
    t for t in MapType if t not in DERIVED_MAP_DEPENDENCIES
)


# Shader presets for the three Unity render pipelines.
SHADER_PRESETS: Dict[str, Dict] = {
    "standard": {
        "shader": "Standard",
        "properties": [
            {"name": "_MainTex", "type": "map", "value": "Color"},
            {"name": "_Glossiness", "type": "float", "value": 1.0},
            {"name": "_MetallicGlossMap", "type": "map", "value": "MetallicGloss"},
            {"name": "_BumpMap", "type": "map", "value": "Normal"},
            {"name": "_ParallaxMap", "type": "map", "value": "Height"},
            {"name": "_OcclusionMap", "type": "map", "value": "Occlusion"},
        ],
    },
    "urp": {
        "shader": "Universal Render Pipeline/Lit",
        "properties": [
            {"name": "_BaseMap", "type": "map", "value": "Color"},
            {"name": "_MetallicGlossMap", "type": "map", "value": "MetallicGloss"},
            {"name": "_Smoothness", "type": "float", "value": 1.0},
            {"name": "_BumpMap", "type": "map", "value": "Normal"},
            {"name": "_ParallaxMap", "type": "map", "value": "Height"},
            {"name": "_OcclusionMap", "type": "map", "value": "Occlusion"},
        ],
    },
    "hdrp": {
        "shader": "HDRP/Lit",
        "properties": [
            {"name": "_BaseColorMap", "type": "map", "value": "Color"},
            {"name": "_NormalMap", "type": "map", "value": "Normal"},
            {"name": "_MaskMap", "type": "map", "value": "Mask"},
            {"name": "_HeightMap", "type": "map", "value": "Height"},
            {"name": "_DisplacementMode", "type": "int", "value": 2},
            {"name": "_HeightPoMAmplitude", "type": "float", "value": 1.0},
        ],
    },
}


_SUPPORTED_CONFIG_VERSION = 1


@dataclass
class ImporterConfig:
    """Master importer configuration."""

    config_version: int = 1
    input_dir: str = "./downloads"
    output_dir: str = "./Assets/Materials"
    create_category_directory: bool = False
    create_material_directory: bool = False

    preset: str = "standard"  # standard | urp | hdrp
    shader: str = ""  # empty = preset shader
    properties: List[Dict] = field(default_factory=list)  # empty = preset properties

    supported_formats: List[str] = field(default_factory=lambda: [
        ".png", ".jpg", ".jpeg", ".tga", ".bmp", ".tiff", ".tif"
    ])
    max_workers: int = 4
    max_image_pixels: int = 67108864  # 8192x8192
    log_level: str = "INFO"
    dry_run: bool = False
    write_dependency_maps: bool = False

    @classmethod
    def from_yaml(cls, path: str) -> "ImporterConfig":
        """Load importer configuration from YAML or return defaults."""
        if not os.path.exists(path):
            logger.info("Config file '%s' not found. Using defaults.", path)
            config = cls()
            config.validate()
            return config
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(
                f"Failed to parse YAML config '{path}': {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ValueError(
                f"Config file '{path}' must contain a YAML mapping, "
                f"got {type(data).__name__}"
            )
        yaml_version = data.get("config_version", 1)
        if isinstance(yaml_version, int) and yaml_version > _SUPPORTED_CONFIG_VERSION:
            logger.warning(
                "Config file '%s' has config_version=%d, but this build only "
                "supports up to version %d. Some settings may be ignored.",
                path, yaml_version, _SUPPORTED_CONFIG_VERSION,
            )
        config = cls()
        _merge_dict_to_dataclass(config, data)
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        return config

    def to_yaml(self, path: str):
        """Write importer configuration to a YAML file."""
        data = dataclasses.asdict(self)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        ext = os.path.splitext(path)[1]
        tmp_path = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}{ext}"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass

    def resolved_shader(self) -> str:
        """Return the configured shader, falling back to the preset's shader."""
        if self.shader:
            return self.shader
        return SHADER_PRESETS[self.preset]["shader"]

    def property_dicts(self) -> List[Dict]:
        """Return the configured property list, falling back to the preset's."""
        if self.properties:
            return self.properties
        return copy.deepcopy(SHADER_PRESETS[self.preset]["properties"])

    def build_properties(self) -> list:
        """Parse the property list into `ShaderProperty` objects."""
        from .core.properties import ShaderProperty
        return [ShaderProperty.from_dict(entry) for entry in self.property_dicts()]

    def validate(self):
        """Validate configuration values. Raises ValueError on invalid config."""
        errors = []

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"log_level must be one of {sorted(valid_log_levels)}, "
                f"got '{self.log_level}'"
            )

        if self.max_workers < 1:
            errors.append("max_workers must be >= 1")
        if self.max_workers > 128:
            errors.append("max_workers must be <= 128")
        if self.max_image_pixels < 0:
            errors.append("max_image_pixels must be >= 0 (0 = unlimited)")
        if not self.supported_formats:
            errors.append(
                "supported_formats must not be empty; no files would be read"
            )
        for ext in self.supported_formats:
            if not isinstance(ext, str) or not ext.startswith("."):
                errors.append(f"supported_formats entries must start with '.', got {ext!r}")

        if self.preset not in SHADER_PRESETS:
            errors.append(
                f"preset must be one of {sorted(SHADER_PRESETS)}, got '{self.preset}'"
            )
        elif not self.resolved_shader().strip():
            errors.append("shader must not be empty")

        if self.preset in SHADER_PRESETS:
            from .core.properties import ShaderProperty
            seen_names = set()
            for index, entry in enumerate(self.property_dicts()):
                try:
                    prop = ShaderProperty.from_dict(entry)
                except (TypeError, ValueError) as exc:
                    errors.append(f"properties[{index}]: {exc}")
                    continue
                if prop.name in seen_names:
                    logger.warning(
                        "Shader property '%s' is listed more than once; "
                        "the last binding wins on the host material.",
                        prop.name,
                    )
                seen_names.add(prop.name)

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {e}" for e in errors)
            )


def _coerce_config_value(value, default):
    """Return ``value`` converted to the type of ``default``, or raise TypeError."""
    if isinstance(default, bool):
        # YAML reads "yes"/"no" as bools; anything else is a mistake here.
        if isinstance(value, bool):
            return value
    elif isinstance(default, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value == int(value):
            return int(value)
    elif isinstance(default, list):
        if isinstance(value, list):
            return list(value)
    elif isinstance(value, type(default)):
        return value
    raise TypeError(
        f"expected {type(default).__name__}, got {type(value).__name__} ({value!r})"
    )


def _merge_dict_to_dataclass(obj, data: dict):
    """Copy known keys from ``data`` onto ``obj``, skipping bad values with a warning."""
    known = {f.name for f in dataclasses.fields(obj)}
    for key, value in data.items():
        if key not in known:
            logger.warning("Unknown config key ignored: '%s'", key)
            continue
        default = getattr(obj, key)
        if value is None:
            logger.warning(
                "Config key '%s' is null but field default is %s. Using default value.",
                key, type(default).__name__,
            )
            continue
        try:
            setattr(obj, key, _coerce_config_value(value, default))
        except TypeError as exc:
            logger.warning(
                "Config type mismatch for '%s': %s. Using default value.", key, exc,
            )
