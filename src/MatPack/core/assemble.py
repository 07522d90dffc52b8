"""Bind maps and literal values to shader properties."""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..config import MapType
from .errors import UnresolvedMapReferenceError
from .properties import Color, PropertyKind, ShaderProperty, Vector4
from .records import MapImage

logger = logging.getLogger("material_import.assemble")


@dataclass(frozen=True)
class TextureImportSettings:
    """How a host should import a written map."""

    normal_map: bool = False
    srgb: bool = False
    alpha_is_transparency: bool = False

    @classmethod
    def for_map(cls, map_type: MapType) -> "TextureImportSettings":
        """Return settings for a map type; only Color is display-referred."""
        return cls(
            normal_map=map_type is MapType.NORMAL,
            srgb=map_type is MapType.COLOR,
            alpha_is_transparency=map_type is MapType.COLOR,
        )


@dataclass(frozen=True)
class PropertyBinding:
    """A shader property bound to a literal or to a map image."""

    name: str
    kind: PropertyKind
    value: Any
    map_type: Optional[MapType] = None


@dataclass(frozen=True)
class MaterialDescription:
    """Shader reference plus ordered property bindings."""

    name: str
    shader: str
    bindings: Tuple[PropertyBinding, ...]

    def map_bindings(self) -> Tuple[PropertyBinding, ...]:
        """Return the map bindings that hold an image."""
        return tuple(
            b for b in self.bindings
            if b.kind is PropertyKind.MAP and b.value is not None
        )

    def to_dict(self, relative_to: Optional[str] = None) -> Dict[str, Any]:
        """Return a YAML-friendly form; map bindings reference their files."""
        properties = []
        for binding in self.bindings:
            entry: Dict[str, Any] = {"name": binding.name, "type": binding.kind.value}
            if binding.kind is PropertyKind.MAP:
                image: Optional[MapImage] = binding.value
                texture = image.source if image is not None else None
                if texture and relative_to:
                    texture = os.path.relpath(texture, relative_to).replace("\\", "/")
                settings = TextureImportSettings.for_map(binding.map_type)
                entry["map"] = binding.map_type.value
                entry["texture"] = texture
                entry["import"] = {
                    "normal_map": settings.normal_map,
                    "srgb": settings.srgb,
                    "alpha_is_transparency": settings.alpha_is_transparency,
                }
            elif isinstance(binding.value, (Vector4, Color)):
                entry["value"] = binding.value.to_list()
            else:
                entry["value"] = binding.value
            properties.append(entry)
        return {"name": self.name, "shader": self.shader, "properties": properties}


def assemble_material(
    map_set: Mapping[MapType, Optional[MapImage]],
    shader: str,
    properties: Iterable[ShaderProperty],
    name: str = "",
) -> MaterialDescription:
    """Bind every property, in order, to its map or literal value.

    Property names are not checked against the shader; the host ignores
    names the shader does not declare.
    """
    bindings = []
    for prop in properties:
        if prop.kind is PropertyKind.MAP:
            if prop.value not in map_set:
                raise UnresolvedMapReferenceError(prop.name, prop.value)
            image = map_set[prop.value]
            if image is None:
                logger.debug("%s: no %s map, slot left empty", prop.name, prop.value.value)
            bindings.append(PropertyBinding(prop.name, prop.kind, image, map_type=prop.value))
        elif prop.kind in (PropertyKind.INT, PropertyKind.FLOAT,
                           PropertyKind.VECTOR4, PropertyKind.COLOR):
            bindings.append(PropertyBinding(prop.name, prop.kind, prop.value))
        else:
            raise TypeError(f"Unhandled property kind: {prop.kind!r}")
    logger.debug(
        "Assembled material '%s' with %d bindings (%d maps)",
        name, len(bindings), sum(1 for b in bindings if b.kind is PropertyKind.MAP),
    )
    return MaterialDescription(name=name, shader=shader, bindings=tuple(bindings))
