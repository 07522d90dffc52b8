"""Shader property bindings as a tagged union of literal and map values."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from collections.abc import Sequence
from typing import Any, Dict, Union

from ..config import MapType

logger = logging.getLogger("material_import.properties")


class PropertyKind(Enum):
    """Enumerate the value kinds a shader property can hold."""

    INT = "int"
    FLOAT = "float"
    VECTOR4 = "vector4"
    COLOR = "color"
    MAP = "map"


_KIND_ALIASES: Dict[str, PropertyKind] = {
    "int": PropertyKind.INT,
    "integer": PropertyKind.INT,
    "float": PropertyKind.FLOAT,
    "vector4": PropertyKind.VECTOR4,
    "vector": PropertyKind.VECTOR4,
    "color": PropertyKind.COLOR,
    "colour": PropertyKind.COLOR,
    "map": PropertyKind.MAP,
    "texture": PropertyKind.MAP,
    "texture2d": PropertyKind.MAP,
}


def _as_float(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{what} must be a number, got {type(value).__name__} ({value!r})")
    return float(value)


@dataclass(frozen=True)
class Vector4:
    """Four-component float vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0

    @classmethod
    def from_sequence(cls, values: Sequence) -> "Vector4":
        """Build a vector from exactly four numbers."""
        if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
            raise TypeError(f"vector4 value must be a list of 4 numbers, got {values!r}")
        if len(values) != 4:
            raise ValueError(f"vector4 value must have 4 components, got {len(values)}")
        return cls(*(_as_float(v, "vector4 component") for v in values))

    def to_list(self) -> list:
        """Return components as a plain list."""
        return [self.x, self.y, self.z, self.w]


@dataclass(frozen=True)
class Color:
    """Linear RGBA color with components in [0, 1]."""

    r: float = 1.0
    g: float = 1.0
    b: float = 1.0
    a: float = 1.0

    @classmethod
    def from_sequence(cls, values: Sequence) -> "Color":
        """Build a color from three (opaque) or four numbers."""
        if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
            raise TypeError(f"color value must be a list of 3 or 4 numbers, got {values!r}")
        if len(values) not in (3, 4):
            raise ValueError(f"color value must have 3 or 4 components, got {len(values)}")
        comps = [_as_float(v, "color component") for v in values]
        if len(comps) == 3:
            comps.append(1.0)
        return cls(*comps)

    def to_list(self) -> list:
        """Return components as a plain list."""
        return [self.r, self.g, self.b, self.a]


PropertyValue = Union[int, float, Vector4, Color, MapType]


def default_value(kind: PropertyKind) -> PropertyValue:
    """Return the value a property takes when switched to ``kind``."""
    if kind is PropertyKind.INT:
        return 0
    if kind is PropertyKind.FLOAT:
        return 0.0
    if kind is PropertyKind.VECTOR4:
        return Vector4()
    if kind is PropertyKind.COLOR:
        return Color()
    if kind is PropertyKind.MAP:
        return MapType.COLOR
    raise TypeError(f"Unknown property kind: {kind!r}")


def kind_of(value: Any) -> PropertyKind:
    """Derive the property kind from a literal value."""
    # bool is an int subclass; reject it so True never binds as 1.
    if isinstance(value, bool):
        raise TypeError("bool is not a valid shader property value; use int 0/1")
    if isinstance(value, MapType):
        return PropertyKind.MAP
    if isinstance(value, int):
        return PropertyKind.INT
    if isinstance(value, float):
        return PropertyKind.FLOAT
    if isinstance(value, Vector4):
        return PropertyKind.VECTOR4
    if isinstance(value, Color):
        return PropertyKind.COLOR
    raise TypeError(
        f"Unsupported shader property value type: {type(value).__name__} ({value!r})"
    )


def parse_map_type(raw: Any) -> MapType:
    """Parse a map type from its display name (``MetallicGloss``) or member name."""
    if isinstance(raw, MapType):
        return raw
    if not isinstance(raw, str):
        raise TypeError(f"map value must be a map type name, got {raw!r}")
    text = raw.strip()
    for map_type in MapType:
        if text == map_type.value or text.upper() == map_type.name:
            return map_type
    raise ValueError(
        f"Unknown map type '{raw}'; expected one of {[t.value for t in MapType]}"
    )


class ShaderProperty:
    """Named shader input bound to a literal value or a map.

    ``kind`` and ``value`` always agree: assigning ``value`` re-derives
    ``kind``, and assigning ``kind`` resets ``value`` to that kind's default.
    """

    __slots__ = ("name", "_kind", "_value")

    def __init__(self, name: str, value: PropertyValue = 0):
        self.name = name
        self._kind = kind_of(value)
        self._value = value

    @property
    def kind(self) -> PropertyKind:
        return self._kind

    @kind.setter
    def kind(self, kind: PropertyKind):
        if not isinstance(kind, PropertyKind):
            raise TypeError(f"kind must be a PropertyKind, got {kind!r}")
        if kind is self._kind:
            return
        self._kind = kind
        self._value = default_value(kind)

    @property
    def value(self) -> PropertyValue:
        return self._value

    @value.setter
    def value(self, value: PropertyValue):
        self._kind = kind_of(value)
        self._value = value

    @property
    def is_map(self) -> bool:
        return self._kind is PropertyKind.MAP

    def __eq__(self, other):
        if not isinstance(other, ShaderProperty):
            return NotImplemented
        return (self.name, self._kind, self._value) == (other.name, other._kind, other._value)

    # Mutable through the kind and value setters.
    __hash__ = None

    def __repr__(self):
        return f"ShaderProperty(name={self.name!r}, kind={self._kind.value}, value={self._value!r})"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShaderProperty":
        """Build a property from its YAML form ``{name, type, value}``."""
        if not isinstance(data, dict):
            raise TypeError(f"shader property must be a mapping, got {type(data).__name__}")
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("shader property needs a non-empty 'name'")
        raw_kind = data.get("type")
        if not isinstance(raw_kind, str) or raw_kind.strip().lower() not in _KIND_ALIASES:
            raise ValueError(
                f"shader property '{name}' has unknown type {raw_kind!r}; "
                f"expected one of {sorted(k.value for k in PropertyKind)}"
            )
        kind = _KIND_ALIASES[raw_kind.strip().lower()]

        prop = cls(name.strip())
        prop.kind = kind
        if "value" not in data or data["value"] is None:
            return prop

        raw = data["value"]
        if kind is PropertyKind.INT:
            if (isinstance(raw, bool) or not isinstance(raw, (int, float))
                    or (isinstance(raw, float) and not math.isfinite(raw))
                    or raw != int(raw)):
                raise TypeError(f"shader property '{name}' expects an integer, got {raw!r}")
            prop.value = int(raw)
        elif kind is PropertyKind.FLOAT:
            prop.value = _as_float(raw, f"shader property '{name}'")
        elif kind is PropertyKind.VECTOR4:
            prop.value = Vector4.from_sequence(raw)
        elif kind is PropertyKind.COLOR:
            prop.value = Color.from_sequence(raw)
        else:
            prop.value = parse_map_type(raw)
        return prop

    def to_dict(self) -> Dict[str, Any]:
        """Return the YAML form of this property."""
        value = self._value
        if isinstance(value, (Vector4, Color)):
            value = value.to_list()
        elif isinstance(value, MapType):
            value = value.value
        return {"name": self.name, "type": self._kind.value, "value": value}
