"""Resolve which map types a property list needs."""

import logging
from typing import FrozenSet, Iterable, Tuple

from ..config import DERIVED_MAP_DEPENDENCIES, MapType
from .properties import ShaderProperty

logger = logging.getLogger("material_import.resolve")


def resolve_map_types(properties: Iterable[ShaderProperty]) -> FrozenSet[MapType]:
    """Return every map type the properties reference, plus packing inputs.

    Packed maps pull in the raw maps their channels are built from. The
    dependency table is already flat, so one level of expansion suffices.
    """
    required = set()
    for prop in properties:
        if not prop.is_map:
            continue
        map_type = prop.value
        required.add(map_type)
        required.update(DERIVED_MAP_DEPENDENCIES.get(map_type, ()))
    logger.debug(
        "Resolved map types: %s", sorted(t.value for t in required)
    )
    return frozenset(required)


def split_map_types(
    map_types: Iterable[MapType],
) -> Tuple[FrozenSet[MapType], FrozenSet[MapType]]:
    """Partition map types into ``(raw, derived)``."""
    raw, derived = set(), set()
    for map_type in map_types:
        (derived if map_type.is_derived else raw).add(map_type)
    return frozenset(raw), frozenset(derived)
