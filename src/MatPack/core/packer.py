"""Synthesize channel-packed maps from raw source maps.

Each packed map is described by a recipe: for every destination channel
(R, G, B, A) either a ``ChannelSource`` naming the source map, the source
channel to extract and whether to invert it, or ``None`` for an unused
channel filled with 0. Absent source maps read as white, so a missing
occlusion map packs as "no occlusion".
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

import cv2
import numpy as np

from ..config import MapType
from .errors import NoSourceDimensionsError
from .io import srgb_to_linear
from .records import MapImage, MapSet

logger = logging.getLogger("material_import.packer")

CHANNEL_NAMES = ("R", "G", "B", "A")


@dataclass(frozen=True)
class ChannelSource:
    """One destination channel's input: ``map_type[channel]``, optionally inverted."""

    map_type: MapType
    channel: int = 0
    invert: bool = False

    def __post_init__(self):
        if not 0 <= self.channel <= 3:
            raise ValueError(f"channel must be in 0..3, got {self.channel}")


Recipe = Tuple[Optional[ChannelSource], Optional[ChannelSource],
               Optional[ChannelSource], Optional[ChannelSource]]

_SMOOTHNESS = ChannelSource(MapType.ROUGHNESS, 0, invert=True)
_METALLIC = ChannelSource(MapType.METALLIC, 0)

RECIPES: Dict[MapType, Recipe] = {
    # Metallic (R), Occlusion (G), Detail Mask (B, unused), Smoothness (A)
    MapType.MASK: (
        _METALLIC,
        ChannelSource(MapType.OCCLUSION, 0),
        None,
        _SMOOTHNESS,
    ),
    # Metallic (RGB), Smoothness (A)
    MapType.METALLIC_GLOSS: (_METALLIC, _METALLIC, _METALLIC, _SMOOTHNESS),
    # Smoothness (RGB)
    MapType.SMOOTHNESS: (_SMOOTHNESS, _SMOOTHNESS, _SMOOTHNESS, None),
}


def _resize_channel(arr: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize a single channel to the target shape."""
    if arr.shape[:2] == (height, width):
        return arr
    return cv2.resize(arr, (width, height), interpolation=cv2.INTER_LINEAR)


def _extract_channel(
    image: Optional[MapImage], source: ChannelSource, width: int, height: int
) -> np.ndarray:
    if image is None:
        values = np.ones((height, width), dtype=np.float32)
    else:
        if image.released:
            raise ValueError(f"{source.map_type.value} map was released before packing")
        values = image.pixels[:, :, source.channel].astype(np.float32, copy=False)
        # Channel math runs on linear values; alpha is never gamma encoded.
        if image.srgb and source.channel < 3:
            values = srgb_to_linear(values)
        values = _resize_channel(values, width, height)
    if source.invert:
        values = 1.0 - values
    return np.clip(values, 0.0, 1.0)


def pack_channels(
    recipe: Recipe,
    sources: Mapping[MapType, Optional[MapImage]],
    size: Tuple[int, int],
) -> np.ndarray:
    """Pack the recipe's channels into a new linear ``HxWx4`` float32 array.

    Pure function of its arguments; ``size`` is ``(width, height)``.
    """
    if len(recipe) != 4:
        raise ValueError(f"recipe must describe 4 channels, got {len(recipe)}")
    width, height = size
    if width < 1 or height < 1:
        raise ValueError(f"Invalid output size {width}x{height}")

    packed = np.zeros((height, width, 4), dtype=np.float32)
    cache: Dict[ChannelSource, np.ndarray] = {}
    for dst, source in enumerate(recipe):
        if source is None:
            continue
        if source not in cache:
            cache[source] = _extract_channel(sources.get(source.map_type), source, width, height)
        packed[:, :, dst] = cache[source]
    # Quantize so the in-memory result matches what is written to disk.
    return np.round(packed * 255.0) / 255.0


def output_size(
    map_type: MapType,
    map_set: Mapping[MapType, Optional[MapImage]],
    recipe: Optional[Recipe] = None,
) -> Tuple[int, int]:
    """Return ``(width, height)`` for a packed map.

    The Color map sets the size when present; otherwise the first present
    source in recipe order does.
    """
    color = map_set.get(MapType.COLOR)
    if color is not None:
        return color.size
    for source in (recipe if recipe is not None else RECIPES[map_type]):
        if source is None:
            continue
        image = map_set.get(source.map_type)
        if image is not None:
            return image.size
    raise NoSourceDimensionsError(map_type)


class ChannelPacker:
    """Build packed maps from a map set using a fixed recipe table.

    Holds no per-call state, so one instance may serve concurrent imports.
    """

    def __init__(self, recipes: Optional[Mapping[MapType, Recipe]] = None):  # noqa: D107
        self.recipes = dict(recipes if recipes is not None else RECIPES)

    def synthesize(self, map_type: MapType, map_set: Mapping[MapType, Optional[MapImage]]) -> MapImage:
        """Synthesize one packed map from the raw maps in ``map_set``."""
        if map_type not in self.recipes:
            raise ValueError(f"{map_type.value} is not a packed map type")
        recipe = self.recipes[map_type]
        size = output_size(map_type, map_set, recipe)
        for source in recipe:
            if source is not None and map_set.get(source.map_type) is None:
                logger.debug(
                    "%s: %s source missing, using white",
                    map_type.value, source.map_type.value,
                )
        pixels = pack_channels(recipe, map_set, size)
        logger.debug(
            "Packed %s map %dx%d: %s",
            map_type.value, size[0], size[1],
            ", ".join(
                f"{name}={_describe(src)}" for name, src in zip(CHANNEL_NAMES, recipe)
            ),
        )
        return MapImage(pixels=pixels.astype(np.float32, copy=False), srgb=False)

    def create_maps(self, map_set: MapSet) -> MapSet:
        """Return a new map set with every pending packed map synthesized.

        Packed maps only read raw maps, so their order does not matter.
        """
        created: Dict[MapType, MapImage] = {}
        try:
            for map_type in self.recipes:
                if map_type in map_set and map_set[map_type] is None:
                    created[map_type] = self.synthesize(map_type, map_set)
        except Exception:
            for img in created.values():
                img.release()
            raise
        return map_set.with_maps(created)


def _describe(source: Optional[ChannelSource]) -> str:
    if source is None:
        return "0"
    text = f"{source.map_type.value}[{CHANNEL_NAMES[source.channel]}]"
    return f"1-{text}" if source.invert else text
