"""Map image and map set records passed between import phases."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

import numpy as np

from ..config import MapType


@dataclass(eq=False)
class MapImage:
    """Decoded 8-bit raster held as float32 ``HxWx4`` in [0, 1]."""

    pixels: Optional[np.ndarray]
    srgb: bool = False
    source: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the pixel buffer layout."""
        if self.pixels is None:
            return
        if self.pixels.ndim != 3 or self.pixels.shape[-1] != 4:
            raise ValueError(
                f"MapImage pixels must be HxWx4, got shape {self.pixels.shape}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        """Return ``(width, height)``."""
        if self.pixels is None:
            raise ValueError("MapImage has been released")
        h, w = self.pixels.shape[:2]
        return w, h

    @property
    def released(self) -> bool:
        return self.pixels is None

    def release(self) -> None:
        """Drop the pixel buffer."""
        self.pixels = None


class MapSet(Mapping):
    """Immutable mapping of map type to image, ``None`` marking a pending map.

    Each import phase produces a new ``MapSet`` instead of mutating the one
    it was given.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Mapping] = None):
        self._entries: Dict[MapType, Optional[MapImage]] = dict(entries or {})

    @classmethod
    def placeholders(cls, map_types: Iterable[MapType]) -> "MapSet":
        """Create a set where every requested type is still pending."""
        return cls({map_type: None for map_type in map_types})

    def __getitem__(self, key: MapType) -> Optional[MapImage]:
        return self._entries[key]

    def __iter__(self) -> Iterator[MapType]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        parts = ", ".join(
            f"{t.value}={'pending' if img is None else 'x'.join(map(str, img.size))}"
            for t, img in self._entries.items()
            if img is None or not img.released
        )
        return f"MapSet({parts})"

    @property
    def requested(self) -> FrozenSet[MapType]:
        return frozenset(self._entries)

    def filled(self) -> Dict[MapType, MapImage]:
        """Return the entries that hold an image."""
        return {t: img for t, img in self._entries.items() if img is not None}

    def missing(self) -> FrozenSet[MapType]:
        """Return the requested types that have no image."""
        return frozenset(t for t, img in self._entries.items() if img is None)

    def with_maps(self, maps: Mapping) -> "MapSet":
        """Return a new set with ``maps`` filled in.

        Only requested types may be filled; the receiver is left unchanged.
        """
        unknown = [t for t in maps if t not in self._entries]
        if unknown:
            raise KeyError(
                "Cannot fill map types that were never requested: "
                + ", ".join(t.value for t in unknown)
            )
        entries = dict(self._entries)
        entries.update(maps)
        return MapSet(entries)

    def release(self) -> None:
        """Release every held image buffer."""
        for img in self._entries.values():
            if img is not None:
                img.release()
