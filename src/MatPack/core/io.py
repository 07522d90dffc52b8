"""Image I/O for map files.

Every map is held in memory as float32 ``HxWx4`` RGBA in [0, 1] on the
8-bit grid, whatever the source bit depth.
"""

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import numpy as np
from PIL import Image

# Size limits are enforced per call in load_image() instead of through
# Pillow's global decompression bomb check.
Image.MAX_IMAGE_PIXELS = None

logger = logging.getLogger("material_import.io")

_EIGHT_BIT_MODES = frozenset({"1", "L", "LA", "P", "RGB", "RGBA", "RGBX", "CMYK"})
_SIXTEEN_BIT_MODES = frozenset({"I;16", "I;16B", "I;16L", "I;16N"})
_TIFF_BITS_PER_SAMPLE = 258


@contextmanager
def atomic_write_path(path: str) -> Iterator[str]:
    """Yield a sibling temp path that replaces ``path`` once the block succeeds.

    The temp name keeps the extension so writers can infer the format.
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    ext = Path(path).suffix
    tmp_path = f"{path}.tmp.{os.getpid()}.{threading.get_ident()}{ext}"
    try:
        yield tmp_path
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass


def _integer_bit_depth(img: Image.Image, ext: str) -> int:
    """Guess the stored bit depth of a Pillow mode ``I`` image."""
    bits = img.info.get("bits")
    if not bits and getattr(img, "tag_v2", None) is not None:
        bits = img.tag_v2.get(_TIFF_BITS_PER_SAMPLE)
        if isinstance(bits, tuple):
            bits = bits[0] if bits else None
    if isinstance(bits, int) and bits > 0:
        return min(bits, 32)
    # PNG and TIFF only promote 16-bit samples to mode I.
    return 16 if ext in (".png", ".tif", ".tiff") else 32


def _snap_to_8bit(arr: np.ndarray) -> np.ndarray:
    return (np.round(np.clip(arr, 0.0, 1.0) * 255.0) / 255.0).astype(np.float32)


def _gray_to_rgba(gray: np.ndarray) -> np.ndarray:
    rgba = np.empty(gray.shape + (4,), dtype=np.float32)
    rgba[..., :3] = gray[..., None]
    rgba[..., 3] = 1.0
    return rgba


def _check_pixel_budget(img: Image.Image, path: str, max_pixels: int) -> None:
    pixels = img.width * img.height
    if max_pixels > 0 and pixels > max_pixels:
        logger.warning("Image %s exceeds max_pixels: %d > %d", path, pixels, max_pixels)
        raise ValueError(
            f"Image too large: {img.width}x{img.height} = {pixels:,} pixels "
            f"(max {max_pixels:,}). Resize the source or raise max_image_pixels."
        )


def _decode_rgba(img: Image.Image, path: str, ext: str) -> np.ndarray:
    """Decode an open image to 8-bit-grid float32 RGBA."""
    if img.mode in _SIXTEEN_BIT_MODES or img.mode == "I":
        max_value = 65535.0
        if img.mode == "I":
            max_value = float((1 << _integer_bit_depth(img, ext)) - 1)
        logger.debug("Reducing %s image '%s' to 8 bits", img.mode, path)
        gray = np.asarray(img, dtype=np.float32) / max_value
        return _gray_to_rgba(_snap_to_8bit(gray))

    if img.mode not in _EIGHT_BIT_MODES:
        raise ValueError(
            f"Unsupported image mode '{img.mode}' for {path}; "
            "only 8-bit and 16-bit integer rasters are supported"
        )
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    return np.asarray(img, dtype=np.float32) / 255.0


def load_image(path: str, max_pixels: int = 0) -> np.ndarray:
    """Load a map file as float32 ``HxWx4`` RGBA in [0, 1].

    Grayscale sources are replicated into RGB with opaque alpha. Raises
    ``ValueError`` for oversized or unsupported images and ``IOError`` when
    the file cannot be decoded.
    """
    ext = Path(path).suffix.lower()
    try:
        with Image.open(path) as img:
            _check_pixel_budget(img, path, max_pixels)
            return _decode_rgba(img, path, ext).astype(np.float32, copy=False)
    except ValueError:
        raise
    except Exception as e:
        logger.error("Failed to open image '%s' (ext=%s): %s", path, ext, e)
        raise IOError(f"Failed to open image: {path} ({ext}): {e}") from e


def save_image(arr: np.ndarray, path: str):
    """Write a float32 [0, 1] array (HxW, HxWx3 or HxWx4) as an 8-bit image.

    The file appears atomically; a crash never leaves a truncated map.
    """
    if arr.size == 0 or arr.ndim < 2:
        raise ValueError(
            f"Cannot save empty or degenerate array (shape={arr.shape}) to {path}"
        )
    data = np.round(np.clip(arr, 0.0, 1.0) * 255.0).astype(np.uint8)
    with atomic_write_path(path) as tmp_path:
        with Image.fromarray(data) as img:
            img.save(tmp_path, optimize=Path(path).suffix.lower() == ".png")
    logger.debug("Saved: %s (%s, 8bit)", path, data.shape)


def srgb_to_linear(arr: np.ndarray) -> np.ndarray:
    """Convert sRGB-encoded [0, 1] values to linear."""
    if np.isnan(arr).any():
        logger.warning("NaN detected in srgb_to_linear input; replacing with 0.0")
        arr = np.nan_to_num(arr, nan=0.0)
    arr = np.clip(arr, 0.0, 1.0).astype(np.float32, copy=False)
    return np.where(
        arr <= 0.04045,
        arr / 12.92,
        np.power((arr + 0.055) / 1.055, 2.4),
    ).astype(np.float32, copy=False)
