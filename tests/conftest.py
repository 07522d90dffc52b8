"""Shared test fixtures."""

import os
import shutil
import tempfile

import numpy as np
import pytest
from PIL import Image

from MatPack.config import ImporterConfig


@pytest.fixture
def tmp_dir():
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def default_config():
    return ImporterConfig()


def save_constant_png(path, value, width=8, height=8, mode="L"):
    """Write a PNG filled with one 8-bit value (int or RGB(A) tuple)."""
    channels = {"L": 1, "RGB": 3, "RGBA": 4}[mode]
    if channels == 1:
        arr = np.full((height, width), value, dtype=np.uint8)
    else:
        arr = np.empty((height, width, channels), dtype=np.uint8)
        arr[...] = np.asarray(value, dtype=np.uint8)
    Image.fromarray(arr, mode=mode).save(path)
    return path


@pytest.fixture
def make_texture_set(tmp_dir):
    """Create ``<tmp>/<name>/<name>_2K_<Suffix>.png`` files.

    ``maps`` maps a vendor suffix to a constant 8-bit value.
    """
    def _make(name, maps, width=8, height=8):
        set_dir = os.path.join(tmp_dir, name)
        os.makedirs(set_dir, exist_ok=True)
        for suffix, value in maps.items():
            mode = "L" if isinstance(value, int) else ("RGBA" if len(value) == 4 else "RGB")
            save_constant_png(
                os.path.join(set_dir, f"{name}_2K_{suffix}.png"),
                value, width=width, height=height, mode=mode,
            )
        return set_dir
    return _make
