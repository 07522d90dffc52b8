"""Tests for suffix-based map reading."""

import os
import shutil
import tempfile
import unittest

import numpy as np

from MatPack.config import MapType
from MatPack.core.errors import MissingColorMapError
from MatPack.core.reader import classify_map_file, read_maps

from conftest import save_constant_png


class TestClassifyMapFile(unittest.TestCase):
    def test_vendor_suffixes(self):
        cases = {
            "Bricks090_2K_Color.png": MapType.COLOR,
            "Bricks090_2K_NormalGL.png": MapType.NORMAL,
            "Bricks090_2K_Metalness.jpg": MapType.METALLIC,
            "Bricks090_2K_Roughness.png": MapType.ROUGHNESS,
            "Bricks090_2K_AmbientOcclusion.png": MapType.OCCLUSION,
            "Bricks090_2K_Displacement.tif": MapType.HEIGHT,
        }
        for fname, expected in cases.items():
            self.assertIs(classify_map_file(fname), expected, fname)

    def test_unrecognized_suffixes(self):
        for fname in (
            "Bricks090_2K_NormalDX.png",
            "Bricks090_2K_normalgl.png",
            "Bricks090_2K_Color_preview.png",
            "Bricks090.png",
            "Bricks090_2K_Mask.png",
        ):
            self.assertIsNone(classify_map_file(fname), fname)

    def test_extension_ignored(self):
        self.assertIs(classify_map_file("/some/dir/Foo_Roughness.tga"), MapType.ROUGHNESS)


class TestReadMaps(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, fname, value=128, mode="L", size=8):
        return save_constant_png(
            os.path.join(self.tmpdir, fname), value, width=size, height=size, mode=mode,
        )

    def test_reads_only_requested_types(self):
        self._write("Foo_Color.png", (200, 100, 50), mode="RGB")
        self._write("Foo_NormalGL.png", (128, 128, 255), mode="RGB")
        self._write("Foo_Displacement.png", 10)
        map_set = read_maps({MapType.COLOR, MapType.NORMAL}, self.tmpdir)
        try:
            self.assertEqual(set(map_set), {MapType.COLOR, MapType.NORMAL})
            self.assertEqual(set(map_set.filled()), {MapType.COLOR, MapType.NORMAL})
            self.assertEqual(map_set.missing(), frozenset())
        finally:
            map_set.release()

    def test_missing_optional_maps_stay_pending(self):
        self._write("Foo_Color.png", (200, 100, 50), mode="RGB")
        required = {MapType.COLOR, MapType.METALLIC, MapType.ROUGHNESS}
        map_set = read_maps(required, self.tmpdir)
        self.assertEqual(map_set.requested, frozenset(required))
        self.assertEqual(map_set.missing(), frozenset({MapType.METALLIC, MapType.ROUGHNESS}))
        self.assertIsNone(map_set[MapType.METALLIC])

    def test_missing_color_fails(self):
        self._write("Foo_NormalGL.png", (128, 128, 255), mode="RGB")
        self._write("Foo_color.png", (200, 100, 50), mode="RGB")
        with self.assertRaises(MissingColorMapError):
            read_maps({MapType.COLOR, MapType.NORMAL}, self.tmpdir)

    def test_missing_color_not_required_is_fine(self):
        self._write("Foo_Roughness.png", 64)
        map_set = read_maps({MapType.ROUGHNESS}, self.tmpdir)
        self.assertIsNotNone(map_set[MapType.ROUGHNESS])

    def test_color_is_srgb_others_linear(self):
        self._write("Foo_Color.png", (200, 100, 50), mode="RGB")
        self._write("Foo_Roughness.png", 64)
        map_set = read_maps({MapType.COLOR, MapType.ROUGHNESS}, self.tmpdir)
        self.assertTrue(map_set[MapType.COLOR].srgb)
        self.assertFalse(map_set[MapType.ROUGHNESS].srgb)
        # Decoded values are stored as-is; linearization happens when packing.
        np.testing.assert_allclose(
            map_set[MapType.COLOR].pixels[0, 0], [200 / 255, 100 / 255, 50 / 255, 1.0],
            atol=1e-6,
        )

    def test_duplicate_suffix_last_sorted_wins(self):
        self._write("A_Color.png", (10, 10, 10), mode="RGB")
        self._write("B_Color.png", (250, 250, 250), mode="RGB")
        with self.assertLogs("material_import.reader", level="WARNING") as cm:
            map_set = read_maps({MapType.COLOR}, self.tmpdir)
        color = map_set[MapType.COLOR]
        self.assertEqual(os.path.basename(color.source), "B_Color.png")
        self.assertAlmostEqual(float(color.pixels[0, 0, 0]), 250 / 255, places=6)
        self.assertTrue(any("Multiple Color maps" in msg for msg in cm.output))

    def test_unsupported_extension_ignored(self):
        self._write("Foo_Color.png", (200, 100, 50), mode="RGB")
        with open(os.path.join(self.tmpdir, "Foo_Roughness.txt"), "w") as f:
            f.write("not an image")
        map_set = read_maps({MapType.COLOR, MapType.ROUGHNESS}, self.tmpdir)
        self.assertIsNone(map_set[MapType.ROUGHNESS])

    def test_subdirectories_not_searched(self):
        os.makedirs(os.path.join(self.tmpdir, "nested"))
        save_constant_png(os.path.join(self.tmpdir, "nested", "Foo_Color.png"), 1)
        with self.assertRaises(MissingColorMapError):
            read_maps({MapType.COLOR}, self.tmpdir)

    def test_derived_type_rejected(self):
        with self.assertRaises(ValueError):
            read_maps({MapType.COLOR, MapType.MASK}, self.tmpdir)

    def test_corrupt_file_raises_ioerror(self):
        self._write("Foo_Color.png", (200, 100, 50), mode="RGB")
        with open(os.path.join(self.tmpdir, "Foo_Roughness.png"), "wb") as f:
            f.write(b"\x89PNG broken")
        with self.assertRaises(IOError):
            read_maps({MapType.COLOR, MapType.ROUGHNESS}, self.tmpdir)


if __name__ == "__main__":
    unittest.main()
