"""Tests for CLI argument handling."""

import logging
import os
import sys
import tempfile
import unittest
from unittest import mock

import yaml

from conftest import save_constant_png


class TestCLI(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = self._tmp.name
        self.input_dir = os.path.join(self.tmpdir, "in")
        self.output_dir = os.path.join(self.tmpdir, "out")
        os.makedirs(self.input_dir)

    def tearDown(self):
        self._tmp.cleanup()

    def _run(self, *args):
        from MatPack import cli
        with mock.patch.object(sys, "argv", ["MatPack", *args]):
            with mock.patch("MatPack.cli.setup_logging"):
                cli.main()

    def test_overrides_reach_importer(self):
        with mock.patch("MatPack.importer.MaterialImporter") as importer_cls:
            importer = importer_cls.return_value
            importer.run.return_value = []
            importer.failed_imports = 0
            self._run(
                "--input", self.input_dir, "--output", self.output_dir,
                "--preset", "hdrp", "--shader", "My/Lit",
                "--category-dir", "--material-dir", "--workers", "3", "--dry-run",
            )
        cfg = importer_cls.call_args[0][0]
        self.assertEqual(cfg.input_dir, self.input_dir)
        self.assertEqual(cfg.output_dir, self.output_dir)
        self.assertEqual(cfg.preset, "hdrp")
        self.assertEqual(cfg.shader, "My/Lit")
        self.assertTrue(cfg.create_category_directory)
        self.assertTrue(cfg.create_material_directory)
        self.assertEqual(cfg.max_workers, 3)
        self.assertTrue(cfg.dry_run)

    def test_workers_zero_is_not_ignored(self):
        with self.assertRaises(SystemExit) as ctx:
            self._run("--input", self.input_dir, "--output", self.output_dir, "--workers", "0")
        self.assertEqual(ctx.exception.code, 1)

    def test_missing_input_exits_1(self):
        with self.assertRaises(SystemExit) as ctx:
            self._run("--input", os.path.join(self.tmpdir, "nope"), "--output", self.output_dir)
        self.assertEqual(ctx.exception.code, 1)

    def test_missing_config_exits_1(self):
        with self.assertRaises(SystemExit) as ctx:
            self._run("--config", os.path.join(self.tmpdir, "missing.yaml"))
        self.assertEqual(ctx.exception.code, 1)

    def test_exits_nonzero_when_an_import_fails(self):
        with mock.patch("MatPack.importer.MaterialImporter") as importer_cls:
            importer = importer_cls.return_value
            importer.run.return_value = []
            importer.failed_imports = 1
            with self.assertRaises(SystemExit) as ctx:
                self._run("--input", self.input_dir, "--output", self.output_dir)
        self.assertEqual(ctx.exception.code, 1)

    def test_keyboard_interrupt_exits_130(self):
        with mock.patch("MatPack.importer.MaterialImporter") as importer_cls:
            importer_cls.return_value.run.side_effect = KeyboardInterrupt
            with self.assertRaises(SystemExit) as ctx:
                self._run("--input", self.input_dir, "--output", self.output_dir)
        self.assertEqual(ctx.exception.code, 130)

    def test_end_to_end_import(self):
        set_dir = os.path.join(self.input_dir, "Bricks090")
        os.makedirs(set_dir)
        save_constant_png(os.path.join(set_dir, "Bricks090_Color.png"), (10, 20, 30), mode="RGB")
        save_constant_png(os.path.join(set_dir, "Bricks090_Roughness.png"), 0x40)
        self._run("--input", self.input_dir, "--output", self.output_dir, "--preset", "urp")
        self.assertTrue(os.path.isfile(os.path.join(self.output_dir, "Bricks090.mat.yaml")))
        self.assertTrue(os.path.isfile(os.path.join(self.output_dir, "Bricks090_MetallicGloss.png")))

    def test_console_logging_survives_progress_bar(self):
        from MatPack import cli
        from MatPack.core.logging import TqdmStreamHandler
        root = logging.getLogger()
        saved_level = root.level
        handlers = []
        try:
            with mock.patch.object(root, "handlers", handlers):
                with mock.patch.object(
                    sys, "argv",
                    ["MatPack", "--input", self.input_dir, "--output", self.output_dir],
                ):
                    cli.main()
                installed = list(root.handlers)
        finally:
            for handler in handlers:
                handler.close()
            root.setLevel(saved_level)
        self.assertTrue(any(isinstance(h, TqdmStreamHandler) for h in installed))
        self.assertTrue(os.path.isfile(os.path.join(self.output_dir, "import.log")))

    def test_generate_config_respects_output_path(self):
        out_cfg = os.path.join(self.tmpdir, "generated.yaml")
        self._run("--generate-config", "--preset", "hdrp", "--output", out_cfg)
        with open(out_cfg, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        self.assertEqual(data["preset"], "hdrp")
        self.assertEqual(data["properties"][2]["value"], "Mask")


if __name__ == "__main__":
    unittest.main(verbosity=2)
