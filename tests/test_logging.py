"""Tests for logging setup."""

import io
import logging
import logging.handlers
import os
import shutil
import tempfile
import unittest
from unittest import mock

from MatPack.core.logging import LOGGER_NAME, TqdmStreamHandler, setup_logging


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.import_logger = logging.getLogger(LOGGER_NAME)
        self._saved_handlers = list(self.import_logger.handlers)
        self._saved_level = self.import_logger.level

    def tearDown(self):
        for handler in self.import_logger.handlers:
            if handler not in self._saved_handlers:
                handler.close()
        self.import_logger.handlers = self._saved_handlers
        self.import_logger.setLevel(self._saved_level)
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _file_handlers(self):
        return [
            h for h in self.import_logger.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]

    def test_embedded_mode_adds_one_file_handler(self):
        log_file = os.path.join(self.tmpdir, "logs", "import.log")
        root = logging.getLogger()
        with mock.patch.object(root, "handlers", [logging.NullHandler()]):
            setup_logging("DEBUG", log_file)
            setup_logging("DEBUG", log_file)
        self.assertEqual(len(self._file_handlers()), 1)
        self.assertEqual(self.import_logger.level, logging.DEBUG)
        self.assertTrue(os.path.isdir(os.path.dirname(log_file)))

    def test_invalid_level_falls_back_to_info(self):
        root = logging.getLogger()
        with mock.patch.object(root, "handlers", [logging.NullHandler()]):
            setup_logging("CHATTY")
        self.assertEqual(self.import_logger.level, logging.INFO)

    def test_tqdm_handler_writes_formatted_record(self):
        stream = io.StringIO()
        handler = TqdmStreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        record = logging.LogRecord(LOGGER_NAME, logging.INFO, __file__, 1, "hello %s", ("x",), None)
        handler.emit(record)
        self.assertEqual(stream.getvalue().strip(), "INFO hello x")


if __name__ == "__main__":
    unittest.main()
