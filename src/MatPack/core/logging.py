"""Logging setup for the material importer.

Console output goes through ``tqdm.write`` so log lines do not tear the
batch progress bar. A rotating file handler is added when a log path is
given.
"""

import logging
import logging.handlers
import os
import threading
from typing import List, Optional

from tqdm import tqdm

LOGGER_NAME = "material_import"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [T%(thread)d]: %(message)s"

# 10 MB per file, 3 rotated backups
_LOG_MAX_BYTES = 10 * 1024 * 1024
_LOG_BACKUP_COUNT = 3
_setup_lock = threading.Lock()

logger = logging.getLogger(LOGGER_NAME)


class TqdmStreamHandler(logging.StreamHandler):
    """Stream handler that prints above any active tqdm bar."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=self.stream)
            self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


def _parse_level(level: str) -> int:
    numeric = getattr(logging, str(level).upper(), None)
    if isinstance(numeric, int):
        return numeric
    logger.warning("Invalid log level '%s', defaulting to INFO", level)
    return logging.INFO


def _file_handler(log_file: str) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=_LOG_MAX_BYTES, backupCount=_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _has_file_handler(target: logging.Logger, log_file: str) -> bool:
    wanted = os.path.abspath(log_file)
    return any(
        getattr(h, "baseFilename", None) == wanted for h in target.handlers
    )


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, force: bool = False):
    """Configure logging for a CLI run or an embedding host.

    With no root handlers (or ``force``), the root logger gets a console
    handler and the optional file handler. Otherwise the host owns the root
    logger and only the ``material_import`` hierarchy is adjusted.
    """
    with _setup_lock:
        numeric_level = _parse_level(level)
        root = logging.getLogger()

        if force or not root.handlers:
            handlers: List[logging.Handler] = [TqdmStreamHandler()]
            if log_file:
                handlers.append(_file_handler(log_file))
            logging.basicConfig(
                level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=force,
            )
            logger.debug("Configured root logging with %d handler(s)", len(handlers))
            return

        logger.setLevel(numeric_level)
        if log_file and not _has_file_handler(logger, log_file):
            logger.addHandler(_file_handler(log_file))
            logger.debug("Added log file %s to embedded logging", log_file)
