"""Provide package metadata for `MatPack`."""

import logging as _logging

__version__ = "1.0.0"
_logger = _logging.getLogger("material_import")
_logger.addHandler(_logging.NullHandler())

__all__ = ["__version__"]
