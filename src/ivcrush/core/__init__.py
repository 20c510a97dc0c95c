"""Core utilities: logging, exceptions, constants, market calendar."""

from ivcrush.core.exceptions import IVCrushError
from ivcrush.core.logging import get_logger, setup_logging

__all__ = [
    "IVCrushError",
    "get_logger",
    "setup_logging",
]
