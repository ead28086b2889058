"""Utility modules."""

from .logger import setup_logging
from .rwlock import ReadWriteLock

__all__ = ["setup_logging", "ReadWriteLock"]
