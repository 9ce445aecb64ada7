"""
Utilities package for batchsink.

Exports shared helpers for logging and job profiling. Keep this package
lightweight and free of writer-specific logic.
"""

from batchsink.utils.logging import configure_logging, get_logger
from batchsink.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
