"""
Cross-cutting helpers for salegen: logging setup and run profiling.
"""

from salegen.utils.logging import configure_logging, current_logging_options, get_logger
from salegen.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "current_logging_options",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
