"""Utility helpers for table structure extraction."""

from .logging_utils import (
    RunStats,
    StructureFormatter,
    configure_opencv_logging,
    get_logger,
    log_processing_stats,
    setup_logging,
)

__all__ = [
    "RunStats",
    "StructureFormatter",
    "configure_opencv_logging",
    "get_logger",
    "log_processing_stats",
    "setup_logging",
]
