"""
Logging setup for table structure extraction.

Console output goes to stderr (through rich when enabled) so that a rendered
document written to stdout stays clean. ``log_processing_stats`` reports how
many pages, tables and words a batch run produced.
"""

import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Generator, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)

# style -> (include_module, include_function)
FORMAT_STYLES = {
    "minimal": (False, False),
    "simple": (True, False),
    "detailed": (True, True),
}

# Python level ceiling -> OpenCV level (0=SILENT, 2=ERROR, 3=WARN, 4=INFO, 5=DEBUG)
_OPENCV_LEVELS = (
    (logging.DEBUG, 5),
    (logging.INFO, 4),
    (logging.WARNING, 3),
)


class StructureFormatter(logging.Formatter):
    """Timestamped plain-text records, optionally naming the logger and function."""

    def __init__(self, include_module: bool = True, include_function: bool = False):
        fields = ["%(asctime)s"]
        if include_module:
            fields.append("%(name)s")
        fields.append("%(levelname)s")
        if include_function:
            fields.append("%(funcName)s")
        fields.append("%(message)s")
        super().__init__(" - ".join(fields), datefmt="%Y-%m-%d %H:%M:%S")


def _console_handler(format_style: str, use_rich: bool) -> logging.Handler:
    if use_rich:
        handler = RichHandler(
            console=console,
            show_time=True,
            show_path=format_style == "detailed",
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler

    handler = logging.StreamHandler(sys.stderr)
    include_module, include_function = FORMAT_STYLES.get(format_style, FORMAT_STYLES["detailed"])
    handler.setFormatter(StructureFormatter(include_module, include_function))
    return handler


def setup_logging(
    level: Union[str, int] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    use_rich: bool = True,
    format_style: str = "detailed"
) -> logging.Logger:
    """
    Configure the root logger, replacing any handlers already installed.

    Args:
        level: Console level, as a name or number
        log_file: Also log everything at DEBUG to this file
        use_rich: Render console records with rich
        format_style: 'minimal', 'simple' or 'detailed'

    Returns:
        The root logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handler = _console_handler(format_style, use_rich)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(StructureFormatter(include_module=True, include_function=True))
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)
        root.setLevel(logging.DEBUG)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@dataclass
class RunStats:
    """Counters filled in by a batch run."""

    operation: str
    pages_processed: int = 0
    pages_failed: int = 0
    tables: int = 0
    words: int = 0
    started: float = field(default_factory=time.perf_counter)
    duration: Optional[float] = None

    def elapsed(self) -> float:
        return time.perf_counter() - self.started

    def summary(self) -> str:
        return (
            f"pages={self.pages_processed}, failed={self.pages_failed}, "
            f"tables={self.tables}, words={self.words}, duration={self.elapsed():.2f}s"
        )


@contextmanager
def log_processing_stats(
    operation: str,
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO
) -> Generator[RunStats, None, None]:
    """
    Log the start and outcome of a batch run.

    The caller updates the counters of the yielded ``RunStats``; a summary is
    logged on normal exit and an error if the block raises.
    """
    logger = logger or logging.getLogger()
    stats = RunStats(operation)
    logger.log(level, f"Starting {operation}")

    try:
        yield stats
    except Exception as e:
        logger.error(f"Failed {operation} after {stats.elapsed():.2f}s: {e}")
        raise

    stats.duration = stats.elapsed()
    logger.log(level, f"Completed {operation}: {stats.summary()}")


def configure_opencv_logging(level: int = logging.WARNING) -> None:
    """Match OpenCV's own log verbosity to a Python logging level."""
    import cv2

    for ceiling, opencv_level in _OPENCV_LEVELS:
        if level <= ceiling:
            cv2.setLogLevel(opencv_level)
            return
    cv2.setLogLevel(2)
