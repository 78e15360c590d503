"""
Pytest configuration and shared fixtures for table structure tests.

Provides synthetic ruled pages, a recognized-word factory and test logging.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Callable, Generator, Iterable, Optional, Tuple

import numpy as np
import cv2

from ocr_structure.config import Config, get_default_config
from ocr_structure.models import BoundingBox, Level, RecognizedWord, TableRegion
from ocr_structure.utils.logging_utils import setup_logging

GRID_LINES = (50, 150, 250, 350)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


def draw_grid(
    image: np.ndarray,
    xs: Iterable[int] = GRID_LINES,
    ys: Iterable[int] = GRID_LINES,
    thickness: int = 2,
) -> np.ndarray:
    """Draw a fully ruled grid with black lines at the given positions."""
    xs, ys = list(xs), list(ys)
    color = (0, 0, 0) if image.ndim == 3 else 0
    for y in ys:
        cv2.line(image, (xs[0], y), (xs[-1], y), color, thickness)
    for x in xs:
        cv2.line(image, (x, ys[0]), (x, ys[-1]), color, thickness)
    return image


@pytest.fixture
def grid_drawer() -> Callable[..., np.ndarray]:
    """The grid drawing helper, for tests that build their own pages."""
    return draw_grid


@pytest.fixture
def grid_image() -> np.ndarray:
    """400x400 BGR page with one 3x3 ruled table."""
    image = np.ones((400, 400, 3), dtype=np.uint8) * 255
    return draw_grid(image)


@pytest.fixture
def grayscale_grid_image() -> np.ndarray:
    """400x400 grayscale page with one 3x3 ruled table."""
    image = np.ones((400, 400), dtype=np.uint8) * 255
    return draw_grid(image)


@pytest.fixture
def blank_image() -> np.ndarray:
    """Page without any ruling."""
    return np.ones((300, 300, 3), dtype=np.uint8) * 255


@pytest.fixture
def grid_image_file(temp_dir: Path, grid_image: np.ndarray) -> Path:
    """Grid page saved as PNG."""
    path = temp_dir / "grid_page.png"
    cv2.imwrite(str(path), grid_image)
    return path


@pytest.fixture
def sample_table() -> TableRegion:
    """Table with boundaries at 100/200/300 in both directions."""
    return TableRegion(
        joints=[],
        xs=[100, 200, 300],
        ys=[100, 200, 300],
        rect=BoundingBox(100, 100, 301, 301),
        index=0,
        area=40000.0,
    )


WordFactory = Callable[..., RecognizedWord]

ALL_LEVELS = (Level.BLOCK, Level.PARAGRAPH, Level.LINE)


@pytest.fixture
def make_word() -> WordFactory:
    """Factory for recognized words.

    ``box`` is (left, top, right, bottom); ``starts``/``ends`` accept level
    names or ``"all"`` for block, paragraph and line.
    """

    def _levels(value) -> frozenset:
        if value == "all":
            return frozenset(ALL_LEVELS)
        return frozenset(Level(v) for v in value)

    def factory(
        text: str = "word",
        box: Tuple[int, int, int, int] = (10, 10, 50, 30),
        starts=(),
        ends=(),
        level_boxes: Optional[dict] = None,
        **kwargs,
    ) -> RecognizedWord:
        return RecognizedWord(
            text=text,
            bbox=BoundingBox(*box),
            starts=_levels(starts),
            ends=_levels(ends),
            level_boxes=level_boxes or {},
            **kwargs,
        )

    return factory


@pytest.fixture
def sample_config() -> Config:
    """Create a sample configuration for testing."""
    config = get_default_config()
    config.logging.use_rich = False
    config.save_debug_images = False
    return config


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests."""
    setup_logging(
        level="WARNING",  # Only show warnings and errors in tests
        use_rich=False,
        format_style="minimal"
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (deselect with '-m \"not unit\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location and name."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)

        if "slow" in item.name.lower() or "parallel" in item.name.lower():
            item.add_marker(pytest.mark.slow)
