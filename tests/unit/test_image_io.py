"""Tests for page image loading and discovery."""

import cv2
import numpy as np
import pytest

from ocr_structure.exceptions import ImageUnreadableError, InvalidInputError
from ocr_structure.processors import LineExtractionProcessor
from ocr_structure.processors.image_io import expand_image_paths, get_image_files, load_image


def test_load_image(grid_image_file):
    image = load_image(grid_image_file)
    assert image.shape == (400, 400, 3)


def test_load_grayscale_file_as_bgr(temp_dir, grayscale_grid_image):
    path = temp_dir / "gray.png"
    cv2.imwrite(str(path), grayscale_grid_image)
    assert load_image(path).ndim == 3


def test_missing_image(temp_dir):
    with pytest.raises(ImageUnreadableError, match="not found") as exc_info:
        load_image(temp_dir / "missing.png")
    assert exc_info.value.details["image_path"].endswith("missing.png")


def test_undecodable_image(temp_dir):
    path = temp_dir / "broken.jpg"
    path.write_bytes(b"not an image")
    with pytest.raises(ImageUnreadableError, match="decode"):
        load_image(path)


def test_image_discovery(temp_dir):
    for name in ("b.PNG", "a.jpg", "c.tiff", "notes.txt"):
        (temp_dir / name).write_bytes(b"")
    (temp_dir / "nested.png").mkdir()

    assert [p.name for p in get_image_files(temp_dir)] == ["a.jpg", "b.PNG", "c.tiff"]


def test_expand_image_paths(temp_dir):
    pages = temp_dir / "pages"
    pages.mkdir()
    (pages / "p2.png").write_bytes(b"")
    (pages / "p1.png").write_bytes(b"")
    single = temp_dir / "cover.png"

    expanded = expand_image_paths([single, pages])

    assert [p.name for p in expanded] == ["cover.png", "p1.png", "p2.png"]


@pytest.mark.parametrize("bad", [None, [[0, 1]], np.zeros((0, 5), np.uint8)])
def test_processor_rejects_bad_input(bad):
    with pytest.raises(InvalidInputError):
        LineExtractionProcessor().process(bad)
