"""Tests for table region segmentation and end-to-end table detection."""

import numpy as np
import pytest

from ocr_structure.config import Config
from ocr_structure.processors import (
    TableDetectionProcessor,
    TableSegmentationProcessor,
    detect_tables,
    detect_tables_in_file,
    enumerate_table_cells,
    extract_line_masks,
    is_table_candidate,
    segment_tables,
)


def test_three_by_three_grid(grid_image):
    """A fully ruled 3x3 grid yields one table with 4 boundaries per axis."""
    tables = detect_tables(grid_image)

    assert len(tables) == 1
    table = tables[0]
    assert len(table.xs) == 4
    assert len(table.ys) == 4
    assert table.num_rows == 3
    assert table.num_cols == 3
    assert len(enumerate_table_cells(table.xs, table.ys)) == 9
    assert len(table.joints) == 16

    for found, drawn in zip(table.xs, (50, 150, 250, 350)):
        assert abs(found - drawn) <= 2
    for found, drawn in zip(table.ys, (50, 150, 250, 350)):
        assert abs(found - drawn) <= 2


def test_table_rect_covers_all_joints(grid_image):
    table = detect_tables(grid_image)[0]
    points = np.concatenate([j.reshape(-1, 2) for j in table.joints])
    assert table.rect.left == points[:, 0].min()
    assert table.rect.top == points[:, 1].min()
    assert table.rect.right == points[:, 0].max() + 1
    assert table.rect.bottom == points[:, 1].max() + 1


def test_grayscale_input(grayscale_grid_image):
    assert len(detect_tables(grayscale_grid_image)) == 1


def test_blank_page_has_no_tables(blank_image):
    assert detect_tables(blank_image) == []


def test_single_box_is_not_a_table(grid_drawer):
    """A bordered box has only four joints."""
    image = np.ones((300, 300), dtype=np.uint8) * 255
    grid_drawer(image, xs=(50, 250), ys=(50, 250))
    assert detect_tables(image) == []


def test_crossing_lines_are_not_a_table():
    horizontal = np.zeros((200, 200), dtype=np.uint8)
    vertical = np.zeros((200, 200), dtype=np.uint8)
    horizontal[99:101, 20:180] = 255
    vertical[20:180, 99:101] = 255
    assert segment_tables(horizontal, vertical) == []


def test_tiny_grid_is_rejected_by_area():
    """A ruled grid enclosing less than 50 px² is filtered even with 9 joints."""
    horizontal = np.zeros((40, 40), dtype=np.uint8)
    vertical = np.zeros((40, 40), dtype=np.uint8)
    for pos in (10, 13, 16):
        horizontal[pos, 10:17] = 255
        vertical[10:17, pos] = 255

    assert segment_tables(horizontal, vertical) == []
    # The same masks pass once the area limit is lowered
    assert len(segment_tables(horizontal, vertical, min_area=10)) == 1


@pytest.mark.parametrize(
    "area,joints,expected",
    [
        (40.0, 9, False),
        (50.0, 5, True),
        (90000.0, 4, False),
        (90000.0, 16, True),
    ],
)
def test_is_table_candidate(area, joints, expected):
    assert is_table_candidate(area, joints) is expected


def test_two_tables_in_discovery_order(grid_drawer):
    image = np.ones((400, 800), dtype=np.uint8) * 255
    grid_drawer(image, xs=(50, 150, 250), ys=(50, 150, 250))
    grid_drawer(image, xs=(450, 550, 650, 750), ys=(100, 200, 300))

    tables = detect_tables(image)

    assert len(tables) == 2
    assert [t.index for t in tables] == [0, 1]
    shapes = sorted((t.num_rows, t.num_cols) for t in tables)
    assert shapes == [(2, 2), (2, 3)]


def test_mask_shape_mismatch():
    with pytest.raises(ValueError):
        segment_tables(np.zeros((10, 10), np.uint8), np.zeros((10, 12), np.uint8))


def test_empty_masks():
    empty = np.zeros((0, 0), dtype=np.uint8)
    assert segment_tables(empty, empty) == []


def test_detect_tables_analysis(grid_image):
    tables, analysis = detect_tables(grid_image, return_analysis=True)
    assert analysis["table_count"] == 1
    assert analysis["tables"][0]["num_rows"] == 3
    assert analysis["tables"][0]["joint_count"] == 16
    assert analysis["horizontal_pixels"] > 0


class TestProcessors:
    """Test processor wrappers."""

    def test_segmentation_processor(self, grid_image):
        horizontal, vertical = extract_line_masks(grid_image)
        processor = TableSegmentationProcessor(Config(save_debug_images=True))
        tables = processor.process(horizontal, vertical=vertical)
        assert len(tables) == 1
        assert {"combined_mask", "joint_mask"} <= set(processor.get_debug_images())

    def test_config_limits_are_used(self, grid_image):
        config = Config()
        config.segmentation.min_joint_count = 20
        assert TableDetectionProcessor(config).process(grid_image) == []

    def test_debug_images_written(self, grid_image, temp_dir):
        processor = TableDetectionProcessor(Config(save_debug_images=True))
        processor.process(grid_image)
        processor.save_debug_images_to_dir(temp_dir / "debug", prefix="page")
        written = sorted(p.name for p in (temp_dir / "debug").iterdir())
        assert "page_joint_mask.png" in written
        assert "page_horizontal_mask.png" in written

    def test_process_file(self, grid_image_file):
        assert len(TableDetectionProcessor().process_file(grid_image_file)) == 1

    def test_unreadable_file_degrades(self, temp_dir):
        broken = temp_dir / "broken.png"
        broken.write_bytes(b"not an image")
        assert TableDetectionProcessor().process_file(broken) == []
        assert detect_tables_in_file(broken) == []
        assert detect_tables_in_file(temp_dir / "missing.png") == []
