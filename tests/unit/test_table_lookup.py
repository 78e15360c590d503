"""Tests for table membership and cell lookup."""

from ocr_structure.models import BoundingBox, Point, TableRegion
from ocr_structure.processors import contains, find_table_index, locate
from ocr_structure.processors.table_lookup import band_index


class TestMembership:
    """Test point-in-table checks."""

    def test_inside_and_outside(self, sample_table):
        assert contains(Point(150, 150), sample_table)
        assert not contains(Point(50, 150), sample_table)
        assert not contains(Point(150, 350), sample_table)

    def test_near_edges_inclusive_far_edges_exclusive(self, sample_table):
        assert contains(Point(100, 100), sample_table)
        assert contains(Point(300, 300), sample_table)
        assert not contains(Point(301, 150), sample_table)
        assert not contains(Point(150, 301), sample_table)

    def test_first_matching_table_wins(self, sample_table):
        overlapping = TableRegion(
            joints=[], xs=[0, 500], ys=[0, 500], rect=BoundingBox(0, 0, 500, 500), index=1
        )
        assert find_table_index(Point(150, 150), [sample_table, overlapping]) == 0
        assert find_table_index(Point(50, 50), [sample_table, overlapping]) == 1

    def test_no_table(self, sample_table):
        assert find_table_index(Point(5, 5), [sample_table]) is None
        assert find_table_index(Point(5, 5), []) is None


class TestLocate:
    """Test row and column lookup."""

    def test_cells(self, sample_table):
        assert locate(Point(150, 150), sample_table) == (1, 1)
        assert locate(Point(250, 120), sample_table) == (1, 2)
        assert locate(Point(120, 250), sample_table) == (2, 1)

    def test_boundary_belongs_to_next_band(self, sample_table):
        assert locate(Point(200, 200), sample_table) == (2, 2)

    def test_beyond_last_boundary_is_zero(self, sample_table):
        """A point on or past the last boundary maps to index 0."""
        assert locate(Point(150, 300), sample_table) == (0, 1)
        assert locate(Point(300, 150), sample_table) == (1, 0)

    def test_before_first_boundary_is_first_band(self, sample_table):
        assert locate(Point(50, 50), sample_table) == (1, 1)

    def test_monotonic(self, sample_table):
        last = sample_table.ys[-1]
        rows = [locate(Point(150, y), sample_table)[0] for y in range(0, last)]
        cols = [locate(Point(x, 150), sample_table)[1] for x in range(0, last)]
        assert rows == sorted(rows)
        assert cols == sorted(cols)

    def test_band_index_without_bounds(self):
        assert band_index(10, []) == 0
        assert band_index(10, [5]) == 0


class TestTableGeometry:
    """Test row and cell boxes of a table region."""

    def test_row_and_cell_boxes(self, sample_table):
        assert sample_table.row_box(1) == BoundingBox(100, 100, 301, 200)
        assert sample_table.cell_box(2, 1) == BoundingBox(100, 200, 200, 300)

    def test_trailing_band(self, sample_table):
        assert sample_table.cell_box(0, 0) == BoundingBox(300, 300, 301, 301)

    def test_to_dict(self, sample_table):
        data = sample_table.to_dict()
        assert data["num_rows"] == 2
        assert data["num_cols"] == 2
        assert data["rect"] == [100, 100, 301, 301]
        assert data["joint_count"] == 0
