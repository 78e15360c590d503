"""Table membership and cell lookup for word center points."""

from typing import List, Optional, Sequence, Tuple

from ..models import Point, TableRegion


def contains(point: Point, region: TableRegion) -> bool:
    """Whether ``point`` lies in the bounding rectangle of the table's joints."""
    return region.rect.contains(point)


def find_table_index(point: Point, regions: Sequence[TableRegion]) -> Optional[int]:
    """Position in ``regions`` of the first table containing ``point``, or None."""
    for idx, region in enumerate(regions):
        if contains(point, region):
            return idx
    return None


def band_index(value: int, bounds: List[int]) -> int:
    """Smallest ``i >= 1`` with ``value < bounds[i]``, or 0 past the last bound."""
    for i in range(1, len(bounds)):
        if value < bounds[i]:
            return i
    return 0


def locate(point: Point, region: TableRegion) -> Tuple[int, int]:
    """
    Row and column of ``point`` within ``region``.

    Indices start at 1 for the first band below/right of the near edge.
    A 0 means the point lies beyond the last detected boundary.

    Returns:
        Tuple of (row, col)
    """
    return band_index(point.y, region.ys), band_index(point.x, region.xs)
