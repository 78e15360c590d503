"""Reduce table joint contours to unique row and column boundary positions."""

from typing import Iterable, List, Sequence, Tuple

import numpy as np


def dedupe_coordinates(values: Iterable[int], tolerance: int = 3) -> List[int]:
    """
    Keep one coordinate per grid line.

    A value is accepted only when every previously accepted value differs
    from it by at least ``tolerance``. The first value seen for a line wins.

    Args:
        values: Candidate coordinates in visiting order
        tolerance: Minimum distance between two distinct boundaries

    Returns:
        Accepted coordinates sorted ascending
    """
    accepted: List[int] = []
    for value in values:
        value = int(value)
        if all(abs(value - kept) >= tolerance for kept in accepted):
            accepted.append(value)
    return sorted(accepted)


def representative_point(joint: np.ndarray) -> Tuple[int, int]:
    """First boundary point of a joint contour as (x, y)."""
    x, y = np.asarray(joint).reshape(-1, 2)[0]
    return int(x), int(y)


def derive_boundaries(
    joints: Sequence[np.ndarray], tolerance: int = 3
) -> Tuple[List[int], List[int]]:
    """
    Derive the column (xs) and row (ys) boundaries of a table.

    Joints are visited from the last discovered to the first.

    Args:
        joints: Joint contours of one table in page coordinates
        tolerance: Boundary merge tolerance in pixels

    Returns:
        Tuple of (xs, ys), both ascending with no near duplicates
    """
    points = [representative_point(joint) for joint in reversed(joints) if len(joint)]
    xs = dedupe_coordinates((x for x, _ in points), tolerance)
    ys = dedupe_coordinates((y for _, y in points), tolerance)
    return xs, ys


def enumerate_table_cells(
    xs: List[int], ys: List[int]
) -> List[Tuple[int, int, int, int]]:
    """
    Create cell rectangles from grid line coordinates.

    Args:
        xs: Sorted list of vertical line x-coordinates
        ys: Sorted list of horizontal line y-coordinates

    Returns:
        List of cell rectangles as (x1, y1, x2, y2) tuples, row by row
    """
    return [
        (xi, yi, xj, yj)
        for yi, yj in zip(ys[:-1], ys[1:])
        for xi, xj in zip(xs[:-1], xs[1:])
    ]
