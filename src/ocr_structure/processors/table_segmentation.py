"""Find ruled table candidates in line masks and filter out noise."""

from typing import List, Optional, Tuple
import logging

import cv2
import numpy as np

from ..exceptions import InvalidInputError
from ..models import BoundingBox, TableRegion
from .base import BaseProcessor
from .grid_clustering import derive_boundaries

logger = logging.getLogger(__name__)


class TableSegmentationProcessor(BaseProcessor):
    """Processor for grouping ruling line masks into table regions."""

    def process(self, image: np.ndarray, **kwargs) -> List[TableRegion]:
        """Segment tables from a horizontal mask and a vertical mask.

        Args:
            image: Horizontal line mask
            **kwargs: ``vertical`` mask (required) and filter overrides

        Returns:
            List of TableRegion in discovery order
        """
        self.validate_image(image)
        vertical = kwargs.pop("vertical")

        # Clear previous debug images
        self.clear_debug_images()

        kwargs.setdefault("min_area", self.get_config_value("segmentation.min_table_area", 50.0))
        kwargs.setdefault("min_joints", self.get_config_value("segmentation.min_joint_count", 5))
        kwargs.setdefault(
            "approx_epsilon", self.get_config_value("segmentation.approx_epsilon", 3.0)
        )
        kwargs.setdefault("tolerance", self.get_config_value("grid.boundary_tolerance", 3))
        kwargs["_processor"] = self

        return segment_tables(image, vertical, **kwargs)


def is_table_candidate(
    area: float, joint_count: int, min_area: float = 50.0, min_joints: int = 5
) -> bool:
    """Whether a contour is large enough and has enough joints to be a grid."""
    return area >= min_area and joint_count >= min_joints


def region_rect(joints: List[np.ndarray]) -> BoundingBox:
    """Bounding rectangle of the union of all joint points."""
    points = np.concatenate([j.reshape(-1, 2) for j in joints]).astype(np.int32)
    return BoundingBox.from_xywh(*cv2.boundingRect(points))


def find_joint_contours(
    joint_mask: np.ndarray, rect: Tuple[int, int, int, int]
) -> List[np.ndarray]:
    """Find joint contours inside ``rect`` of the joint mask, in page coordinates."""
    x, y, w, h = rect
    roi = np.ascontiguousarray(joint_mask[y:y + h, x:x + w])
    if roi.size == 0:
        return []
    contours, _ = cv2.findContours(roi, cv2.RETR_CCOMP, cv2.CHAIN_APPROX_SIMPLE)
    offset = np.array([[x, y]], dtype=np.int32)
    return [contour + offset for contour in contours]


def segment_tables(
    horizontal: np.ndarray,
    vertical: np.ndarray,
    min_area: float = 50.0,
    min_joints: int = 5,
    approx_epsilon: float = 3.0,
    tolerance: int = 3,
    **kwargs,
) -> List[TableRegion]:
    """
    Group ruling lines into table regions.

    Args:
        horizontal: Horizontal line mask
        vertical: Vertical line mask
        min_area: Minimum enclosed area of a table contour in pixels
        min_joints: Minimum number of line intersections of a table
        approx_epsilon: Polygon approximation accuracy for the table outline
        tolerance: Boundary merge tolerance passed to the clusterer

    Returns:
        List of TableRegion in contour discovery order
    """
    processor = kwargs.get("_processor", None)

    if horizontal is None or vertical is None or horizontal.size == 0 or vertical.size == 0:
        return []
    if horizontal.shape != vertical.shape:
        raise InvalidInputError(
            f"Mask shapes differ: horizontal={horizontal.shape}, vertical={vertical.shape}"
        )

    combined = cv2.bitwise_or(horizontal, vertical)
    joint_mask = cv2.bitwise_and(horizontal, vertical)

    if processor:
        processor.save_debug_image("combined_mask", combined)
        processor.save_debug_image("joint_mask", joint_mask)

    contours, _ = cv2.findContours(combined, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    tables: List[TableRegion] = []
    for contour in contours:
        area = cv2.contourArea(contour)
        # Filter individual lines or blobs that do not enclose a table
        if area < min_area:
            continue

        poly = cv2.approxPolyDP(contour, approx_epsilon, True)
        joints = find_joint_contours(joint_mask, cv2.boundingRect(poly))

        if not is_table_candidate(area, len(joints), min_area, min_joints):
            logger.debug(f"Discarded table candidate: area={area:.0f}, joints={len(joints)}")
            continue

        xs, ys = derive_boundaries(joints, tolerance)
        tables.append(
            TableRegion(
                joints=joints,
                xs=xs,
                ys=ys,
                rect=region_rect(joints),
                index=len(tables),
                area=float(area),
            )
        )

    logger.debug(f"Segmented {len(tables)} table(s) from {len(contours)} contour(s)")
    return tables
