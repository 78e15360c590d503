"""Ruled table detection for one page: line masks, segmentation and grid boundaries."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

import numpy as np

from ..exceptions import ImageUnreadableError
from ..models import TableRegion
from .base import BaseProcessor
from .image_io import load_image
from .line_extraction import extract_line_masks
from .table_segmentation import segment_tables

logger = logging.getLogger(__name__)


class TableDetectionProcessor(BaseProcessor):
    """Processor for detecting lattice tables in a page image."""

    def process(
        self, image: np.ndarray, **kwargs
    ) -> Union[List[TableRegion], Tuple[List[TableRegion], Dict[str, Any]]]:
        """Detect tables in an image.

        Args:
            image: Input page image
            **kwargs: Parameters for table detection

        Returns:
            List of TableRegion, plus an analysis dict if return_analysis=True
        """
        self.validate_image(image)

        # Clear previous debug images
        self.clear_debug_images()

        params = {
            "scale": self.get_config_value("line_extraction.scale", 30),
            "block_size": self.get_config_value("line_extraction.adaptive_block_size", 15),
            "c": self.get_config_value("line_extraction.adaptive_c", -2),
            "min_area": self.get_config_value("segmentation.min_table_area", 50.0),
            "min_joints": self.get_config_value("segmentation.min_joint_count", 5),
            "approx_epsilon": self.get_config_value("segmentation.approx_epsilon", 3.0),
            "tolerance": self.get_config_value("grid.boundary_tolerance", 3),
        }
        params.update(kwargs)

        # Pass processor instance to detect_tables for debug saving
        params["_processor"] = self

        return detect_tables(image, **params)

    def process_file(self, image_path: Path, **kwargs) -> List[TableRegion]:
        """Detect tables in an image file, degrading to no tables if it is unreadable."""
        try:
            image = load_image(image_path)
        except ImageUnreadableError as e:
            logger.warning(f"{e}; assembling page without table detection")
            return []
        kwargs.pop("return_analysis", None)
        return self.process(image, **kwargs)


def detect_tables(
    image: Optional[np.ndarray],
    scale: int = 30,
    block_size: int = 15,
    c: float = -2,
    min_area: float = 50.0,
    min_joints: int = 5,
    approx_epsilon: float = 3.0,
    tolerance: int = 3,
    return_analysis: bool = False,
    **kwargs,
) -> Union[List[TableRegion], Tuple[List[TableRegion], Dict[str, Any]]]:
    """
    Detect fully ruled tables in a page image.

    Args:
        image: Page image (grayscale or BGR)
        scale: Divisor of the image size giving the line kernel length
        block_size: Adaptive threshold neighborhood size
        c: Adaptive threshold constant
        min_area: Minimum table contour area in pixels
        min_joints: Minimum number of line intersections per table
        approx_epsilon: Polygon approximation accuracy for table outlines
        tolerance: Boundary merge tolerance in pixels
        return_analysis: If True, also return detection statistics

    Returns:
        List of TableRegion or (tables, analysis) if return_analysis=True
    """
    processor = kwargs.get("_processor", None)

    horizontal, vertical = extract_line_masks(
        image, scale=scale, block_size=block_size, c=c, _processor=processor
    )
    tables = segment_tables(
        horizontal,
        vertical,
        min_area=min_area,
        min_joints=min_joints,
        approx_epsilon=approx_epsilon,
        tolerance=tolerance,
        _processor=processor,
    )

    logger.info(
        f"Detected {len(tables)} table(s): "
        + ", ".join(f"{t.num_rows}x{t.num_cols}" for t in tables)
        if tables else "Detected 0 table(s)"
    )

    if not return_analysis:
        return tables

    analysis = {
        "table_count": len(tables),
        "tables": [t.to_dict() for t in tables],
        "image_shape": None if image is None else list(image.shape),
        "horizontal_pixels": int(np.count_nonzero(horizontal)),
        "vertical_pixels": int(np.count_nonzero(vertical)),
        "scale": scale,
        "boundary_tolerance": tolerance,
    }
    return tables, analysis


def detect_tables_in_file(image_path: Union[str, Path], **kwargs) -> List[TableRegion]:
    """Load an image and detect its tables; an unreadable image yields no tables."""
    try:
        image = load_image(image_path)
    except ImageUnreadableError as e:
        logger.warning(f"{e}; assembling page without table detection")
        return []
    kwargs.pop("return_analysis", None)
    return detect_tables(image, **kwargs)
