"""Binarization and ruling line extraction for table detection."""

from typing import Optional, Tuple
import logging

import cv2
import numpy as np

from .base import BaseProcessor

logger = logging.getLogger(__name__)


class LineExtractionProcessor(BaseProcessor):
    """Processor for extracting horizontal and vertical ruling line masks."""

    def process(self, image: np.ndarray, **kwargs) -> Tuple[np.ndarray, np.ndarray]:
        """Extract ruling line masks from a page image.

        Args:
            image: Input page image (grayscale or BGR)
            **kwargs: Overrides for ``scale``, ``block_size`` and ``c``

        Returns:
            Tuple of (horizontal_mask, vertical_mask)
        """
        self.validate_image(image)

        # Clear previous debug images
        self.clear_debug_images()

        kwargs.setdefault("scale", self.get_config_value("line_extraction.scale", 30))
        kwargs.setdefault(
            "block_size", self.get_config_value("line_extraction.adaptive_block_size", 15)
        )
        kwargs.setdefault("c", self.get_config_value("line_extraction.adaptive_c", -2))

        # Pass processor instance for debug saving
        kwargs["_processor"] = self

        return extract_line_masks(image, **kwargs)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert an image to a single-channel 8-bit intensity image."""
    if image.ndim == 3:
        channels = image.shape[2]
        if channels == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        elif channels == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image[:, :, 0]
    else:
        gray = image

    if gray.dtype != np.uint8:
        gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    return gray


def binarize_inverted(image: np.ndarray, block_size: int = 15, c: float = -2) -> np.ndarray:
    """Adaptive mean threshold of the inverted image so that ink is 255.

    Args:
        image: Input image (grayscale or color)
        block_size: Size of pixel neighborhood (forced odd, at least 3)
        c: Constant subtracted from the local mean

    Returns:
        np.ndarray: Binary image (0 or 255 values only)
    """
    gray = to_grayscale(image)

    if block_size % 2 == 0:
        block_size += 1
    block_size = max(block_size, 3)

    return cv2.adaptiveThreshold(
        cv2.bitwise_not(gray),
        255,
        cv2.ADAPTIVE_THRESH_MEAN_C,
        cv2.THRESH_BINARY,
        block_size,
        c,
    )


def extract_line_masks(
    image: Optional[np.ndarray],
    scale: int = 30,
    block_size: int = 15,
    c: float = -2,
    **kwargs,
) -> Tuple[np.ndarray, np.ndarray]:
    """Extract horizontal and vertical ruling line masks.

    Runs of ink shorter than ``width / scale`` (horizontally) or
    ``height / scale`` (vertically) are removed by a morphological opening,
    so only plausible ruling lines of fully bordered tables survive.

    Args:
        image: Page image (grayscale or BGR). ``None`` or an empty array
            yields two empty masks.
        scale: Divisor of the image size giving the structuring element length
        block_size: Adaptive threshold neighborhood size
        c: Adaptive threshold constant

    Returns:
        Tuple of (horizontal_mask, vertical_mask), both uint8 0/255
    """
    processor = kwargs.get("_processor", None)

    if image is None or image.size == 0:
        logger.warning("No image data for line extraction, returning empty masks")
        empty = np.zeros((0, 0), dtype=np.uint8)
        return empty, empty.copy()

    binary = binarize_inverted(image, block_size=block_size, c=c)
    rows, cols = binary.shape[:2]

    if processor:
        processor.save_debug_image("binary", binary)

    horizontal_size = max(cols // scale, 1)
    vertical_size = max(rows // scale, 1)

    kernel_h = cv2.getStructuringElement(cv2.MORPH_RECT, (horizontal_size, 1))
    kernel_v = cv2.getStructuringElement(cv2.MORPH_RECT, (1, vertical_size))
    horizontal = cv2.morphologyEx(binary, cv2.MORPH_OPEN, kernel_h, iterations=1)
    vertical = cv2.morphologyEx(binary, cv2.MORPH_OPEN, kernel_v, iterations=1)

    if processor:
        processor.save_debug_image("horizontal_mask", horizontal)
        processor.save_debug_image("vertical_mask", vertical)

    logger.debug(
        f"Line masks extracted: kernel_h={horizontal_size}, kernel_v={vertical_size}, "
        f"h_pixels={int(np.count_nonzero(horizontal))}, "
        f"v_pixels={int(np.count_nonzero(vertical))}"
    )
    return horizontal, vertical
