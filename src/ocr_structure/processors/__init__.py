"""Table Detection Processors Module.

This module provides the image processing components that find ruled tables
on a page and answer which table and cell a point belongs to.
"""

# Base processor
from .base import BaseProcessor

# Image I/O
from .image_io import (
    load_image,
    get_image_files,
    expand_image_paths,
)

# Binarization and line extraction
from .line_extraction import (
    LineExtractionProcessor,
    binarize_inverted,
    extract_line_masks,
    to_grayscale,
)

# Table segmentation
from .table_segmentation import (
    TableSegmentationProcessor,
    find_joint_contours,
    is_table_candidate,
    segment_tables,
)

# Grid boundaries
from .grid_clustering import (
    dedupe_coordinates,
    derive_boundaries,
    enumerate_table_cells,
)

# Membership and cell lookup
from .table_lookup import (
    contains,
    find_table_index,
    locate,
)

# Table detection
from .table_detection import (
    TableDetectionProcessor,
    detect_tables,
    detect_tables_in_file,
)

__all__ = [
    # Base
    "BaseProcessor",

    # Image I/O
    "load_image",
    "get_image_files",
    "expand_image_paths",

    # Line extraction
    "LineExtractionProcessor",
    "binarize_inverted",
    "extract_line_masks",
    "to_grayscale",

    # Table segmentation
    "TableSegmentationProcessor",
    "find_joint_contours",
    "is_table_candidate",
    "segment_tables",

    # Grid boundaries
    "dedupe_coordinates",
    "derive_boundaries",
    "enumerate_table_cells",

    # Membership and cell lookup
    "contains",
    "find_table_index",
    "locate",

    # Table detection
    "TableDetectionProcessor",
    "detect_tables",
    "detect_tables_in_file",
]
