"""Ruled table detection and structured OCR document assembly."""

__version__ = "1.0.0"
__author__ = "OCR Pipeline Team"

from .assembler import (
    AssemblerContext,
    ContainerType,
    EventKind,
    StructureEvent,
    StructuredDocumentAssembler,
    assemble_page,
)
from .models import BoundingBox, Level, Point, RecognizedWord, TableRegion
from .pipeline import PageJob, PageResult, PageStructurePipeline
from .processors import detect_tables, detect_tables_in_file

__all__ = [
    "AssemblerContext",
    "BoundingBox",
    "ContainerType",
    "EventKind",
    "Level",
    "PageJob",
    "PageResult",
    "PageStructurePipeline",
    "Point",
    "RecognizedWord",
    "StructureEvent",
    "StructuredDocumentAssembler",
    "TableRegion",
    "assemble_page",
    "detect_tables",
    "detect_tables_in_file",
]
