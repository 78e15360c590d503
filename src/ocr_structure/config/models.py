"""
Pydantic models for OCR structure configuration.

Defines configuration schemas with validation, defaults, and documentation
for table detection, document assembly, output and logging.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogLevel(str, Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class OutputFormat(str, Enum):
    """Supported document output formats."""
    XHTML = "xhtml"
    JSON = "json"


class LineExtractionConfig(BaseModel):
    """Configuration for binarization and ruling line extraction."""

    scale: int = Field(
        default=30,
        gt=0,
        description="Line kernel length is image width (or height) divided by this"
    )
    adaptive_block_size: int = Field(
        default=15,
        ge=3,
        description="Neighborhood size of the adaptive threshold (must be odd)"
    )
    adaptive_c: float = Field(
        default=-2.0,
        description="Constant subtracted from the local mean"
    )

    @field_validator('adaptive_block_size')
    @classmethod
    def validate_odd_block_size(cls, v):
        """Ensure block size is odd."""
        if v % 2 == 0:
            raise ValueError("Block size must be odd")
        return v


class TableSegmentationConfig(BaseModel):
    """Configuration for grouping ruling lines into tables."""

    min_table_area: float = Field(
        default=50.0,
        ge=0.0,
        description="Minimum enclosed contour area of a table in pixels"
    )
    min_joint_count: int = Field(
        default=5,
        ge=1,
        description="Minimum number of line intersections of a table"
    )
    approx_epsilon: float = Field(
        default=3.0,
        ge=0.0,
        description="Polygon approximation accuracy for table outlines"
    )


class GridConfig(BaseModel):
    """Configuration for grid boundary clustering."""

    boundary_tolerance: int = Field(
        default=3,
        ge=1,
        description="Coordinates closer than this are one grid line (pixels)"
    )


class AssemblyConfig(BaseModel):
    """Configuration for structured document assembly."""

    font_info: bool = Field(
        default=False,
        description="Attach font names to word events"
    )
    emit_word_direction: bool = Field(
        default=True,
        description="Attach word direction when it differs from the paragraph"
    )


class OutputConfig(BaseModel):
    """Configuration for rendering assembled pages."""

    format: OutputFormat = Field(
        default=OutputFormat.XHTML,
        description="Output document format"
    )
    title: str = Field(
        default="OCR output",
        description="Document title for XHTML output"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging setup."""

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Base logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file path"
    )
    use_rich: bool = Field(
        default=True,
        description="Whether to use rich console output"
    )
    format_style: str = Field(
        default="detailed",
        pattern="^(simple|detailed|minimal)$",
        description="Logging format style"
    )


class WordSourceConfig(BaseModel):
    """Configuration for running the tesseract command line recognizer."""

    language: str = Field(
        default="eng",
        description="Tesseract language code(s)"
    )
    psm: Optional[int] = Field(
        default=None,
        ge=0,
        le=13,
        description="Tesseract page segmentation mode"
    )
    timeout_s: float = Field(
        default=120.0,
        gt=0.0,
        description="Timeout for one tesseract run in seconds"
    )


class Config(BaseModel):
    """Main configuration model for table structure extraction."""

    model_config = ConfigDict(
        extra="forbid",  # Prevent extra fields
        validate_assignment=True,  # Validate on assignment
        use_enum_values=True,  # Use enum values in serialization
    )

    line_extraction: LineExtractionConfig = Field(
        default_factory=LineExtractionConfig,
        description="Line extraction configuration"
    )
    segmentation: TableSegmentationConfig = Field(
        default_factory=TableSegmentationConfig,
        description="Table segmentation configuration"
    )
    grid: GridConfig = Field(
        default_factory=GridConfig,
        description="Grid clustering configuration"
    )
    assembly: AssemblyConfig = Field(
        default_factory=AssemblyConfig,
        description="Document assembly configuration"
    )
    words: WordSourceConfig = Field(
        default_factory=WordSourceConfig,
        description="Recognizer configuration"
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Output configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration"
    )

    save_debug_images: bool = Field(
        default=False,
        description="Keep intermediate masks for inspection"
    )
    debug_dir: Optional[str] = Field(
        default=None,
        description="Directory where intermediate masks are written"
    )

    # Meta configuration
    version: str = Field(
        default="1.0.0",
        description="Configuration version"
    )
    description: Optional[str] = Field(
        default=None,
        description="Configuration description"
    )
