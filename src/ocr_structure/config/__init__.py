"""
Configuration system with Pydantic models and validation.

Provides configuration management with type safety, validation, and
support for JSON, YAML and TOML configuration files.
"""

from .models import (
    Config,
    LineExtractionConfig,
    TableSegmentationConfig,
    GridConfig,
    AssemblyConfig,
    WordSourceConfig,
    OutputConfig,
    OutputFormat,
    LoggingConfig,
    LogLevel,
)
from .loader import (
    load_config,
    load_config_from_dict,
    apply_overrides,
    resolve_env_references,
    save_config,
    get_default_config,
    validate_config_file,
)

__all__ = [
    # Configuration models
    "Config",
    "LineExtractionConfig",
    "TableSegmentationConfig",
    "GridConfig",
    "AssemblyConfig",
    "WordSourceConfig",
    "OutputConfig",
    "OutputFormat",
    "LoggingConfig",
    "LogLevel",
    # Configuration loading
    "load_config",
    "load_config_from_dict",
    "apply_overrides",
    "resolve_env_references",
    "save_config",
    "get_default_config",
    "validate_config_file",
]
