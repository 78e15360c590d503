"""
Reading, validating and writing structure extraction settings.

Settings files may be JSON, YAML or TOML. String values may reference
environment variables as ``${NAME}`` or ``${NAME:fallback}``; ``OCRS_NAME``
is looked up before ``NAME``.
"""

import json
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .models import Config
from ..exceptions import ConfigurationError

PathLike = Union[str, Path]

ENV_PREFIX = "OCRS_"
ENV_REFERENCE = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    return yaml.safe_load(text) or {}


def _parse_toml(text: str) -> Any:
    return tomllib.loads(text)


_PARSERS: Dict[str, Callable[[str], Any]] = {
    ".json": _parse_json,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
    ".toml": _parse_toml,
}

_PARSE_ERRORS = (json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError)


def _guess_parser(text: str) -> Callable[[str], Any]:
    """Pick a parser for a file without a known extension."""
    stripped = text.lstrip()
    if stripped.startswith("{"):
        return _parse_json
    if stripped.startswith("["):
        # A TOML table header also starts with "["
        try:
            tomllib.loads(text)
            return _parse_toml
        except tomllib.TOMLDecodeError:
            return _parse_yaml
    return _parse_yaml


def resolve_env_references(data: Any, prefix: str = ENV_PREFIX) -> Any:
    """Replace ``${NAME}`` references in every string of a parsed settings tree.

    Unset variables without a fallback are left as written.
    """
    if isinstance(data, dict):
        return {key: resolve_env_references(value, prefix) for key, value in data.items()}
    if isinstance(data, list):
        return [resolve_env_references(item, prefix) for item in data]
    if not isinstance(data, str):
        return data

    def lookup(match: re.Match) -> str:
        name, fallback = match.group(1), match.group(2)
        for candidate in (prefix + name, name):
            if candidate in os.environ:
                return os.environ[candidate]
        return fallback if fallback is not None else match.group(0)

    return ENV_REFERENCE.sub(lookup, data)


def _describe_errors(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"]) or "<root>"
        lines.append(f"  {where}: {item['msg']}")
    return "\n".join(lines)


def load_config_from_dict(config_data: Dict[str, Any]) -> Config:
    """
    Validate a settings mapping.

    Raises:
        ConfigurationError: Listing every invalid field
    """
    if not isinstance(config_data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(config_data).__name__}"
        )
    try:
        return Config.model_validate(config_data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration:\n" + _describe_errors(e),
            error_count=e.error_count(),
        ) from e


def load_config(config_path: PathLike) -> Config:
    """
    Read and validate a settings file.

    The format follows the file extension; other extensions are sniffed
    from the content.

    Args:
        config_path: JSON, YAML or TOML file

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}", path=str(path))

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}", path=str(path)) from e

    parser = _PARSERS.get(path.suffix.lower()) or _guess_parser(text)
    try:
        data = parser(text)
    except _PARSE_ERRORS as e:
        raise ConfigurationError(f"Cannot parse configuration {path}: {e}", path=str(path)) from e

    return load_config_from_dict(resolve_env_references(data))


def apply_overrides(config: Config, overrides: Dict[str, Any]) -> Config:
    """
    Return a copy of ``config`` with dotted-key overrides applied and revalidated.

    ``None`` values are skipped, so unset command line options can be passed
    through unchanged.

    Example:
        apply_overrides(config, {"output.format": "json", "debug_dir": None})
    """
    data = config.model_dump(mode="json")
    for dotted, value in overrides.items():
        if value is None:
            continue
        *parents, leaf = dotted.split(".")
        section = data
        for part in parents:
            if not isinstance(section.get(part), dict):
                raise ConfigurationError(f"Unknown configuration section: {dotted}")
            section = section[part]
        section[leaf] = value
    return load_config_from_dict(data)


def save_config(config: Config, output_path: PathLike, format_type: Optional[str] = None) -> None:
    """
    Write settings as JSON or YAML.

    Args:
        config: Configuration to write
        output_path: Destination file; parent directories are created
        format_type: 'json' or 'yaml'; taken from the extension if None

    Raises:
        ConfigurationError: For any other format
    """
    path = Path(output_path)
    format_type = (format_type or path.suffix.lstrip(".")).lower()
    data = config.model_dump(mode="json")

    if format_type == "json":
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    elif format_type in ("yaml", "yml"):
        text = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
    else:
        raise ConfigurationError(f"Unsupported configuration format: {format_type!r}")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def get_default_config() -> Config:
    """Configuration with every default value."""
    return Config()


def validate_config_file(config_path: PathLike) -> bool:
    """Return True if the file loads; raise ConfigurationError otherwise."""
    load_config(config_path)
    return True
