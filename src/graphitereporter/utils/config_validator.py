"""
Configuration loading and validation for reporters.

This module provides:
- The ConfigurationError raised for fatal setup problems
- The frozen ReporterConfig model (pydantic) with its nested transform config
- Helpers to load YAML/JSON files and collect validation errors
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

TimeUnit = Literal["nanoseconds", "microseconds", "milliseconds", "seconds", "minutes", "hours", "days"]


class ConfigurationError(Exception):
    """Raised when a reporter cannot be set up from its configuration."""
    pass


class NameTransformConfig(BaseModel):
    """Declarative form of a metric name transform."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["flatten_last", "flatten_all", "none"] = "flatten_last"
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    strip_prefixes: Tuple[str, ...] = ()


class ReporterConfig(BaseModel):
    """Settings for one Graphite reporter. Immutable once built."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = "localhost"
    port: int = Field(default=2003, ge=1, le=65535)
    enabled: bool = True
    prefix: Optional[str] = None
    cluster_name: Optional[str] = None
    strip_prefixes: Tuple[str, ...] = ()
    # "default", "all", or the list of labels to exclude
    send_filter: Union[Literal["default", "all"], Tuple[str, ...], None] = None
    name_transform: Optional[NameTransformConfig] = None
    period_seconds: float = Field(default=60.0, gt=0)
    preset: Literal["cluster", "host_suffix"] = "cluster"
    # Overrides the auto-detected local host name
    local_host: Optional[str] = None
    rate_unit: TimeUnit = "seconds"
    duration_unit: TimeUnit = "milliseconds"
    connect_timeout_seconds: Optional[float] = Field(default=10.0, gt=0)

    @field_validator("host")
    @classmethod
    def _host_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("host must not be blank")
        return value.strip()


def format_validation_errors(error: ValidationError) -> List[str]:
    """Flatten a pydantic ValidationError into readable messages."""
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        messages.append(f"{location}: {item['msg']}")
    return messages


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load a YAML (.yaml/.yml) or JSON configuration file into a dict."""
    config_file = Path(config_path)

    with open(config_file) as f:
        if config_file.suffix in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping, got {type(data).__name__}")
    # Reporter settings may be nested under a "graphite" section
    if isinstance(data.get("graphite"), dict):
        data = data["graphite"]
    return data


def split_list_settings(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with comma separated list settings split into lists.

    Applies to strip_prefixes and to send_filter excludes ("default" and
    "all" are kept as they are).
    """
    data = dict(data)
    if isinstance(data.get("strip_prefixes"), str):
        data["strip_prefixes"] = [
            part.strip() for part in data["strip_prefixes"].split(",") if part.strip()
        ]
        logger.debug("strip_prefixes: split comma separated string into a list")
    send_filter = data.get("send_filter")
    if isinstance(send_filter, str) and send_filter not in ("default", "all"):
        data["send_filter"] = [part.strip() for part in send_filter.split(",") if part.strip()]
        logger.debug("send_filter: split comma separated string into a list")
    return data


def validate_config(data: Dict[str, Any]) -> Tuple[bool, List[str], Optional[ReporterConfig]]:
    """Validate a configuration dict.

    Comma separated list settings are accepted, see :func:`split_list_settings`.

    Returns:
        (is_valid, errors, config) where config is None when invalid
    """
    try:
        config = ReporterConfig.model_validate(split_list_settings(data))
    except ValidationError as e:
        return False, format_validation_errors(e), None

    errors = []
    if config.send_filter is not None and not isinstance(config.send_filter, str):
        blank = [label for label in config.send_filter if not label.strip()]
        if blank:
            errors.append("send_filter: excluded labels must not be blank")
    if config.name_transform is None and config.prefix and config.preset == "cluster":
        logger.warning("prefix is ignored by the cluster preset; set cluster_name instead")

    return len(errors) == 0, errors, config if not errors else None


def build_config(data: Dict[str, Any]) -> ReporterConfig:
    """Validate a configuration dict, raising ConfigurationError when invalid."""
    is_valid, errors, config = validate_config(data)
    if not is_valid:
        raise ConfigurationError("Invalid reporter configuration: " + "; ".join(errors))
    return config


def validate_and_fix_config(config_path: str) -> Tuple[bool, List[str], Optional[Dict[str, Any]]]:
    """
    Load and validate a configuration file.

    Strings given where lists are expected (strip_prefixes, send_filter
    excludes) are split on commas before validation.

    Returns:
        (is_valid, errors, fixed_config)
    """
    config = split_list_settings(load_config_file(config_path))
    is_valid, errors, _ = validate_config(config)

    if not is_valid:
        logger.warning(f"Configuration has {len(errors)} validation errors")
        for error in errors[:10]:
            logger.warning(f"  - {error}")
        if len(errors) > 10:
            logger.warning(f"  ... and {len(errors) - 10} more errors")

    return is_valid, errors, config
