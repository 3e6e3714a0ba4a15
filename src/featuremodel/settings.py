"""
Editor settings for the feature model engine.

Immutable settings with validation on construction. Settings can be
loaded from a YAML file; every key is optional and unknown keys are
rejected so that typos do not pass silently.

Example settings.yaml:

    root_name: Product
    default_configuration_name: Default
    fallback_configuration_name: New Configuration
    xml_indent: "\\t"
    log_level: DEBUG
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EditorSettings:
    """
    Settings shared by the manager and the codec (immutable).

    Attributes:
        root_name: Name of the root feature in a blank model
        default_configuration_name: Configuration created for a blank model,
            and for a loaded model that has none
        fallback_configuration_name: Configuration created when the last
            one is removed
        xml_indent: Indentation unit for serialized XML
        log_level: Level used by configure_logging()
    """

    root_name: str = "Root"
    default_configuration_name: str = "Configuration1"
    fallback_configuration_name: str = "New Configuration"
    xml_indent: str = "  "
    log_level: str = "WARNING"

    def __post_init__(self):
        for name in ("root_name", "default_configuration_name", "fallback_configuration_name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")
        if not isinstance(self.xml_indent, str) or self.xml_indent.strip():
            raise ValueError(f"xml_indent must be whitespace only, got {self.xml_indent!r}")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level!r}")


DEFAULT_SETTINGS = EditorSettings()


def settings_from_dict(data: Optional[Dict[str, Any]]) -> EditorSettings:
    """
    Build settings from a plain mapping (e.g. parsed YAML).

    Raises:
        ValueError: On unknown keys or invalid values
    """
    if not data:
        return DEFAULT_SETTINGS
    if not isinstance(data, dict):
        raise ValueError(f"settings must be a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(EditorSettings)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown settings: {', '.join(sorted(unknown))}")
    return EditorSettings(**data)


def load_settings(path: Union[str, Path]) -> EditorSettings:
    """
    Load settings from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On unknown keys or invalid values
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    settings = settings_from_dict(data)
    logger.debug("Loaded settings from %s: %s", path, settings)
    return settings


def configure_logging(settings: EditorSettings = DEFAULT_SETTINGS) -> None:
    """Basic console logging for scripts; the library never calls this."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
