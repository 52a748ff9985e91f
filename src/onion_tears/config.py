"""Threshold configuration: defaults, overrides and config-file discovery.

Configuration is looked up in this order, walking up from the start
directory:

1. ``.onion-tears.json``
2. the ``"onion-tears"`` key of a ``package.json``
3. nothing found -> built-in defaults

A threshold of ``0`` disables that threshold.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from onion_tears.exit_codes import ConfigError

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".onion-tears.json"
PACKAGE_JSON_KEY = "onion-tears"

DEFAULT_CYCLOMATIC_WARNING = 10
DEFAULT_CYCLOMATIC_ERROR = 20

# Accepted spellings -> Config field
_KEY_ALIASES = {
    "cyclomaticWarning": "cyclomatic_warning",
    "cyclomatic_warning": "cyclomatic_warning",
    "cyclomaticError": "cyclomatic_error",
    "cyclomatic_error": "cyclomatic_error",
}


@dataclass(frozen=True)
class Config:
    """Cyclomatic thresholds; both are inclusive lower bounds.

    ``None`` (or 0) means the threshold is not enforced.
    """

    cyclomatic_warning: int | None = None
    cyclomatic_error: int | None = None


def get_default_configuration() -> Config:
    return Config(
        cyclomatic_warning=DEFAULT_CYCLOMATIC_WARNING,
        cyclomatic_error=DEFAULT_CYCLOMATIC_ERROR,
    )


def create_configuration(overrides: dict[str, Any] | None = None, **kwargs: Any) -> Config:
    """Build a Config from the defaults plus *overrides*.

    Overrides may be passed as a mapping (camelCase or snake_case keys) or as
    keyword arguments.  A ``None`` value keeps the default.
    """
    merged = dict(overrides or {})
    merged.update(kwargs)
    values = _normalize(merged)
    default = get_default_configuration()
    warning = values.get("cyclomatic_warning")
    error = values.get("cyclomatic_error")
    return Config(
        cyclomatic_warning=default.cyclomatic_warning if warning is None else warning,
        cyclomatic_error=default.cyclomatic_error if error is None else error,
    )


def _normalize(raw: dict[str, Any]) -> dict[str, int | None]:
    """Map accepted keys onto Config fields and validate their values."""
    values: dict[str, int | None] = {}
    for key, value in raw.items():
        field_name = _KEY_ALIASES.get(key)
        if field_name is None:
            log.warning("Ignoring unknown configuration key %r", key)
            continue
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
            raise ConfigError(f"{key} must be a non-negative integer, got {value!r}")
        values[field_name] = value
    return values


def find_config_file(start_dir: str | Path, filename: str) -> Path | None:
    """Walk up from *start_dir* looking for *filename*."""
    current = Path(start_dir).resolve()
    while True:
        candidate = current / filename
        if candidate.is_file():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config_file(start_dir: str | Path = ".") -> dict[str, Any]:
    """Load threshold overrides for a project.

    Returns a (possibly empty) dict suitable for :func:`create_configuration`.
    Unreadable files are logged and skipped; invalid values raise ConfigError.
    """
    json_path = find_config_file(start_dir, CONFIG_FILE_NAME)
    if json_path is not None:
        try:
            data = json.loads(json_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            log.warning("Failed to parse %s: %s", json_path, exc)
        else:
            if isinstance(data, dict):
                log.debug("Loaded configuration from %s", json_path)
                return _normalize(data)
            log.warning("Ignoring %s: expected a JSON object", json_path)

    package_path = find_config_file(start_dir, "package.json")
    if package_path is not None:
        try:
            pkg = json.loads(package_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            log.warning("Failed to read %s: %s", package_path, exc)
        else:
            section = pkg.get(PACKAGE_JSON_KEY) if isinstance(pkg, dict) else None
            if isinstance(section, dict):
                log.debug("Loaded configuration from %s", package_path)
                return _normalize(section)

    return {}
