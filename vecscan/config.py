"""Load and validate vecscan YAML config files."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml


# Default config values
DEFAULTS: dict[str, Any] = {
    "scan": {
        "check_invariants": False,
    },
    "logging": {
        "level": "WARNING",
    },
    "rules": [],
}

DEFAULT_CONFIG_NAME = ".vecscan.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when config is invalid or missing."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Override wins on conflicts."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate(config: dict) -> None:
    """Validate scan, logging and rules sections."""
    scan = config.get("scan")
    if not isinstance(scan, dict):
        raise ConfigError("'scan' must be a mapping")
    if not isinstance(scan.get("check_invariants"), bool):
        raise ConfigError("'scan.check_invariants' must be true or false")

    logging_cfg = config.get("logging")
    if not isinstance(logging_cfg, dict):
        raise ConfigError("'logging' must be a mapping")
    level = logging_cfg.get("level")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ConfigError(
            f"Unsupported log level '{level}'. Expected one of {', '.join(LOG_LEVELS)}."
        )

    if not isinstance(config.get("rules"), list):
        raise ConfigError("'rules' must be a list")

    # Parse once so malformed rules fail at load time, not mid-scan.
    from vecscan.rules import parse_rules
    parse_rules(config["rules"])


def load_config(config_path: Path | None = None) -> dict:
    """Load config from *config_path*.

    Falls back to ``.vecscan.yaml`` in the cwd if config_path is None.
    Merges with DEFAULTS so callers always get a full config dict. An empty
    file yields the defaults.
    """
    path = Path(config_path) if config_path else Path.cwd() / DEFAULT_CONFIG_NAME

    if not path.exists():
        raise ConfigError(f"Config not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config is not valid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    # Deep copy so callers can mutate the result without touching DEFAULTS.
    config = _deep_merge(copy.deepcopy(DEFAULTS), raw)
    _validate(config)
    return config


def log_level(config: dict) -> int:
    """Return the numeric ``logging`` level named in config."""
    return getattr(logging, config["logging"]["level"].upper())
