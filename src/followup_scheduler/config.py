"""Configuration loading and defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "followup-scheduler"
_DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "config.yaml"


@dataclass
class Config:
    provider_timeout: float = 10.0
    submission_timeout: float = 30.0
    default_timezone: str = "EST"
    catalog_path: Path | None = None
    suggestion_delay: float = 0.0


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file, falling back to defaults where possible."""
    path = config_path or _DEFAULT_CONFIG_PATH
    path = Path(path).expanduser()

    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            f"Create one at {_DEFAULT_CONFIG_PATH} or pass --config."
        )

    raw = yaml.safe_load(path.read_text())
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"Invalid config file: {path}")

    kwargs: dict = {}
    for key in ("provider_timeout", "submission_timeout", "suggestion_delay"):
        if key in raw:
            value = raw[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"'{key}' must be a number of seconds")
            if value < 0 or (value == 0 and key != "suggestion_delay"):
                raise ValueError(f"'{key}' must be positive")
            kwargs[key] = float(value)
    if "default_timezone" in raw:
        kwargs["default_timezone"] = str(raw["default_timezone"])
    if raw.get("catalog_path"):
        kwargs["catalog_path"] = Path(raw["catalog_path"]).expanduser()

    return Config(**kwargs)


def load_config_or_default(config_path: Path | None = None) -> Config:
    """Like load_config, but a missing default config file just means defaults.

    An explicitly given path must exist.
    """
    if config_path is None and not _DEFAULT_CONFIG_PATH.exists():
        return Config()
    return load_config(config_path)
