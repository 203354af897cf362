"""Runtime settings and logging setup.

Settings are layered, later sources winning:

  1. built-in defaults (certificate checks on, ERROR logging)
  2. ``~/.proxmox/config.yaml`` or the file given with ``--config``
  3. ``PROXMOX_TRUST`` / ``PROXMOX_LOG_LEVEL`` environment variables
  4. command-line flags

Example config.yaml::

    trust: true
    log_level: INFO
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from proxmox_cli.exceptions import ConfigError

TRUTHY = {"1", "true", "yes", "on"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def default_config_path() -> Path:
    return Path.home() / ".proxmox" / "config.yaml"


@dataclass
class Settings:
    trust: bool = False
    log_level: str = "ERROR"

    def __post_init__(self) -> None:
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level '{self.log_level}'. Must be one of {LOG_LEVELS}"
            )


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Read the YAML settings file.

    The default location is optional; a path the user asked for explicitly
    must exist.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else default_config_path()
    if not config_path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {config_path}")
        return {}

    try:
        data = yaml.safe_load(config_path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"could not load {config_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return data


def load_settings(
    config_path: Path | None = None,
    *,
    trust: bool | None = None,
    verbose: bool = False,
    environ: dict[str, str] | None = None,
) -> Settings:
    env = os.environ if environ is None else environ
    cfg = load_config_file(config_path)

    resolved_trust = _as_bool(cfg.get("trust", False))
    log_level = cfg.get("log_level", "ERROR")

    if "PROXMOX_TRUST" in env:
        resolved_trust = _as_bool(env["PROXMOX_TRUST"])
    if env.get("PROXMOX_LOG_LEVEL"):
        log_level = env["PROXMOX_LOG_LEVEL"]

    if trust:
        resolved_trust = True
    if verbose:
        log_level = "DEBUG"

    return Settings(trust=resolved_trust, log_level=log_level)


def configure_logging(level: str = "ERROR") -> None:
    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT, force=True)
