from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


load_dotenv(override=False)

ROOT_ENV = "RELEASEHOOK_ROOT"
DEFAULT_CONFIG_NAME = "releasehook.yaml"


def _project_root() -> Path:
    env = os.getenv(ROOT_ENV)
    if env:
        return Path(env)
    return Path.cwd()


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Resolve a config file path relative to the project root.

    Absolute paths are returned unchanged; the root is ``RELEASEHOOK_ROOT`` or
    the current working directory.
    """
    p = Path(path or DEFAULT_CONFIG_NAME)
    if p.is_absolute():
        return p
    return _project_root() / p


def expand_env(value: Any) -> Any:
    """Expand ``${VAR}`` references, failing loudly when a variable is unset."""
    if isinstance(value, str):
        expanded = os.path.expandvars(value)
        if "${" in value and "}" in value and expanded == value:
            raise ConfigError(f"Environment variable not set for value: {value}")
        return expanded
    return value


def load_section(section: str, path: str | Path | None = None) -> dict[str, Mapping[str, Any]]:
    """Load the named profiles of one top-level section of releasehook.yaml.

    Returns a dict of profile-key -> raw mapping.
    """
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        raise ConfigError(f"{cfg_path.name} not found at {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    raw = data.get(section)
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{cfg_path.name} missing '{section}' section")
    profiles: dict[str, Mapping[str, Any]] = {}
    for key, value in raw.items():
        if not isinstance(value, Mapping):
            raise ConfigError(f"{section} profile '{key}' must be a mapping")
        profiles[str(key)] = value
    if not profiles:
        raise ConfigError(f"No {section} profiles defined in {cfg_path.name}")
    return profiles
