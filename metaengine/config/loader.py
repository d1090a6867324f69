"""YAML and env loader with fail-fast validation."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from metaengine.models import EngineSettings

CONFIG_ENV_VAR = "METAENGINE_CONFIG"
DEFAULT_CONFIG_PATH = "config/analysis.yaml"


def _read_yaml(path: str | Path) -> dict:
    resolved = Path(path)
    if not resolved.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with resolved.open("r", encoding="utf-8") as file_obj:
        loaded = yaml.safe_load(file_obj) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Expected object at root of YAML file: {path}")
    return loaded


def resolve_config_path(path: str | Path | None = None) -> Path | None:
    """Explicit path, then $METAENGINE_CONFIG, then config/analysis.yaml if it exists."""
    if path is not None:
        return Path(path)
    load_dotenv()
    from_env = os.getenv(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    default = Path(DEFAULT_CONFIG_PATH)
    return default if default.exists() else None


def load_settings(path: str | Path | None = None) -> EngineSettings:
    """Load engine settings; built-in defaults when no config file is found.

    An explicitly given (or env-selected) path that does not exist raises
    FileNotFoundError; invalid values raise pydantic's ValidationError.
    """
    resolved = resolve_config_path(path)
    if resolved is None:
        return EngineSettings()
    return EngineSettings.model_validate(_read_yaml(resolved))
