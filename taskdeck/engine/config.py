"""
TaskDeck Configuration — Load and validate taskdeck.yaml at startup.

Backend credentials may come from the file or from the environment:
    TASKDECK_BACKEND_URL / SUPABASE_URL
    TASKDECK_ANON_KEY    / SUPABASE_ANON_KEY

Usage:
    from taskdeck.engine.config import load_config, get_config
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, field_validator

from taskdeck.engine.errors import ConfigError

CONFIG_FILENAME = "taskdeck.yaml"

# Environment variable → backend field. First match wins.
ENV_OVERRIDES: Dict[str, tuple] = {
    "url": ("TASKDECK_BACKEND_URL", "SUPABASE_URL"),
    "anon_key": ("TASKDECK_ANON_KEY", "SUPABASE_ANON_KEY"),
}


# ---------------------------------------------------------------------------
# Pydantic models for taskdeck.yaml
# ---------------------------------------------------------------------------

class BackendConfig(BaseModel):
    url: str = ""
    anon_key: str = ""
    table: str = "tasks"
    bucket: str = "task_uploads"
    timeout: float = 10.0

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def require_credentials(self) -> None:
        """Raise ConfigError unless both url and anon_key are set."""
        missing = [name for name in ("url", "anon_key") if not getattr(self, name)]
        if missing:
            raise ConfigError(
                f"Backend connection not configured: missing {', '.join(missing)}",
                missing=missing,
            )


class UIConfig(BaseModel):
    newest_first: bool = True
    default_theme: str = "dark"
    auth_route: str = "/auth"

    @field_validator("default_theme")
    @classmethod
    def validate_theme(cls, v: str) -> str:
        if v not in ("dark", "light"):
            raise ValueError(f"default_theme must be dark/light, got '{v}'")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".taskdeck/logs"
    file_logging: bool = True


class TaskDeckConfig(BaseModel):
    """Root model for taskdeck.yaml."""
    environment: str = "dev"

    backend: BackendConfig = BackendConfig()
    ui: UIConfig = UIConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[TaskDeckConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for taskdeck.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def _apply_env_overrides(backend: Dict) -> Dict:
    merged = dict(backend)
    for field, names in ENV_OVERRIDES.items():
        for name in names:
            value = os.environ.get(name)
            if value:
                merged[field] = value
                break
    return merged


def load_config(config_path: Optional[str] = None) -> TaskDeckConfig:
    """
    Load and validate taskdeck.yaml, then apply environment overrides.

    Args:
        config_path: Explicit path to taskdeck.yaml. If None, auto-discovers.

    Returns:
        Validated TaskDeckConfig instance. Defaults are used when the file
        does not exist.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    raw: Dict = {}
    path = Path(config_path)
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", path=str(path)) from e
        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a mapping", path=str(path))

    config_data = {
        "environment": raw.get("environment", "dev"),
        "backend": _apply_env_overrides(raw.get("backend") or {}),
        "ui": raw.get("ui") or {},
        "logging": raw.get("logging") or {},
    }

    try:
        _config = TaskDeckConfig(**config_data)
    except ValueError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}", path=str(path)) from e
    return _config


def get_config() -> TaskDeckConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
