"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local env overrides (gitignored)
  4. Environment variables        — ``CLINICAL_SCORES_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

CLI commands receive an ``AppConfig`` instance, never raw dicts or env var
lookups scattered through the codebase. Scoring functions themselves take no
configuration at all.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class CatalogConfig(BaseModel):
    """Where instrument tables come from and how strictly they are checked."""

    model_config = ConfigDict(frozen=True)

    data_dir: Optional[str] = None       # None → tables shipped in the package
    strict_monotonic: bool = True

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: Optional[str]) -> Optional[str]:
        # Empty string in TOML means "use the shipped tables".
        if v is not None and not v.strip():
            return None
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "WARNING"
    log_file: Optional[str] = None
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class DisplayConfig(BaseModel):
    """What the text formatters include besides total and tier."""

    model_config = ConfigDict(frozen=True)

    show_considerations: bool = True
    show_references: bool = False


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + env vars.
    """

    model_config = ConfigDict(frozen=True)

    catalog: CatalogConfig = CatalogConfig()
    logging: LoggingConfig = LoggingConfig()
    display: DisplayConfig = DisplayConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``. When the default file is
            absent (e.g. an installed wheel) the built-in defaults are used.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If an explicitly given ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    raw: dict[str, Any] = {}
    if config_path is None:
        config_path = root / "config" / "default.toml"
        explicit = False
    else:
        explicit = True

    config_path = Path(config_path)
    if config_path.exists():
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    elif explicit:
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Pass an existing TOML file or omit --config to use the defaults."
        )

    # Also merge local.toml if present (gitignored local overrides)
    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply CLINICAL_SCORES_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CLINICAL_SCORES_* env vars to the raw config dict.

    Supported overrides:
      CLINICAL_SCORES_CATALOG_DIR → raw["catalog"]["data_dir"]
      CLINICAL_SCORES_LOG_LEVEL   → raw["logging"]["level"]
      CLINICAL_SCORES_DEBUG       → raw["debug"]
    """
    if catalog_dir := os.environ.get("CLINICAL_SCORES_CATALOG_DIR"):
        raw.setdefault("catalog", {})["data_dir"] = catalog_dir

    if log_level := os.environ.get("CLINICAL_SCORES_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("CLINICAL_SCORES_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        catalog=CatalogConfig(**raw.get("catalog", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        display=DisplayConfig(**raw.get("display", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
