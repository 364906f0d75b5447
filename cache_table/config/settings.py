"""cache_table.config.settings
============================
Runtime configuration for **cache-table**.

This module provides a single `CacheSettings` object powered by
`pydantic‑settings` (v2) that merges configuration from **environment
variables**, **.env**, **TOML** and **YAML** files. The loading order
(highest → lowest priority):

1. Environment variables (``CACHE_TABLE_*``)
2. Values passed via `CacheSettings(...)` kwargs
3. External YAML (``settings.yaml`` or path in ``CACHE_TABLE_SETTINGS``)
4. External TOML (``settings.toml`` or path in ``CACHE_TABLE_SETTINGS``)
5. ``.env`` file in the working directory (if present)
6. File‑secrets directory

The module also exposes helpers:

* `get_settings()` – cached accessor for DI/tests.
* `configure_logging()` – sets up logging and honours
  `log_level_per_module` for fine‑grained control.

Usage
-----
```python
from cache_table.config.settings import get_settings, configure_logging

settings = get_settings()
configure_logging(settings)
```
"""
from __future__ import annotations

import logging
import logging.config
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Dict, Optional, Tuple, Type

import yaml
from pydantic import Field, StringConstraints
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
    YamlConfigSettingsSource,
)

from cache_table.utils.exceptions import ConfigurationError

SETTINGS_PATH_ENV = "CACHE_TABLE_SETTINGS"


def _settings_file(default: str, *suffixes: str) -> Path:
    # CACHE_TABLE_SETTINGS only replaces the default of the same format
    env_val = os.getenv(SETTINGS_PATH_ENV)
    if env_val and Path(env_val).suffix in suffixes:
        return Path(env_val)
    return Path(default)


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------

_LogLevel = Annotated[
    str,
    StringConstraints(pattern=r"^(CRITICAL|ERROR|WARNING|INFO|DEBUG|NOTSET)$", strip_whitespace=True),
]


class CacheSettings(BaseSettings):
    """Runtime settings for cache tables (validated & type‑safe)."""

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: _LogLevel = Field("INFO", description="Root log level")
    log_level_per_module: Optional[Dict[str, _LogLevel]] = Field(
        default=None,
        description="Per‑module log levels, e.g. '{\"cache_table.core.table\": \"DEBUG\"}'.",
    )
    logging_config: Optional[Path] = Field(
        default=None, description="Optional logging dictConfig YAML file")

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------
    metrics_enabled: bool = Field(True, description="Record Prometheus metrics for tables")
    sweep_thread_prefix: str = Field(
        "cache-sweep", description="Thread name prefix of the per-table sweep worker")
    default_table: str = Field("default", description="Table name used by the CLI")

    # ------------------------------------------------------------------
    # Pydantic settings config
    # ------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_prefix="CACHE_TABLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # custom sources (TOML / YAML)
    # ------------------------------------------------------------------

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Define custom loading order with TOML & YAML support."""

        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=_settings_file("settings.yaml", ".yaml", ".yml"))
        toml_settings = TomlConfigSettingsSource(settings_cls, toml_file=_settings_file("settings.toml", ".toml"))

        # Precedence: ENV → init → YAML → TOML → .env → secrets
        return (
            env_settings,
            init_settings,
            yaml_settings,
            toml_settings,
            dotenv_settings,
            file_secret_settings,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> CacheSettings:
    """Return a cached `CacheSettings` instance (singleton‑like)."""
    return CacheSettings()


def configure_logging(settings: CacheSettings | None = None) -> None:
    """Configure logging from ``settings.logging_config`` and apply overrides.

    If no logging file is configured, falls back to ``basicConfig``. Call
    this once at program startup.
    """
    settings = settings or get_settings()
    cfg_path = settings.logging_config
    if cfg_path is not None:
        if not cfg_path.exists():
            raise ConfigurationError(
                "Logging config file not found",
                context={"logging_config": str(cfg_path)},
            )
        with cfg_path.open("r", encoding="utf-8") as fp:
            config_dict = yaml.safe_load(fp)
        try:
            logging.config.dictConfig(config_dict)
        except (ValueError, TypeError, AttributeError, ImportError) as exc:
            raise ConfigurationError(
                "Invalid logging config",
                context={"logging_config": str(cfg_path)},
                cause=exc,
            ) from exc
    else:
        logging.basicConfig(level=settings.log_level)

    # fine‑grained overrides
    if settings.log_level_per_module:
        for mod, lvl in settings.log_level_per_module.items():
            logging.getLogger(mod).setLevel(lvl)
