"""Configuration objects and helpers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from enum import Enum
import logging
from pathlib import Path
from typing import Any
import warnings

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

from .errors import ConfigurationError

logger = structlog.get_logger(__name__, component="config")


class CacheKeyPolicy(str, Enum):
    """How cache keys are derived from a payload."""

    CONTENT = "content"
    CONTENT_AND_OPTIONS = "content+options"


class MissingToolPolicy(str, Enum):
    """What to do when an external minifier binary cannot be located."""

    RAISE = "raise"
    PASSTHROUGH = "passthrough"


DEFAULT_CSS_TARGETS = ">= 0.25%"
DEFAULT_INDENT_UNIT = "  "

# Deprecated option names mapped to their current spelling.
_LEGACY_OPTION_NAMES = {
    "cache": "cache_dir",
    "dump_empty_values": "drop_empty_values",
}


@dataclass(slots=True, frozen=True)
class PressOptions:
    """Options for a single compaction run.

    ``unquoted_attributes``, ``drop_empty_values`` and ``strip_crlf`` are
    accepted so callers can keep passing them, but the engine does not act on
    them: attribute values are never rewritten and carriage returns are always
    removed.

    ``js_minifier`` and ``css_minifier`` take either a strategy name
    (``"auto"``, ``"rjsmin"``, ``"passthrough"`` / ``"auto"``,
    ``"lightningcss"``, ``"rcssmin"``) or a ready minifier instance.

    Any falsy ``logger`` (``None``, ``False``) means failures are reported
    through structlog only.
    """

    logger: Any = None
    unquoted_attributes: bool = False
    drop_empty_values: bool = False
    strip_crlf: bool = False
    js_minifier_options: Mapping[str, Any] | None = None
    cache_dir: Path | None = None
    cache_key_policy: CacheKeyPolicy = CacheKeyPolicy.CONTENT
    js_minifier: Any = "auto"
    css_minifier: Any = "auto"
    css_binary: Path | None = None
    css_targets: str = DEFAULT_CSS_TARGETS
    css_missing_policy: MissingToolPolicy = MissingToolPolicy.RAISE
    indent_unit: str = DEFAULT_INDENT_UNIT

    def __post_init__(self) -> None:
        if self.logger and not callable(getattr(self.logger, "error", None)):
            raise ConfigurationError("Logger has no error method")
        try:
            object.__setattr__(self, "cache_key_policy", CacheKeyPolicy(self.cache_key_policy))
            object.__setattr__(self, "css_missing_policy", MissingToolPolicy(self.css_missing_policy))
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        if self.cache_dir is not None:
            object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser())
        if self.css_binary is not None:
            object.__setattr__(self, "css_binary", Path(self.css_binary).expanduser())

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None = None, **overrides: Any) -> PressOptions:
        """Build options from a loose mapping, migrating deprecated names."""

        values: dict[str, Any] = dict(mapping or {})
        values.update(overrides)
        for legacy, current in _LEGACY_OPTION_NAMES.items():
            if legacy in values:
                values[current] = values.pop(legacy)
                warnings.warn(
                    f"{legacy} deprecated use {current}",
                    DeprecationWarning,
                    stacklevel=2,
                )

        known = {item.name for item in fields(cls)}
        for key in sorted(set(values) - known):
            logger.warning("unknown_option_ignored", option=key)
            values.pop(key)
        return cls(**values)

    def with_overrides(self, **changes: Any) -> PressOptions:
        """Return a copy with ``changes`` applied."""

        return replace(self, **changes)


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: int


@dataclass(slots=True, frozen=True)
class AppConfig:
    """Aggregate application configuration dataclass."""

    options: PressOptions
    logging: LoggingConfig

    @property
    def cache_dir(self) -> Path | None:
        """Return the configured cache directory (if any)."""

        return self.options.cache_dir


class Settings(BaseSettings):
    """Runtime configuration parsed from environment variables."""

    cache_dir: Path | None = Field(default=None, alias="HTMLPRESS_CACHE_DIR")
    cache_key_policy: CacheKeyPolicy = Field(CacheKeyPolicy.CONTENT, alias="HTMLPRESS_CACHE_KEY_POLICY")
    js_minifier: str = Field("auto", alias="HTMLPRESS_JS_MINIFIER")
    css_minifier: str = Field("auto", alias="HTMLPRESS_CSS_MINIFIER")
    css_binary: Path | None = Field(default=None, alias="HTMLPRESS_CSS_BINARY")
    css_targets: str = Field(DEFAULT_CSS_TARGETS, alias="HTMLPRESS_CSS_TARGETS")
    css_missing_policy: MissingToolPolicy = Field(MissingToolPolicy.RAISE, alias="HTMLPRESS_CSS_MISSING_POLICY")
    log_level: str | int = Field("INFO", alias="HTMLPRESS_LOG_LEVEL", validate_default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("cache_dir", "css_binary", mode="before")
    @classmethod
    def _expand_path(cls, value: object) -> Path | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return Path(value).expanduser()

    @field_validator("js_minifier", "css_minifier")
    @classmethod
    def _normalize_strategy(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str | int) -> int:
        if isinstance(value, int):
            return value
        name = value.upper().strip()
        if name not in logging._nameToLevel:  # noqa: SLF001 - accessing mapping for conversion only
            raise ValueError(f"Unknown log level: {value}")
        return logging._nameToLevel[name]

    def to_dataclass(self) -> AppConfig:
        """Transform runtime settings into frozen dataclasses."""

        options = PressOptions(
            cache_dir=self.cache_dir,
            cache_key_policy=self.cache_key_policy,
            js_minifier=self.js_minifier,
            css_minifier=self.css_minifier,
            css_binary=self.css_binary,
            css_targets=self.css_targets,
            css_missing_policy=self.css_missing_policy,
        )
        return AppConfig(options=options, logging=LoggingConfig(level=self.log_level))


def load_settings() -> AppConfig:
    """Load settings from the environment and return dataclasses."""

    return Settings().to_dataclass()


__all__ = [
    "AppConfig",
    "CacheKeyPolicy",
    "LoggingConfig",
    "MissingToolPolicy",
    "PressOptions",
    "Settings",
    "load_settings",
]
