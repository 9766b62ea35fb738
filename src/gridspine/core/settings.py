"""
Centralized settings for gridspine.

``GridSettings`` is the single validated source for display conventions
(number separators, date pattern, boolean labels), row identity and logging.
Every field can be set through ``GRIDSPINE_*`` environment variables or a
``.env`` file, e.g. ``GRIDSPINE_DATE_FORMAT=%d.%m.%Y``.

Examples:
    >>> from gridspine.core.settings import GridSettings
    >>> s = GridSettings(thousands_separator=".", decimal_separator=",")
    >>> s.thousands_separator
    '.'

Tags:
    gridspine, configuration, settings, pydantic, caching, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gridspine.core.errors import ConfigError


class GridSettings(BaseSettings):
    """gridspine configuration.

    Fields
    ──────
    log_level           : structlog log level
    log_format          : "json" or "console"
    thousands_separator : grouping separator for number formatting
    decimal_separator   : decimal mark for number formatting and parsing
    date_format         : strftime pattern for rendering date cells
    true_label          : rendered text of a checked boolean cell
    false_label         : rendered text of an unchecked boolean cell
    row_key_field       : explicit row identity field (auto-detected if unset)
    default_expanded    : initial expand state of newly seen groups
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # ── Display ──────────────────────────────────────────────────
    thousands_separator: str = Field(default=",")
    decimal_separator: str = Field(default=".")
    date_format: str = Field(default="%m/%d/%Y")
    true_label: str = Field(default="✔️")
    false_label: str = Field(default="❌")

    # ── Rows and groups ──────────────────────────────────────────
    row_key_field: str | None = Field(default=None)
    default_expanded: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        fmt = value.lower()
        if fmt not in {"json", "console"}:
            raise ValueError(f"log_format must be 'json' or 'console', got {value!r}")
        return fmt

    @field_validator("decimal_separator")
    @classmethod
    def _check_decimal(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("decimal_separator must be a single character")
        return value

    @model_validator(mode="after")
    def _check_separators(self) -> GridSettings:
        if self.thousands_separator == self.decimal_separator:
            raise ValueError("thousands_separator and decimal_separator must differ")
        return self

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, GridSettings] = {}


def get_settings(*, _force_reload: bool = False) -> GridSettings:
    """Load, validate, and cache a :class:`GridSettings` instance.

    Raises:
        ConfigError: an environment variable or .env entry fails validation
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    try:
        settings = GridSettings()
    except ValidationError as e:
        raise ConfigError(f"Invalid gridspine settings: {e.error_count()} error(s)", cause=e) from e
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["GridSettings", "get_settings", "clear_settings_cache"]
