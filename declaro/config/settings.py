"""
Process-wide settings store for Declaro.

Settings are read on every request and written only at boot (or in
tests). The stored instance is frozen; ``configure()`` replaces it with
a new instance that deep-merges the overrides.

Example:
    from declaro.config import configure, get_settings

    configure(api_version="v2", pagination={"per_page": 50})
    get_settings().pagination.per_page  # 50
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from declaro.errors import ConfigurationError

from .schemas import DeclaroSettings

logger = logging.getLogger(__name__)


# Global settings instance (initialized on first access)
_settings: DeclaroSettings | None = None


def get_settings() -> DeclaroSettings:
    """
    Get the global settings.

    Creates the defaults on first access (lazy initialization).
    """
    global _settings
    if _settings is None:
        _settings = DeclaroSettings()
    return _settings


def _deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def configure(settings: DeclaroSettings | None = None, **overrides: Any) -> DeclaroSettings:
    """
    Replace the global settings.

    Args:
        settings: A complete settings instance to install as-is
        **overrides: Top-level fields; nested sections may be given as
            dicts and are merged into the current section

    Returns:
        The installed settings

    Raises:
        ConfigurationError: If the merged settings fail validation
    """
    global _settings
    if settings is not None and overrides:
        raise ConfigurationError("Pass either a settings instance or overrides, not both")

    if settings is None:
        data = _deep_merge(get_settings().model_dump(), overrides)
        try:
            settings = DeclaroSettings.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid Declaro settings: {e}") from e

    _settings = settings
    logger.debug(f"Declaro settings configured (api_version={settings.api_version})")
    return settings


def reset_settings() -> None:
    """
    Reset the global settings (for testing).

    The next ``get_settings()`` call recreates the defaults.
    """
    global _settings
    _settings = None


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def settings_from_env(prefix: str = "DECLARO_") -> DeclaroSettings:
    """
    Build settings from environment variables.

    Recognized variables (with the default prefix):
        DECLARO_API_VERSION, DECLARO_PER_PAGE, DECLARO_MAX_PER_PAGE,
        DECLARO_LOG_ERRORS, DECLARO_DETAILED_ERRORS,
        DECLARO_PAGE_COMPONENT_NAMESPACE, DECLARO_LAYOUT

    Unset variables keep their defaults. The result is not installed;
    pass it to ``configure()``.
    """
    overrides: dict[str, Any] = {}

    def env(name: str) -> str | None:
        return os.getenv(f"{prefix}{name}")

    if (value := env("API_VERSION")) is not None:
        overrides["api_version"] = value

    pagination: dict[str, Any] = {}
    if (value := env("PER_PAGE")) is not None:
        pagination["per_page"] = value
    if (value := env("MAX_PER_PAGE")) is not None:
        pagination["max_per_page"] = value
    if pagination:
        overrides["pagination"] = pagination

    error_handling: dict[str, Any] = {}
    if (value := env("LOG_ERRORS")) is not None:
        error_handling["log_errors"] = _env_bool(value)
    if (value := env("DETAILED_ERRORS")) is not None:
        error_handling["detailed_errors"] = _env_bool(value)
    if error_handling:
        overrides["error_handling"] = error_handling

    html: dict[str, Any] = {}
    if (value := env("PAGE_COMPONENT_NAMESPACE")) is not None:
        html["page_component_namespace"] = value
    if (value := env("LAYOUT")) is not None:
        html["layout"] = value or None
    if html:
        overrides["html"] = html

    data = _deep_merge(DeclaroSettings().model_dump(), overrides)
    try:
        return DeclaroSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid Declaro settings in environment: {e}") from e
