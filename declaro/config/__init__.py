"""
Configuration for Declaro.

Process-wide settings with an explicit configure/reset lifecycle.
"""

from .schemas import (
    DeclaroSettings,
    ErrorHandlingSettings,
    HtmlSettings,
    PaginationSettings,
    TurboSettings,
)
from .settings import configure, get_settings, reset_settings, settings_from_env

__all__ = [
    "DeclaroSettings",
    "ErrorHandlingSettings",
    "HtmlSettings",
    "PaginationSettings",
    "TurboSettings",
    "configure",
    "get_settings",
    "reset_settings",
    "settings_from_env",
]
