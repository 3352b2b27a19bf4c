"""
Settings Schemas for Declaro.

Pydantic models for the process-wide settings. Every model is frozen:
settings change only by building a new instance through
``declaro.config.configure()`` or ``reset_settings()``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PaginationSettings(BaseModel):
    """Defaults for ``Controller.paginate``."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    per_page: int = Field(25, ge=1, description="Items per page when not requested")
    max_per_page: int = Field(100, ge=1, description="Upper bound for requested per_page")


class ErrorHandlingSettings(BaseModel):
    """How failed actions are logged and reported."""

    model_config = ConfigDict(frozen=True)

    log_errors: bool = Field(True, description="Log exceptions raised inside actions")
    detailed_errors: bool = Field(
        False, description="Include exception type and backtrace in JSON error bodies"
    )


class HtmlSettings(BaseModel):
    """Template and component conventions for HTML responses."""

    model_config = ConfigDict(frozen=True)

    page_component_namespace: str = Field(
        "templates", description="Module namespace searched for page components"
    )
    flash_partial: str = "shared/flash"
    form_errors_partial: str = "shared/form_errors"
    layout: str | None = Field("layouts/application", description="Default layout template")


class TurboSettings(BaseModel):
    """Hotwire/Turbo behaviour."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    default_frame: str | None = None
    auto_flash: bool = Field(True, description="Emit a flash update in default stream responses")
    auto_form_errors: bool = Field(
        True, description="Emit a form-errors update in default stream error responses"
    )


class DeclaroSettings(BaseModel):
    """
    Process-wide Declaro settings.

    Flash messages are looked up by key, most specific first:
        "{controller}.{action}.success" then "actions.success"
        "{controller}.{action}.{kind}" then "errors.{kind}"
    """

    model_config = ConfigDict(frozen=True)

    api_version: str = Field("v1", description="Version reported in JSON envelope meta")
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    error_handling: ErrorHandlingSettings = Field(default_factory=ErrorHandlingSettings)
    html: HtmlSettings = Field(default_factory=HtmlSettings)
    turbo: TurboSettings = Field(default_factory=TurboSettings)
    flash_messages: dict[str, str] = Field(default_factory=dict)

    def flash_message(self, *keys: str) -> str | None:
        """First configured flash message among ``keys``."""
        for key in keys:
            message = self.flash_messages.get(key)
            if message:
                return message
        return None
