"""
Template Renderer for Declaro.

A small registry of named templates. A template is any callable taking
a context dict and returning a string; this keeps Declaro independent
of the host's template engine (wrap a Jinja environment, a string
format, or a component in a callable and register it).

Two partials are registered by default and used by the Turbo Stream
defaults:
    shared/flash        locals: type, message
    shared/form_errors  locals: errors

Layouts are templates that receive the rendered page as ``content``.

Example:
    renderer = get_template_renderer()

    @renderer.template("users/index")
    def users_index(ctx):
        return "".join(f"<li>{escape(u['name'])}</li>" for u in ctx["collection"])

    renderer.render("users/index", {"collection": users}, layout=False)
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from html import escape
from typing import Any, Callable

from declaro.config import get_settings
from declaro.errors import DeclaroError

logger = logging.getLogger(__name__)

Template = Callable[[dict[str, Any]], str]


class TemplateNotFoundError(DeclaroError):
    """Raised when rendering a template that was never registered."""

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        listed = ", ".join(sorted(available or [])) or "(none)"
        super().__init__(f"Template not found: {name}. Available: {listed}")


# =============================================================================
# Built-in Partials
# =============================================================================


def flash_partial(context: dict[str, Any]) -> str:
    """Render a flash message; empty when there is none."""
    message = context.get("message")
    if not message:
        return ""
    kind = escape(str(context.get("type") or "notice"))
    return f'<div class="flash flash-{kind}" role="alert">{escape(str(message))}</div>'


def _error_messages(errors: Any) -> list[str]:
    if errors is None:
        return []
    full_messages = getattr(errors, "full_messages", None)
    if full_messages is not None:
        return list(full_messages() if callable(full_messages) else full_messages)
    if isinstance(errors, Mapping):
        messages = []
        for field, value in errors.items():
            values = value if isinstance(value, (list, tuple)) else [value]
            label = "" if field == "base" else str(field).replace("_", " ").capitalize()
            messages.extend(f"{label} {v}".strip() for v in values)
        return messages
    if isinstance(errors, (list, tuple)):
        return [str(e) for e in errors]
    return [str(errors)]


def form_errors_partial(context: dict[str, Any]) -> str:
    """Render form errors as a list; empty when there are none."""
    messages = _error_messages(context.get("errors"))
    if not messages:
        return ""
    items = "".join(f"<li>{escape(m)}</li>" for m in messages)
    return f'<div class="form-errors"><ul>{items}</ul></div>'


# =============================================================================
# Renderer
# =============================================================================


class TemplateRenderer:
    """Registry and renderer for named templates and layouts."""

    def __init__(self, builtins: bool = True) -> None:
        self._templates: dict[str, Template] = {}
        if builtins:
            html = get_settings().html
            self.register(html.flash_partial, flash_partial)
            self.register(html.form_errors_partial, form_errors_partial)

    def register(self, name: str, template: Template) -> None:
        """Register (or replace) a template."""
        if name in self._templates:
            logger.debug(f"Replacing template: {name}")
        self._templates[name] = template

    def template(self, name: str) -> Callable[[Template], Template]:
        """Decorator form of ``register``."""

        def decorator(func: Template) -> Template:
            self.register(name, func)
            return func

        return decorator

    def has(self, name: str) -> bool:
        return name in self._templates

    @property
    def names(self) -> list[str]:
        return list(self._templates)

    def _lookup(self, name: str) -> Template:
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotFoundError(name, self.names)
        return template

    def render_partial(self, name: str, locals: Mapping[str, Any] | None = None) -> str:
        """Render a template without any layout."""
        return str(self._lookup(name)(dict(locals or {})))

    def render(
        self,
        name: str,
        context: Mapping[str, Any] | None = None,
        layout: bool | str | None = None,
    ) -> str:
        """
        Render a template, optionally wrapped in a layout.

        Args:
            name: Template name
            context: Template context
            layout: None for the configured default layout (skipped when
                it is not registered), False for none, or a layout name

        Raises:
            TemplateNotFoundError: If the template, or an explicitly
                requested layout, is not registered
        """
        ctx = dict(context or {})
        content = str(self._lookup(name)(ctx))
        return self.apply_layout(content, layout, ctx)

    def apply_layout(
        self,
        content: str,
        layout: bool | str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> str:
        """Wrap already-rendered content in a layout (same ``layout`` values as ``render``)."""
        if layout is False:
            return content

        if layout is None or layout is True:
            layout_name = get_settings().html.layout
            if not layout_name or not self.has(layout_name):
                return content
        else:
            layout_name = str(layout)

        return str(self._lookup(layout_name)({**dict(context or {}), "content": content}))

    def clear(self) -> None:
        """Remove every template, including the built-in partials."""
        self._templates.clear()


# Global renderer instance (initialized on first access)
_renderer: TemplateRenderer | None = None


def get_template_renderer() -> TemplateRenderer:
    """
    Get the global template renderer.

    Creates the renderer on first access (lazy initialization).
    """
    global _renderer
    if _renderer is None:
        _renderer = TemplateRenderer()
    return _renderer


def reset_template_renderer() -> None:
    """Reset the global template renderer (for testing)."""
    global _renderer
    _renderer = None
