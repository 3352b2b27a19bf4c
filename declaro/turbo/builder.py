"""
Turbo Stream Builder.

Accumulates an ordered list of stream operations. Order is the order
the browser applies the DOM mutations, so it is preserved exactly.

Example:
    streams = (
        TurboStreamBuilder()
        .prepend("users", partial="users/_user", locals={"user": user})
        .update("users_count", html="<span>42</span>")
        .flash(type="notice", message="User created")
        .build()
    )
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from declaro.errors import ConfigurationError, UnknownDirectiveError

# Actions that carry a <template> payload
CONTENT_ACTIONS = ("append", "prepend", "replace", "update", "before", "after")
STREAM_ACTIONS = CONTENT_ACTIONS + ("remove", "refresh")


@dataclass(frozen=True)
class StreamOperation:
    """
    One Turbo Stream operation.

    ``target`` is an element id, or any object resolved through
    ``dom_id``. Content comes from ``component`` (rendered with
    ``locals``), ``partial`` (rendered by the template renderer with
    ``locals``) or ``html`` (used verbatim), in that order.
    """

    action: str
    target: Any = None
    component: type | None = None
    partial: str | None = None
    html: str | None = None
    locals: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.action not in STREAM_ACTIONS:
            raise ConfigurationError(
                f"Unknown turbo stream action '{self.action}'. "
                f"Expected one of: {', '.join(STREAM_ACTIONS)}"
            )
        if self.action != "refresh" and self.target is None:
            raise ConfigurationError(f"Turbo stream '{self.action}' needs a target")

    @property
    def has_content(self) -> bool:
        return self.action in CONTENT_ACTIONS


class TurboStreamBuilder:
    """Fluent builder for a list of StreamOperations."""

    def __init__(
        self,
        flash_partial: str = "shared/flash",
        form_errors_partial: str = "shared/form_errors",
    ):
        self._operations: list[StreamOperation] = []
        self._closed = False
        self._flash_partial = flash_partial
        self._form_errors_partial = form_errors_partial

    def _add(
        self,
        action: str,
        target: Any,
        component: type | None = None,
        partial: str | None = None,
        html: str | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> "TurboStreamBuilder":
        self._check_open(action)
        self._operations.append(
            StreamOperation(
                action=action,
                target=target,
                component=component,
                partial=partial,
                html=html,
                locals=dict(locals or {}),
            )
        )
        return self

    def append(self, target: Any, *, component=None, partial=None, html=None, locals=None):
        """Append content to the target element."""
        return self._add("append", target, component, partial, html, locals)

    def prepend(self, target: Any, *, component=None, partial=None, html=None, locals=None):
        """Prepend content to the target element."""
        return self._add("prepend", target, component, partial, html, locals)

    def replace(self, target: Any, *, component=None, partial=None, html=None, locals=None):
        """Replace the target element."""
        return self._add("replace", target, component, partial, html, locals)

    def update(self, target: Any, *, component=None, partial=None, html=None, locals=None):
        """Replace the content of the target element."""
        return self._add("update", target, component, partial, html, locals)

    def before(self, target: Any, *, component=None, partial=None, html=None, locals=None):
        """Insert content before the target element."""
        return self._add("before", target, component, partial, html, locals)

    def after(self, target: Any, *, component=None, partial=None, html=None, locals=None):
        """Insert content after the target element."""
        return self._add("after", target, component, partial, html, locals)

    def remove(self, target: Any) -> "TurboStreamBuilder":
        """Remove the target element."""
        return self._add("remove", target)

    def refresh(self) -> "TurboStreamBuilder":
        """Ask the page to refresh (Turbo 8+)."""
        self._check_open("refresh")
        self._operations.append(StreamOperation(action="refresh"))
        return self

    def flash(self, type: str = "notice", message: str | None = None) -> "TurboStreamBuilder":
        """Update the flash element with the flash partial."""
        locals: dict[str, Any] = {"type": type}
        if message:
            locals["message"] = message
        return self._add("update", "flash", partial=self._flash_partial, locals=locals)

    def form_errors(self, errors: Any = None, target: Any = "form_errors") -> "TurboStreamBuilder":
        """Update the form-errors element with the form-errors partial."""
        return self._add(
            "update", target, partial=self._form_errors_partial, locals={"errors": errors}
        )

    def _check_open(self, directive: str) -> None:
        if self._closed:
            raise ConfigurationError(
                f"TurboStreamBuilder.{directive}() called after the declaration was built"
            )

    def close(self) -> None:
        self._closed = True

    def build(self) -> tuple[StreamOperation, ...]:
        return tuple(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes that do not exist
        if name.startswith("_"):
            raise AttributeError(name)
        raise UnknownDirectiveError(type(self).__name__, name)
