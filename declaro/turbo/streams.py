"""
Turbo Stream rendering.

Turns StreamOperations into ``<turbo-stream>`` elements:

    <turbo-stream action="prepend" target="users">
      <template>...</template>
    </turbo-stream>

One element per operation, joined in input order, served as
``text/vnd.turbo-stream.html``.
"""
from __future__ import annotations

import re
from enum import Enum
from html import escape
from typing import Any, Callable, Iterable

from starlette.responses import HTMLResponse

from .builder import StreamOperation

TURBO_STREAM_MEDIA_TYPE = "text/vnd.turbo-stream.html"

# Resolves an operation's content to a string, or None for no content
ContentRenderer = Callable[[StreamOperation], "str | None"]


class TurboStreamResponse(HTMLResponse):
    """HTML response served with the Turbo Stream media type."""

    media_type = TURBO_STREAM_MEDIA_TYPE


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def dom_id(obj: Any, prefix: str | None = None) -> str:
    """
    DOM id for an object.

    Objects may define their own ``dom_id`` (method or string
    attribute). Otherwise the id is ``{snake_class}_{id}``, or
    ``new_{snake_class}`` for objects without an id.

    Example:
        dom_id(User(id=5))                  # "user_5"
        dom_id(User(id=None))               # "new_user"
        dom_id(User(id=5), prefix="edit")   # "edit_user_5"
    """
    own = getattr(obj, "dom_id", None)
    if callable(own):
        base = str(own())
    elif isinstance(own, str):
        base = own
    else:
        name = _snake_case(type(obj).__name__)
        record_id = obj.get("id") if isinstance(obj, dict) else getattr(obj, "id", None)
        base = f"{name}_{record_id}" if record_id is not None else f"new_{name}"
    return f"{prefix}_{base}" if prefix else base


def resolve_target(target: Any) -> str:
    """Strings pass through, enums use their value, anything else goes through dom_id."""
    if isinstance(target, Enum):
        return str(target.value)
    if isinstance(target, str):
        return target
    return dom_id(target)


def turbo_stream_tag(action: str, target: str | None, content: str | None = None) -> str:
    """Render one ``<turbo-stream>`` element."""
    attrs = f'action="{escape(action)}"'
    if target is not None:
        attrs += f' target="{escape(target)}"'
    if content is None:
        return f"<turbo-stream {attrs}></turbo-stream>"
    return f"<turbo-stream {attrs}><template>{content}</template></turbo-stream>"


def render_operation(operation: StreamOperation, render_content: ContentRenderer) -> str:
    target = None if operation.target is None else resolve_target(operation.target)
    content = render_content(operation) if operation.has_content else None
    if operation.has_content and content is None:
        content = ""
    return turbo_stream_tag(operation.action, target, content)


def render_operations(
    operations: Iterable[StreamOperation],
    render_content: ContentRenderer,
) -> str:
    """Render operations in order, one element per line."""
    return "\n".join(render_operation(op, render_content) for op in operations)
