"""
Action configuration records.

An ActionConfiguration is built once, at class-definition time, by the
ActionBuilder. It is frozen afterwards and read on every request by the
controller's execution interpreter and response dispatcher.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping

from declaro.errors import ErrorKind

if TYPE_CHECKING:
    from declaro.turbo.builder import StreamOperation


# Callbacks are callables taking the controller (plus the result for
# after-callbacks), or names of controller methods.
Callback = Callable[..., Any] | str


class ResponseFormat(str, Enum):
    """Negotiated response formats."""

    HTML = "html"
    TURBO_STREAM = "turbo_stream"
    TURBO_FRAME = "turbo_frame"
    JSON = "json"
    CSV = "csv"
    XML = "xml"


# =============================================================================
# Handler Descriptors
# =============================================================================


@dataclass(frozen=True)
class Redirect:
    """Redirect to ``path`` (a URL, or the name of a controller method returning one)."""

    path: str | Callable[..., str]
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RenderPage:
    """Re-render the page (component, page config or template)."""

    status: int | None = None


@dataclass(frozen=True)
class RenderComponent:
    component: type
    locals: Mapping[str, Any] = field(default_factory=dict)
    status: int | None = None


@dataclass(frozen=True)
class RenderPartial:
    partial: str
    locals: Mapping[str, Any] = field(default_factory=dict)
    status: int | None = None


@dataclass(frozen=True)
class Block:
    """A raw handler callable: ``callback(controller)`` or ``callback(controller, error)``."""

    callback: Callable[..., Any]


@dataclass(frozen=True)
class TurboStreamList:
    operations: tuple["StreamOperation", ...] = ()


@dataclass(frozen=True)
class FrameContent:
    """What a ``turbo_frame`` handler renders."""

    type: str  # "component" | "partial" | "page"
    klass: type | None = None
    path: str | None = None
    locals: Mapping[str, Any] = field(default_factory=dict)
    status: int | None = None


@dataclass(frozen=True)
class TurboFrame:
    content: FrameContent | None = None
    layout: bool | str = False


HandlerDescriptor = (
    Redirect
    | RenderPage
    | RenderComponent
    | RenderPartial
    | Block
    | TurboStreamList
    | TurboFrame
)


@dataclass(frozen=True)
class ResponseHandlers:
    """
    Handlers declared in one ``on_success`` / ``on_error`` block.

    Format-keyed handlers (``html``, ``turbo_stream``, ...) sit beside
    the structured HTML directives (``redirect``, ``render_page``, ...).
    """

    html: Block | None = None
    turbo_stream: TurboStreamList | None = None
    turbo_frame: TurboFrame | None = None
    json: Block | None = None
    csv: Block | None = None
    xml: Block | None = None
    redirect: Redirect | None = None
    render_page: RenderPage | None = None
    render_component: RenderComponent | None = None
    render_partial: RenderPartial | None = None

    def for_format(self, fmt: ResponseFormat) -> HandlerDescriptor | None:
        """Explicit handler registered under a format tag."""
        return getattr(self, fmt.value, None)

    def html_handler(self) -> HandlerDescriptor | None:
        """First HTML-side handler in precedence order."""
        for candidate in (
            self.redirect,
            self.html,
            self.render_page,
            self.render_component,
            self.render_partial,
        ):
            if candidate is not None:
                return candidate
        return None

    def to_dict(self) -> dict[str, HandlerDescriptor]:
        """Declared handlers only."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def __bool__(self) -> bool:
        return bool(self.to_dict())


EMPTY_HANDLERS = ResponseHandlers()


# =============================================================================
# Action Configuration
# =============================================================================


@dataclass(frozen=True)
class ActionConfiguration:
    """Declared configuration for one controller action."""

    name: str
    service: Any = None
    service_method: str = "call"
    params_key: str | None = None
    permitted_params: tuple[Any, ...] = ()
    page: type | None = None
    component: type | None = None
    component_locals: Mapping[str, Any] = field(default_factory=dict)
    page_config_modifier: Callable[..., Any] | None = None
    turbo_frame: str | None = None
    before_callbacks: tuple[Callback, ...] = ()
    after_callbacks: tuple[Callback, ...] = ()
    on_success: ResponseHandlers = EMPTY_HANDLERS
    error_handlers: Mapping[ErrorKind, ResponseHandlers] = field(default_factory=dict)
    skip_authentication: bool = False
    skip_authorization: bool = False
    options: Mapping[str, Any] = field(default_factory=dict)

    def find_error_handlers(self, kind: ErrorKind) -> ResponseHandlers:
        """
        Handlers for an error kind.

        Falls back to the ``any`` handlers, then to no handlers at all
        (the dispatcher's built-in defaults).
        """
        return (
            self.error_handlers.get(kind)
            or self.error_handlers.get(ErrorKind.ANY)
            or EMPTY_HANDLERS
        )
