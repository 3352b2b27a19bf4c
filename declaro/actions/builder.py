"""
Action Configuration Builder.

Builders collect directive calls into an ActionConfiguration. Each
directive returns the builder, so declarations can be written as
statements or chained:

    @action
    def create(a: ActionBuilder) -> None:
        a.service(CreateUserService).params_key("user").permit("name", "email")

        success = a.on_success()
        success.redirect_to("/users", notice="User created")
        success.turbo_stream(lambda s: s.prepend("users", partial="users/_user"))

        a.on_error("validation").render_page(status=422)

Once built, a builder is closed: further directives raise
ConfigurationError, as do directives the builder does not know.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from declaro.config import get_settings
from declaro.errors import ConfigurationError, ErrorKind, UnknownDirectiveError
from declaro.turbo.builder import TurboStreamBuilder

from .configuration import (
    ActionConfiguration,
    Block,
    Callback,
    FrameContent,
    Redirect,
    RenderComponent,
    RenderPage,
    RenderPartial,
    ResponseHandlers,
    TurboFrame,
    TurboStreamList,
)

logger = logging.getLogger(__name__)


class _Builder:
    """Shared closed-state and unknown-directive handling."""

    _closed: bool = False

    def _check_open(self, directive: str) -> None:
        if self._closed:
            raise ConfigurationError(
                f"{type(self).__name__}.{directive}() called after the declaration was built"
            )

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes that do not exist
        if name.startswith("_"):
            raise AttributeError(name)
        raise UnknownDirectiveError(type(self).__name__, name)


# =============================================================================
# Turbo Frame Builder
# =============================================================================


class TurboFrameBuilder(_Builder):
    """
    Declares what a Turbo Frame request renders.

    Example:
        success.turbo_frame(lambda f: f.component(UserListComponent, locals={"title": "Users"}))
        success.turbo_frame(lambda f: f.partial("users/_list").layout(True))
    """

    def __init__(self) -> None:
        self._content: FrameContent | None = None
        self._layout: bool | str | None = None

    def component(self, klass: type, locals: Mapping[str, Any] | None = None) -> "TurboFrameBuilder":
        self._check_open("component")
        self._content = FrameContent(type="component", klass=klass, locals=dict(locals or {}))
        return self

    def partial(self, path: str, locals: Mapping[str, Any] | None = None) -> "TurboFrameBuilder":
        self._check_open("partial")
        self._content = FrameContent(type="partial", path=path, locals=dict(locals or {}))
        return self

    def render_page(self, status: int | None = None) -> "TurboFrameBuilder":
        self._check_open("render_page")
        self._content = FrameContent(type="page", status=status)
        return self

    def layout(self, value: bool | str) -> "TurboFrameBuilder":
        """Render inside a layout (frames default to no layout)."""
        self._check_open("layout")
        self._layout = value
        return self

    def build(self) -> TurboFrame:
        self._closed = True
        return TurboFrame(
            content=self._content,
            layout=False if self._layout is None else self._layout,
        )


# =============================================================================
# Response Builder
# =============================================================================


class ResponseBuilder(_Builder):
    """
    Declares the responses of one ``on_success`` / ``on_error`` block.

    Format handlers take a callable invoked as ``handler(controller)``
    on success and ``handler(controller, error)`` on failure.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Any] = {}
        self._stream_builder: TurboStreamBuilder | None = None
        self._frame_builder: TurboFrameBuilder | None = None

    def _set(self, key: str, value: Any) -> "ResponseBuilder":
        self._check_open(key)
        self._handlers[key] = value
        return self

    def html(self, handler: Callable[..., Any]) -> "ResponseBuilder":
        return self._set("html", Block(handler))

    def json(self, handler: Callable[..., Any]) -> "ResponseBuilder":
        return self._set("json", Block(handler))

    def csv(self, handler: Callable[..., Any]) -> "ResponseBuilder":
        return self._set("csv", Block(handler))

    def xml(self, handler: Callable[..., Any]) -> "ResponseBuilder":
        return self._set("xml", Block(handler))

    def turbo_stream(
        self,
        configure: Callable[[TurboStreamBuilder], Any] | None = None,
    ) -> TurboStreamBuilder:
        """
        Declare the Turbo Stream response.

        With ``configure``, it is called with the stream builder. Either
        way the stream builder is returned for further operations.
        """
        self._check_open("turbo_stream")
        html = get_settings().html
        self._stream_builder = TurboStreamBuilder(
            flash_partial=html.flash_partial,
            form_errors_partial=html.form_errors_partial,
        )
        if configure is not None:
            configure(self._stream_builder)
        return self._stream_builder

    def turbo_frame(
        self,
        configure: Callable[[TurboFrameBuilder], Any] | None = None,
    ) -> TurboFrameBuilder:
        """Declare the response to Turbo Frame requests."""
        self._check_open("turbo_frame")
        self._frame_builder = TurboFrameBuilder()
        if configure is not None:
            configure(self._frame_builder)
        return self._frame_builder

    def redirect_to(self, path: str | Callable[..., str], **options: Any) -> "ResponseBuilder":
        """Redirect; ``notice`` / ``alert`` options become flash messages."""
        return self._set("redirect", Redirect(path=path, options=options))

    def render_page(self, status: int | None = None) -> "ResponseBuilder":
        return self._set("render_page", RenderPage(status=status))

    def render_component(
        self,
        component: type,
        locals: Mapping[str, Any] | None = None,
        status: int | None = None,
    ) -> "ResponseBuilder":
        return self._set(
            "render_component",
            RenderComponent(component=component, locals=dict(locals or {}), status=status),
        )

    def render_partial(
        self,
        partial: str,
        locals: Mapping[str, Any] | None = None,
        status: int | None = None,
    ) -> "ResponseBuilder":
        return self._set(
            "render_partial",
            RenderPartial(partial=partial, locals=dict(locals or {}), status=status),
        )

    def build(self) -> ResponseHandlers:
        self._closed = True
        handlers = dict(self._handlers)
        if self._stream_builder is not None:
            self._stream_builder.close()
            handlers["turbo_stream"] = TurboStreamList(operations=self._stream_builder.build())
        if self._frame_builder is not None:
            handlers["turbo_frame"] = self._frame_builder.build()
        return ResponseHandlers(**handlers)


# =============================================================================
# Action Builder
# =============================================================================


class ActionBuilder(_Builder):
    """Collects the directives of one action declaration."""

    def __init__(self, name: str, **options: Any):
        self.name = name
        self._options = options
        self._config: dict[str, Any] = {}
        self._before: list[Callback] = []
        self._after: list[Callback] = []
        self._success: ResponseBuilder | None = None
        self._errors: dict[ErrorKind, ResponseBuilder] = {}

    def service(self, klass: Any, method: str = "call") -> "ActionBuilder":
        """
        Service invoked by the action.

        Classes are instantiated without arguments, then ``method`` is
        called with a ServiceContext. Other objects have ``method``
        called directly; plain functions are called themselves.
        """
        self._check_open("service")
        self._config["service"] = klass
        self._config["service_method"] = method
        return self

    def page(self, klass: type) -> "ActionBuilder":
        """Page class producing the page config for this action."""
        self._check_open("page")
        self._config["page"] = klass
        return self

    def component(self, klass: type, locals: Mapping[str, Any] | None = None) -> "ActionBuilder":
        """Component rendered for HTML responses."""
        self._check_open("component")
        self._config["component"] = klass
        self._config["component_locals"] = dict(locals or {})
        return self

    def page_config(self, modifier: Callable[..., Any]) -> "ActionBuilder":
        """
        Modify the resolved page config per request.

        ``modifier(page_config, controller)`` receives a deep copy; a
        non-None return value replaces it.
        """
        self._check_open("page_config")
        self._config["page_config_modifier"] = modifier
        return self

    def turbo_frame(self, frame_id: str) -> "ActionBuilder":
        """Turbo Frame id this action renders into."""
        self._check_open("turbo_frame")
        self._config["turbo_frame"] = str(frame_id)
        return self

    def params_key(self, key: str) -> "ActionBuilder":
        self._check_open("params_key")
        self._config["params_key"] = str(key)
        return self

    def permit(self, *fields: Any) -> "ActionBuilder":
        """Permitted parameters under ``params_key`` (see ``permit_params``)."""
        self._check_open("permit")
        self._config["permitted_params"] = tuple(fields)
        return self

    def before(self, callback: Callback) -> "ActionBuilder":
        """Run ``callback(controller)`` before the service."""
        self._check_open("before")
        self._before.append(callback)
        return self

    def after(self, callback: Callback) -> "ActionBuilder":
        """Run ``callback(controller, result)`` after the service."""
        self._check_open("after")
        self._after.append(callback)
        return self

    def on_success(
        self,
        configure: Callable[[ResponseBuilder], Any] | None = None,
    ) -> ResponseBuilder:
        self._check_open("on_success")
        self._success = ResponseBuilder()
        if configure is not None:
            configure(self._success)
        return self._success

    def on_error(
        self,
        kind: ErrorKind | str = ErrorKind.ANY,
        configure: Callable[[ResponseBuilder], Any] | None = None,
    ) -> ResponseBuilder:
        self._check_open("on_error")
        builder = ResponseBuilder()
        self._errors[ErrorKind.parse(kind)] = builder
        if configure is not None:
            configure(builder)
        return builder

    def skip_authentication(self, value: bool = True) -> "ActionBuilder":
        self._check_open("skip_authentication")
        self._config["skip_authentication"] = bool(value)
        return self

    def skip_authorization(self, value: bool = True) -> "ActionBuilder":
        self._check_open("skip_authorization")
        self._config["skip_authorization"] = bool(value)
        return self

    def build(self) -> ActionConfiguration:
        """Close the builder and return the frozen configuration."""
        self._check_open("build")
        self._closed = True

        config = ActionConfiguration(
            name=self.name,
            before_callbacks=tuple(self._before),
            after_callbacks=tuple(self._after),
            on_success=self._success.build() if self._success else ResponseHandlers(),
            error_handlers={kind: b.build() for kind, b in self._errors.items()},
            options=dict(self._options),
            **self._config,
        )
        logger.debug(
            f"Built action '{self.name}' "
            f"(service={getattr(config.service, '__name__', config.service)}, "
            f"error_kinds={[k.value for k in config.error_handlers]})"
        )
        return config
