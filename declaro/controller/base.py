"""
Controller base class for Declaro.

A Controller subclass declares its actions; each declared action
becomes an async method that runs the action pipeline for the current
request:

    authenticate / authorize -> before callbacks -> service
    -> page config -> after callbacks -> success or failure dispatch

Any exception raised along the way is logged, classified into an
ErrorKind and answered through the failure handlers. Only
ActionNotRegistered escapes.

Example:
    class UsersController(Controller):
        @action
        def index(a):
            a.service(ListUsers)

        @action
        def create(a):
            a.service(CreateUser).permit("name", "email")
            a.on_success(lambda r: r.redirect_to("/users", notice="Created"))
            a.on_error("validation", lambda r: r.render_page())

    app.include_router(UsersController.router(prefix="/users"))
"""
from __future__ import annotations

import copy
import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence

from starlette.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse, Response

from declaro.actions.configuration import ActionConfiguration, ResponseFormat
from declaro.actions.context import ActionContext
from declaro.actions.params import (
    build_service_params,
    collect_params,
    controller_name as derive_controller_name,
    singularize,
)
from declaro.actions.registry import ActionDeclaration, ActionRegistry, build_action
from declaro.actions.result import ActionResult, ServiceContext
from declaro.actions.service import invoke_service, maybe_await
from declaro.config import get_settings
from declaro.errors import (
    ConfigurationError,
    ErrorKind,
    ServiceError,
    classify_error,
    classify_result,
    error_status,
)
from declaro.observability import ActionLogger
from declaro.rendering.component import render_component_to_string
from declaro.rendering.page_config import PageConfig, normalize_page_config
from declaro.rendering.resolver import find_page_component
from declaro.rendering.templates import TemplateRenderer, get_template_renderer
from declaro.responses.csv_export import generate_csv, send_csv
from declaro.responses.envelope import build_response, error_response, json_response
from declaro.responses.pagination import Page, paginate, pagination_links, pagination_meta
from declaro.responses.serializer import Serializer, serialize

from .dispatcher import HTML_FORMATS, ResponseDispatcher
from .negotiation import negotiate_format
from .turbo import TurboMixin

if TYPE_CHECKING:
    from fastapi import APIRouter
    from starlette.requests import Request

logger = logging.getLogger(__name__)

FLASH_SESSION_KEY = "_flash"


def _install_action(cls: type, name: str) -> None:
    if name in _RESERVED_NAMES:
        raise ConfigurationError(
            f"Action name '{name}' on {cls.__name__} clashes with a Controller attribute"
        )
    setattr(cls, name, _action_method(name))


def _action_method(name: str) -> Callable[["Controller"], Any]:
    async def run(self: "Controller") -> Response:
        return await self.execute_registered_action(name)

    run.__name__ = name
    run.__qualname__ = name
    run.__doc__ = f"Run the '{name}' action."
    return run


class Controller(TurboMixin):
    """
    Base class for declarative controllers.

    Class attributes:
        templates: TemplateRenderer used by this controller (default:
            the global renderer)
        page_component_namespace: Module namespace for page component
            lookup (default: settings)
        controller_name: Template directory and flash key prefix
            (default: derived from the class name)
        resource_name: Default params key (default: singular controller name)
        serializer: Serializer applied to the ``resource`` and ``collection``
            of default JSON success bodies
    """

    templates: TemplateRenderer | None = None
    page_component_namespace: str | None = None
    controller_name: str = ""
    resource_name: str = ""
    serializer: type[Serializer] | None = None

    _action_registry: ActionRegistry = ActionRegistry(owner="Controller")

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        if "controller_name" not in cls.__dict__:
            cls.controller_name = derive_controller_name(cls)
        if "resource_name" not in cls.__dict__:
            cls.resource_name = singularize(cls.controller_name)

        registry = cls._action_registry.copy(owner=cls.__name__)
        cls._action_registry = registry

        for attr, value in list(cls.__dict__.items()):
            if isinstance(value, ActionDeclaration):
                config = value.build()
                registry.register(config)
                if attr != config.name:
                    delattr(cls, attr)
                _install_action(cls, config.name)

    @classmethod
    def register_action(
        cls,
        name: str,
        configure: Callable[..., Any] | None = None,
        **options: Any,
    ) -> ActionConfiguration:
        """Declare an action imperatively (same effect as ``@action``)."""
        config = build_action(name, configure, **options)
        _install_action(cls, config.name)
        cls._action_registry.register(config)
        return config

    @classmethod
    def action_registry(cls) -> ActionRegistry:
        return cls._action_registry

    @classmethod
    def router(
        cls,
        prefix: str = "",
        tags: Sequence[str] | None = None,
        routes: Mapping[str, tuple[str | Sequence[str], str]] | None = None,
    ) -> "APIRouter":
        """FastAPI router exposing the registered actions as resource routes."""
        from .routing import build_router

        return build_router(cls, prefix=prefix, tags=tags, routes=routes)

    def __init__(self, request: "Request | None" = None, params: Mapping[str, Any] | None = None):
        self.request = request
        self.params: dict[str, Any] | None = dict(params) if params is not None else None

        self.action_name: str | None = None
        self.action_config: ActionConfiguration | None = None
        self.format: ResponseFormat | None = None
        self.context: ActionContext | None = None

        self.result: ActionResult | None = None
        self.error: BaseException | None = None
        self.error_kind: ErrorKind | None = None
        self.page_config: Any = None

        self.flash: dict[str, str] = {}
        self.meta: dict[str, Any] = {}
        self.dispatcher = ResponseDispatcher(self)

    # =========================================================================
    # Host hooks
    # =========================================================================

    @property
    def current_user(self) -> Any:
        """
        The authenticated user.

        Reads ``request.state.user``, then the ``user`` set by Starlette's
        AuthenticationMiddleware. Override for other sources.
        """
        if self.request is None:
            return None
        user = getattr(self.request.state, "user", None)
        if user is None:
            user = self.request.scope.get("user")
        return user

    def authenticate(self) -> Any:
        """Raise (e.g. AuthorizationError) to reject unauthenticated requests."""
        return None

    def authorize(self, config: ActionConfiguration) -> Any:
        """Raise (e.g. AuthorizationError) to reject unauthorized requests."""
        return None

    @property
    def template_renderer(self) -> TemplateRenderer:
        return self.templates if self.templates is not None else get_template_renderer()

    @property
    def frame_targets_action(self) -> bool:
        """
        Whether the current frame request is aimed at this action.

        True unless a frame id is declared (``turbo_frame`` directive or
        the ``turbo.default_frame`` setting) and the request names
        another frame.
        """
        frame_id = self.current_turbo_frame
        if frame_id is None:
            return False
        expected = None
        if self.action_config is not None:
            expected = self.action_config.turbo_frame
        expected = expected or get_settings().turbo.default_frame
        return expected is None or expected == frame_id

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_registered_action(self, name: str) -> Response:
        """
        Run the named action for the current request.

        Raises:
            ActionNotRegistered: If the action was never declared
        """
        config = self.action_registry().get(name)
        self.action_name = name
        self.action_config = config
        self.result = None
        self.error = None
        self.error_kind = None
        self.page_config = None

        ctx = ActionContext(controller=self.controller_name, action=name)
        self.context = ctx
        log = ActionLogger.for_context(ctx)

        halted: Response | None = None
        phase = "params"
        try:
            if self.params is None:
                self.params = await collect_params(self.request) if self.request else {}
            self.format = negotiate_format(self.request, self.params)
            ctx.format = self.format.value
            log.action_started(ctx.format)

            if not config.skip_authentication:
                phase = "authentication"
                await maybe_await(self.authenticate())
            if not config.skip_authorization:
                phase = "authorization"
                await maybe_await(self.authorize(config))

            phase = "before"
            halted = await self.run_callbacks(config.before_callbacks)

            if halted is None:
                phase = "service"
                started = time.perf_counter()
                self.result = await self.execute_service(config)
                ctx.record_timing("service", (time.perf_counter() - started) * 1000)

                phase = "page"
                self.page_config = await self.resolve_page_config(config, self.result)

                phase = "after"
                await self.run_callbacks(config.after_callbacks, self.result)
        except Exception as e:
            self.record_error(e, phase, log)

        if self.format is None:
            self.format = negotiate_format(self.request, self.params or {})
            ctx.format = self.format.value
        if self.result is None:
            self.result = ActionResult()

        if halted is not None:
            logger.debug(f"{type(self).__name__}#{name} halted by a before callback")
            response = halted
        else:
            response = await self.dispatch(config, log)
        ctx.status_code = response.status_code
        if ctx.success is False:
            log.action_failed(ctx.error_kind or "any", response.status_code, ctx.elapsed_ms, ctx.error)
        else:
            ctx.success = True
            log.action_completed(response.status_code, ctx.elapsed_ms)
        return response

    async def dispatch(self, config: ActionConfiguration, log: ActionLogger) -> Response:
        """Answer with the success or failure handlers; never raises."""
        started = time.perf_counter()
        try:
            return await self._dispatch(config, log)
        finally:
            self.context.record_timing("dispatch", (time.perf_counter() - started) * 1000)

    async def _dispatch(self, config: ActionConfiguration, log: ActionLogger) -> Response:
        try:
            if self.action_successful(self.result):
                self.set_success_flash(config)
                log.dispatch(self.format.value, "success")
                return await self.dispatcher.dispatch_success(config, self.format)
        except Exception as e:
            self.record_error(e, "dispatch", log)

        kind = self.error_kind or classify_result(self.result)
        self.error_kind = kind
        self.context.record_failure(kind.value, self.error or (self.result.error if self.result else None))
        try:
            self.set_error_flash(kind, config)
            log.dispatch(self.format.value, f"failure:{kind.value}")
            return await self.dispatcher.dispatch_failure(config, self.format, kind)
        except Exception as e:
            self.record_error(e, "failure dispatch", log)
            return self.fallback_error_response(kind)

    def record_error(self, error: Exception, phase: str, log: ActionLogger | None = None) -> None:
        """Store an exception raised during ``phase`` and classify it."""
        self.error = error
        self.error_kind = classify_error(error)
        if get_settings().error_handling.log_errors:
            logger.error(
                f"{type(self).__name__}#{self.action_name} failed during {phase}: {error}",
                exc_info=error,
            )
            if log is not None:
                log.action_error(error, phase)

    def action_successful(self, result: ActionResult | None) -> bool:
        """No recorded error, and the service did not report failure."""
        if self.error is not None:
            return False
        if result is None:
            return True
        return result.success is not False

    def fallback_error_response(self, kind: ErrorKind) -> Response:
        """Minimal error response used when the failure handlers themselves fail."""
        status = error_status(kind)
        if self.format is ResponseFormat.JSON:
            return error_response(self.error, status_code=status, meta=self.meta)
        return PlainTextResponse("", status_code=status)

    async def run_callbacks(self, callbacks: Iterable[Any], *args: Any) -> Response | None:
        """
        Run callbacks in order; strings name controller methods.

        Stops at the first callback returning a Response and returns it.
        """
        for callback in callbacks:
            if isinstance(callback, str):
                method = getattr(self, callback, None)
                if method is None or not callable(method):
                    raise ConfigurationError(f"{type(self).__name__} has no callback method '{callback}'")
                value = await maybe_await(method(*args))
            else:
                value = await maybe_await(callback(self, *args))
            if isinstance(value, Response):
                return value
        return None

    async def execute_service(self, config: ActionConfiguration) -> ActionResult:
        if config.service is None:
            return ActionResult()

        params = build_service_params(self.params or {}, config, self.resource_name)
        context = ServiceContext(
            params=params,
            current_user=self.current_user,
            action=config.name,
            request=self.request,
        )
        raw = await invoke_service(config.service, context, config.service_method)
        return ActionResult.from_value(raw)

    # =========================================================================
    # Page configuration
    # =========================================================================

    async def resolve_page_config(self, config: ActionConfiguration, result: ActionResult | None) -> Any:
        """
        Page config from the page class, else from the result.

        A ``page_config`` modifier receives a deep copy; the declared
        configuration is never mutated.
        """
        if config.page is not None:
            page_config = await self.execute_page(config.page, result)
        elif result is not None:
            page_config = normalize_page_config(result.page_config)
        else:
            page_config = None

        if config.page_config_modifier is not None:
            working = copy.deepcopy(page_config) if page_config is not None else PageConfig()
            modified = await maybe_await(config.page_config_modifier(working, self))
            page_config = normalize_page_config(modified if modified is not None else working)

        return page_config

    async def execute_page(self, page_class: type, result: ActionResult | None) -> Any:
        """
        Instantiate ``page_class(primary_data, user=current_user)`` and call
        the method named after the action (or the instance itself).
        """
        primary = result.primary_data if result is not None else None
        page = page_class(primary, user=self.current_user)

        method = getattr(page, self.action_name or "", None)
        if callable(method):
            value = method()
        elif callable(page):
            value = page()
        else:
            raise ConfigurationError(
                f"Page {page_class.__name__} does not respond to {self.action_name} or __call__"
            )
        return normalize_page_config(await maybe_await(value))

    # =========================================================================
    # Rendering
    # =========================================================================

    def template_name(self, action: str | None = None) -> str:
        return f"{self.controller_name}/{action or self.action_name}"

    def template_context(self, **extra: Any) -> dict[str, Any]:
        result = self.result
        context: dict[str, Any] = {
            "controller": self,
            "params": self.params or {},
            "current_user": self.current_user,
            "flash": dict(self.flash),
            "result": result,
            "resource": result.resource if result is not None else None,
            "collection": result.collection if result is not None else None,
            "errors": result.errors if result is not None else None,
            "page_config": self.page_config,
            "error": self.error,
        }
        context.update(extra)
        return context

    def build_component_locals(self, base: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Auto-injected ``result`` / ``resource`` / ``collection``, overridden by ``base``."""
        locals_: dict[str, Any] = {}
        result = self.result
        if result:
            locals_["result"] = result
            if result.resource is not None:
                locals_["resource"] = result.resource
            if result.collection is not None:
                locals_["collection"] = result.collection
        locals_.update(base or {})
        return locals_

    def render_template(
        self,
        name: str | None = None,
        status: int = 200,
        layout: bool | str | None = None,
        **locals: Any,
    ) -> HTMLResponse:
        """Render ``name`` (default ``{controller_name}/{action}``) with the template context."""
        context = self.template_context(**locals)
        body = self.template_renderer.render(name or self.template_name(), context, layout=layout)
        return HTMLResponse(body, status_code=status)

    def render_partial(
        self,
        partial: str,
        locals: Mapping[str, Any] | None = None,
        status: int = 200,
        layout: bool | str = False,
    ) -> HTMLResponse:
        renderer = self.template_renderer
        body = renderer.render_partial(partial, locals)
        if layout is not False:
            body = renderer.apply_layout(body, layout, self.template_context())
        return HTMLResponse(body, status_code=status)

    def render_component(
        self,
        component: Any,
        locals: Mapping[str, Any] | None = None,
        status: int = 200,
        layout: bool | str = False,
    ) -> HTMLResponse:
        """Render a component (components render without layout by default)."""
        body = render_component_to_string(component, self.build_component_locals(locals))
        if layout is not False:
            body = self.template_renderer.apply_layout(body, layout, self.template_context())
        return HTMLResponse(body, status_code=status)

    def render_page(self, status: int = 200) -> HTMLResponse:
        """
        Default page rendering.

        An explicit ``component`` directive wins. Otherwise:

            frame request, page component   -> component, no layout
            frame request, no component     -> template, layout=False
            regular request                 -> template, layout untouched
        """
        config = self.action_config
        if config is not None and config.component is not None:
            return self.render_component(config.component, config.component_locals, status=status)

        if self.turbo_frame_request:
            component = self.find_page_component()
            if component is not None:
                return self.render_page_component(component, status=status)
            return self.render_template(status=status, layout=False)

        return self.render_template(status=status)

    def render_page_config(self, status: int = 200, layout: bool | str | None = None) -> HTMLResponse:
        """Render the page config's component if it has one, else the template."""
        component = self.find_page_component()
        if component is not None:
            return self.render_page_component(component, status=status, layout=layout)
        if layout is None:
            return self.render_template(status=status)
        return self.render_template(status=status, layout=layout)

    def find_page_component(self) -> type | None:
        if self.page_config is None:
            return None
        namespace = self.page_component_namespace or get_settings().html.page_component_namespace
        return find_page_component(self.page_config, namespace)

    def render_page_component(
        self,
        component: type,
        status: int = 200,
        layout: bool | str | None = False,
    ) -> HTMLResponse:
        body = render_component_to_string(component, {"config": self.page_config})
        if layout is not False:
            body = self.template_renderer.apply_layout(body, layout, self.template_context())
        return HTMLResponse(body, status_code=status)

    def redirect_to(
        self,
        path: Any,
        status: int = 303,
        notice: str | None = None,
        alert: str | None = None,
        **flash: str,
    ) -> RedirectResponse:
        """
        Redirect to ``path``: a URL, a callable taking the controller, or
        the name of a controller method returning a URL.

        ``notice``, ``alert`` and any other keyword become flash messages
        carried to the next request through the session, when one exists.
        """
        if callable(path):
            url = path(self)
        elif isinstance(path, str) and not path.startswith(("/", "http://", "https://")) and callable(
            getattr(self, path, None)
        ):
            url = getattr(self, path)()
        else:
            url = path

        if notice:
            self.flash["notice"] = notice
        if alert:
            self.flash["alert"] = alert
        self.flash.update({k: v for k, v in flash.items() if v})
        self.persist_flash()
        return RedirectResponse(str(url), status_code=status)

    # =========================================================================
    # Flash
    # =========================================================================

    def set_success_flash(self, config: ActionConfiguration) -> None:
        message = get_settings().flash_message(
            f"{self.controller_name}.{config.name}.success",
            "actions.success",
        )
        if message:
            self.flash["notice"] = message

    def set_error_flash(self, kind: ErrorKind, config: ActionConfiguration) -> None:
        message = get_settings().flash_message(
            f"{self.controller_name}.{config.name}.{kind.value}",
            f"errors.{kind.value}",
        )
        if message:
            self.flash["alert"] = message

    def persist_flash(self) -> None:
        """Store flash messages in the session (requires SessionMiddleware)."""
        if self.request is None or "session" not in self.request.scope or not self.flash:
            return
        stored = dict(self.request.session.get(FLASH_SESSION_KEY) or {})
        stored.update(self.flash)
        self.request.session[FLASH_SESSION_KEY] = stored

    def consume_flash(self) -> dict[str, str]:
        """Flash messages carried over from the previous request."""
        if self.request is None or "session" not in self.request.scope:
            return {}
        return dict(self.request.session.pop(FLASH_SESSION_KEY, None) or {})

    # =========================================================================
    # JSON envelope
    # =========================================================================

    def add_meta(self, key: str, value: Any) -> None:
        """Add a key to the ``meta`` of envelope responses."""
        self.meta[key] = value

    def envelope(self, data: Any = None, meta: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return build_response(data, {**self.meta, **dict(meta or {})})

    def respond_with_success(
        self,
        data: Any = None,
        status: int = 200,
        meta: Mapping[str, Any] | None = None,
    ) -> JSONResponse:
        return json_response(self.envelope(data, meta), status)

    def respond_with_error(
        self,
        error: Any = None,
        status: int = 422,
        meta: Mapping[str, Any] | None = None,
    ) -> JSONResponse:
        return error_response(error, status_code=status, meta={**self.meta, **dict(meta or {})})

    def serialize(self, resource: Any, serializer: type[Serializer] | Serializer | None = None) -> Any:
        """Serialize ``resource`` with ``serializer``, else the controller's ``serializer``."""
        return serialize(resource, serializer if serializer is not None else self.serializer)

    def serialize_result(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """Apply the controller's serializer to the ``resource`` and ``collection`` of a JSON body."""
        body = dict(body)
        if self.serializer is None:
            return body
        for key in ("resource", "collection"):
            if body.get(key) is not None:
                body[key] = self.serialize(body[key])
        return body

    # =========================================================================
    # Hand-written actions
    # =========================================================================

    async def execute_action(self, block: Callable[["Controller"], Any]) -> Response:
        """
        Run a hand-written action with envelope error handling.

        ``block(controller)`` may be sync or async. A returned Response is
        used as-is; any other value is wrapped by ``respond_with_success``.
        Exceptions are answered by ``handle_exception``.

        Example:
            async def show(self):
                return await self.execute_action(
                    lambda c: c.serialize(find_post(c.params["id"]))
                )
        """
        logger.debug(f"Executing {type(self).__name__}#{getattr(block, '__name__', 'block')}")
        try:
            if self.params is None:
                self.params = await collect_params(self.request) if self.request else {}
            value = await maybe_await(block(self))
        except Exception as e:
            return self.handle_exception(e)

        if isinstance(value, Response):
            return value
        return self.respond_with_success(value)

    def handle_exception(self, error: Exception) -> JSONResponse:
        """
        Envelope error response for an exception.

        ServiceErrors answer with their message, ``meta["status"]`` when
        given and their field errors under ``meta.errors``; a plain
        ServiceError defaults to 422. Other exceptions answer with the
        status of their classified ErrorKind.
        """
        if get_settings().error_handling.log_errors:
            logger.error(f"{type(self).__name__} action failed: {error}", exc_info=error)

        self.error = error
        self.error_kind = classify_error(error)
        status = error_status(self.error_kind)

        if isinstance(error, ServiceError):
            if self.error_kind is ErrorKind.ANY:
                status = 422
            status = error.meta.get("status") or status
            errors = error.errors
            return self.respond_with_error(
                str(error),
                status=status,
                meta={"errors": errors} if errors else None,
            )
        return self.respond_with_error(error, status=status)

    def respond_with_service(
        self,
        result: Any,
        success_path: Any = None,
        failure_path: Any = None,
        template: str | None = None,
    ) -> Response:
        """
        Format-aware response for a service result outside the action DSL.

        Success (``success`` not False) sets the ``notice`` flash from the
        result's ``message``; failure sets ``alert`` from its ``error``.
        Then, per format:

            html, turbo_frame: the result's ``redirect_to``, else the given
                path, else its page config, else ``template``
            turbo_stream: the result's ``turbo_streams``, else the flash
                (and form-errors) streams
            json, csv, xml: the built-in default for the format

        Failures answer with the result's ``status``, else the status of
        its classified ErrorKind (422 when unclassified).

        Example:
            result = await CreateUser().call(ServiceContext(params=self.params))
            return self.respond_with_service(result, success_path="/users")
        """
        self.result = ActionResult.from_value(result)
        if self.format is None:
            self.format = negotiate_format(self.request, self.params or {})
        fmt = self.format
        streams = self.result.get("turbo_streams")

        if self.result.success is not False:
            if self.result.message:
                self.flash["notice"] = str(self.result.message)
            if fmt is ResponseFormat.TURBO_STREAM and streams:
                return self.render_streams(streams)
            if fmt in HTML_FORMATS:
                return self._render_service_html(success_path, "notice", 200, template)
            return self.dispatcher.default_success(fmt)

        self.error_kind = classify_result(self.result)
        status = self.result.get("status") or (
            422 if self.error_kind is ErrorKind.ANY else error_status(self.error_kind)
        )
        if self.result.error:
            self.flash["alert"] = str(self.result.error)
        if fmt is ResponseFormat.TURBO_STREAM and streams:
            return self.render_streams(streams, status=status)
        if fmt in HTML_FORMATS:
            return self._render_service_html(failure_path, "alert", status, template)
        return self.dispatcher.default_failure(fmt, status)

    def _render_service_html(self, path: Any, flash_type: str, status: int, template: str | None) -> Response:
        target = self.result.get("redirect_to") or path
        if target is not None:
            return self.redirect_to(target, **{flash_type: self.flash.get(flash_type)})
        if self.result.page_config is not None:
            self.page_config = normalize_page_config(self.result.page_config)
            return self.render_page_config(status=status)
        return self.render_template(template, status=status)

    def respond_with_page_config(
        self,
        result: Any,
        status: int | None = None,
        layout: bool | str | None = None,
    ) -> HTMLResponse:
        """Render the result's page config: 200 on success, 422 on failure unless ``status`` is given."""
        self.result = ActionResult.from_value(result)
        self.page_config = normalize_page_config(self.result.page_config)
        if status is None:
            status = 200 if self.result.success is not False else 422
        return self.render_page_config(status=status, layout=layout)

    # =========================================================================
    # Pagination and CSV
    # =========================================================================

    def paginate(self, collection: Any, page: Any = None, per_page: Any = None) -> Page:
        """
        Paginate ``collection`` and add ``pagination`` (and, with a
        request, ``pagination_links``) to the envelope meta.
        """
        settings = get_settings().pagination
        params = self.params or {}

        if not settings.enabled:
            items = collection if hasattr(collection, "__len__") else list(collection or [])
            return Page(items=items, current_page=1, per_page=max(len(items), 1), total_count=len(items))

        result = paginate(
            collection,
            page=page if page is not None else params.get("page"),
            per_page=per_page if per_page is not None else params.get("per_page"),
            default_per_page=settings.per_page,
            max_per_page=settings.max_per_page,
        )
        self.add_meta("pagination", pagination_meta(result))
        if self.request is not None:
            self.add_meta("pagination_links", pagination_links(result, self.request.url))
        return result

    def generate_csv(
        self,
        collection: Any,
        columns: Sequence[str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        return generate_csv(collection, columns=columns, headers=headers)

    def send_csv(
        self,
        collection: Any,
        filename: str = "export.csv",
        columns: Sequence[str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return send_csv(collection, filename=filename, columns=columns, headers=headers)


# Class attributes plus the per-request instance attributes set in __init__
_RESERVED_NAMES = frozenset(name for name in dir(Controller) if not name.startswith("_")) | frozenset(
    vars(Controller(None)).keys()
)
