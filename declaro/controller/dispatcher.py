"""
Response Dispatcher for Declaro.

Given the outcome of an action run and the negotiated format, picks the
handler to execute:

    success:  on_success[format]            -> built-in default
    failure:  on_error(kind)[format]
              -> on_error(any)[format]      -> built-in default

HTML and Turbo Frame requests consult the HTML-side directives
(``redirect_to``, ``html``, ``render_page``, ``render_component``,
``render_partial``); a Turbo Frame request with a declared
``turbo_frame`` handler renders that instead.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from starlette.responses import HTMLResponse, Response

from declaro.actions.configuration import (
    ActionConfiguration,
    Block,
    HandlerDescriptor,
    Redirect,
    RenderComponent,
    RenderPage,
    RenderPartial,
    ResponseFormat,
    ResponseHandlers,
    TurboFrame,
    TurboStreamList,
)
from declaro.actions.service import maybe_await
from declaro.config import get_settings
from declaro.errors import ErrorKind, error_status
from declaro.responses.csv_export import CSV_MEDIA_TYPE
from declaro.responses.envelope import (
    DEFAULT_ERROR_MESSAGE,
    build_json_error_response,
    build_json_response,
    json_response,
)
from declaro.responses.xml_export import build_xml_error, to_xml, xml_response
from declaro.turbo.streams import TurboStreamResponse

if TYPE_CHECKING:
    from .base import Controller

logger = logging.getLogger(__name__)

HTML_FORMATS = (ResponseFormat.HTML, ResponseFormat.TURBO_FRAME)


def coerce_response(value: Any, fmt: ResponseFormat, status_code: int = 200) -> Response:
    """
    Turn a handler's return value into a response.

    - Responses are used as-is
    - Mappings and lists become JSON (XML for the XML format)
    - Strings become a body in the format's media type
    - None becomes an empty 204
    """
    if isinstance(value, Response):
        return value
    if value is None:
        return Response(status_code=204)

    if isinstance(value, (Mapping, list, tuple)):
        if fmt is ResponseFormat.XML:
            return xml_response(to_xml(value), status_code)
        return json_response(value, status_code)

    text = value if isinstance(value, str) else str(value)
    if fmt is ResponseFormat.TURBO_STREAM:
        return TurboStreamResponse(text, status_code=status_code)
    if fmt is ResponseFormat.CSV:
        return Response(text, status_code=status_code, media_type=CSV_MEDIA_TYPE)
    if fmt is ResponseFormat.XML:
        return xml_response(text, status_code)
    if fmt is ResponseFormat.JSON:
        return json_response(text, status_code)
    return HTMLResponse(text, status_code=status_code)


class ResponseDispatcher:
    """Executes the success or failure response of one action run."""

    def __init__(self, controller: "Controller"):
        self.controller = controller

    # =========================================================================
    # Entry points
    # =========================================================================

    async def dispatch_success(self, config: ActionConfiguration, fmt: ResponseFormat) -> Response:
        handlers = config.on_success
        if fmt in HTML_FORMATS:
            return await self._dispatch_html(handlers, fmt, 200, failure=False)

        handler = handlers.for_format(fmt)
        if handler is not None:
            return await self.execute(handler, fmt, 200, failure=False)
        return self.default_success(fmt)

    async def dispatch_failure(
        self,
        config: ActionConfiguration,
        fmt: ResponseFormat,
        kind: ErrorKind,
    ) -> Response:
        status = error_status(kind)
        handlers = config.find_error_handlers(kind)
        if fmt in HTML_FORMATS:
            return await self._dispatch_html(handlers, fmt, status, failure=True)

        handler = handlers.for_format(fmt)
        if handler is not None:
            return await self.execute(handler, fmt, status, failure=True)
        return self.default_failure(fmt, status)

    async def _dispatch_html(
        self,
        handlers: ResponseHandlers,
        fmt: ResponseFormat,
        status: int,
        failure: bool,
    ) -> Response:
        controller = self.controller
        if (
            fmt is ResponseFormat.TURBO_FRAME
            and handlers.turbo_frame is not None
            and controller.frame_targets_action
        ):
            return self.render_frame(handlers.turbo_frame, status)

        handler = handlers.html_handler()
        if handler is None:
            return controller.render_page(status=status)
        return await self.execute(handler, ResponseFormat.HTML, status, failure)

    # =========================================================================
    # Descriptor execution
    # =========================================================================

    async def execute(
        self,
        handler: HandlerDescriptor,
        fmt: ResponseFormat,
        status: int,
        failure: bool,
    ) -> Response:
        controller = self.controller
        logger.debug(f"Executing {type(handler).__name__} for {fmt.value} (status={status})")

        if isinstance(handler, Redirect):
            return controller.redirect_to(handler.path, **dict(handler.options))

        if isinstance(handler, RenderPage):
            return controller.render_page(status=handler.status or status)

        if isinstance(handler, RenderComponent):
            return controller.render_component(
                handler.component, handler.locals, status=handler.status or status
            )

        if isinstance(handler, RenderPartial):
            return controller.render_partial(handler.partial, handler.locals, status=handler.status or status)

        if isinstance(handler, Block):
            if failure:
                value = handler.callback(controller, controller.error)
            else:
                value = handler.callback(controller)
            return coerce_response(await maybe_await(value), fmt, status)

        if isinstance(handler, TurboStreamList):
            return controller.render_streams(handler.operations, status=status)

        if isinstance(handler, TurboFrame):
            return self.render_frame(handler, status)

        raise TypeError(f"Unknown handler descriptor: {handler!r}")

    def render_frame(self, frame: TurboFrame, status: int) -> Response:
        """Render a declared ``turbo_frame`` handler."""
        controller = self.controller
        content = frame.content
        layout = frame.layout

        if content is None:
            return controller.render_template(status=status, layout=layout)

        if content.type == "component":
            return controller.render_component(
                content.klass, content.locals, status=status, layout=layout
            )
        if content.type == "partial":
            return controller.render_partial(
                content.path, content.locals, status=status, layout=layout
            )
        if content.type == "page":
            return controller.render_page_config(status=content.status or status, layout=layout)

        return controller.render_template(status=status, layout=layout)

    # =========================================================================
    # Built-in defaults
    # =========================================================================

    def default_success(self, fmt: ResponseFormat) -> Response:
        controller = self.controller

        if fmt is ResponseFormat.JSON:
            body = build_json_response(controller.result)
            return controller.respond_with_success(controller.serialize_result(body))

        if fmt is ResponseFormat.TURBO_STREAM:
            streams = controller.turbo_stream()
            if get_settings().turbo.auto_flash:
                streams.flash("notice", controller.flash.get("notice"))
            return controller.render_streams(streams.build())

        # CSV and XML have no default success body
        return Response(status_code=204)

    def default_failure(self, fmt: ResponseFormat, status: int) -> Response:
        controller = self.controller
        result = controller.result
        error = controller.error

        if fmt is ResponseFormat.JSON:
            body = build_json_error_response(result, error)
            return json_response(controller.envelope(body), status)

        if fmt is ResponseFormat.TURBO_STREAM:
            turbo = get_settings().turbo
            streams = controller.turbo_stream()
            if turbo.auto_flash:
                streams.flash("alert", controller.flash.get("alert"))
            errors = result.errors if result is not None else None
            if errors and turbo.auto_form_errors:
                streams.form_errors(errors)
            return controller.render_streams(streams.build(), status=status)

        if fmt is ResponseFormat.XML:
            message = str(error) if error is not None else None
            message = message or (result.error if result is not None else None)
            errors = result.errors if result is not None else None
            return xml_response(build_xml_error(message or DEFAULT_ERROR_MESSAGE, errors), status)

        # CSV carries no structured errors
        return Response(status_code=status)
