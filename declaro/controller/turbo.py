"""
Turbo helpers for controllers.

Request detection, one-shot stream operations and stream rendering.

Example:
    async def archive(self):
        user = await archive_user(self.params["id"])
        if self.turbo_stream_request:
            return self.render_streams([
                self.stream_remove(user),
                self.stream_flash("notice", "User archived"),
            ])
        return self.turbo_redirect_to("/users")
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from starlette.responses import RedirectResponse, Response

from declaro.actions.configuration import ResponseFormat
from declaro.config import get_settings
from declaro.rendering.component import render_component_to_string
from declaro.turbo.builder import StreamOperation, TurboStreamBuilder
from declaro.turbo.streams import TURBO_STREAM_MEDIA_TYPE, TurboStreamResponse, render_operations

from .negotiation import TURBO_FRAME_HEADER

if TYPE_CHECKING:
    from starlette.requests import Request

    from declaro.rendering.templates import TemplateRenderer


class TurboMixin:
    """Turbo Frame / Stream helpers; mixed into Controller."""

    request: "Request | None"
    format: ResponseFormat | None

    # Provided by Controller: template_renderer, build_component_locals,
    # redirect_to, render_template
    template_renderer: "TemplateRenderer"

    # =========================================================================
    # Request detection
    # =========================================================================

    @property
    def current_turbo_frame(self) -> str | None:
        """Id of the frame the request was issued from."""
        if self.request is None:
            return None
        return self.request.headers.get(TURBO_FRAME_HEADER) or None

    @property
    def turbo_frame_request(self) -> bool:
        return self.current_turbo_frame is not None

    @property
    def turbo_stream_request(self) -> bool:
        if self.format is ResponseFormat.TURBO_STREAM:
            return True
        if self.request is None:
            return False
        return TURBO_STREAM_MEDIA_TYPE in self.request.headers.get("accept", "")

    @property
    def turbo_native_app(self) -> bool:
        if self.request is None:
            return False
        return "Turbo Native" in self.request.headers.get("user-agent", "")

    # =========================================================================
    # Streams
    # =========================================================================

    def turbo_stream(self) -> TurboStreamBuilder:
        """A stream builder using the configured flash and form-errors partials."""
        html = get_settings().html
        return TurboStreamBuilder(
            flash_partial=html.flash_partial,
            form_errors_partial=html.form_errors_partial,
        )

    def render_stream_content(self, operation: StreamOperation) -> str | None:
        """Component first, then partial, then inline HTML."""
        if operation.component is not None:
            return render_component_to_string(
                operation.component, self.build_component_locals(operation.locals)
            )
        if operation.partial is not None:
            return self.template_renderer.render_partial(operation.partial, operation.locals)
        return operation.html

    def render_streams(
        self,
        operations: Iterable[StreamOperation] | TurboStreamBuilder,
        status: int = 200,
    ) -> TurboStreamResponse:
        """Render stream operations as a Turbo Stream response."""
        if isinstance(operations, TurboStreamBuilder):
            operations = operations.build()
        body = render_operations(operations, self.render_stream_content)
        return TurboStreamResponse(body, status_code=status)

    def _stream(self, action: str, target: Any, **content: Any) -> StreamOperation:
        locals = content.pop("locals", None)
        return StreamOperation(action=action, target=target, locals=dict(locals or {}), **content)

    def stream_append(self, target: Any, **content: Any) -> StreamOperation:
        return self._stream("append", target, **content)

    def stream_prepend(self, target: Any, **content: Any) -> StreamOperation:
        return self._stream("prepend", target, **content)

    def stream_replace(self, target: Any, **content: Any) -> StreamOperation:
        return self._stream("replace", target, **content)

    def stream_update(self, target: Any, **content: Any) -> StreamOperation:
        return self._stream("update", target, **content)

    def stream_before(self, target: Any, **content: Any) -> StreamOperation:
        return self._stream("before", target, **content)

    def stream_after(self, target: Any, **content: Any) -> StreamOperation:
        return self._stream("after", target, **content)

    def stream_remove(self, target: Any) -> StreamOperation:
        return StreamOperation(action="remove", target=target)

    def stream_refresh(self) -> StreamOperation:
        return StreamOperation(action="refresh")

    def stream_flash(self, type: str = "notice", message: str | None = None) -> StreamOperation:
        return self.turbo_stream().flash(type, message).build()[0]

    def stream_form_errors(self, errors: Any, target: Any = "form_errors") -> StreamOperation:
        return self.turbo_stream().form_errors(errors, target=target).build()[0]

    # =========================================================================
    # Frames and redirects
    # =========================================================================

    def turbo_redirect_to(self, path: Any, status: int = 303, **options: Any) -> RedirectResponse:
        """Redirect with 303 See Other, which Turbo follows after form submissions."""
        return self.redirect_to(path, status=status, **options)

    def render_in_frame(self, name: str | None = None, **options: Any) -> Response:
        """Render a template, without layout when answering a frame request."""
        if self.turbo_frame_request:
            options.setdefault("layout", False)
        return self.render_template(name, **options)
