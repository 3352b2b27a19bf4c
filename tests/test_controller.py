"""
Tests for the Controller execution pipeline and response dispatch.
"""
import json
from unittest.mock import MagicMock

import pytest
from starlette.requests import Request
from starlette.responses import HTMLResponse

from declaro import (
    ActionNotRegistered,
    AuthorizationError,
    Component,
    ConfigurationError,
    Controller,
    ErrorKind,
    NotFoundError,
    PageConfig,
    Serializer,
    ServiceError,
    ValidationFailedError,
    action,
    configure,
)
from declaro.actions import ActionResult


def make_request(headers=None, method="GET", path="/reports", session=None):
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "path_params": {},
    }
    if session is not None:
        scope["session"] = session
    return Request(scope)


def json_body(response):
    return json.loads(response.body)


class Card(Component):
    def render(self):
        config = self.locals.get("config")
        title = config.get("title") if config is not None else self.locals.get("title")
        return f"<article>{title}</article>"


class ResourceCard(Component):
    def render(self):
        size = self.locals.get("size")
        suffix = f" {size}" if size else ""
        return f"<article>{self.resource['name']}{suffix}</article>"


class ReportPage:
    def __init__(self, data, user=None):
        self.data = data
        self.user = user

    def show(self):
        return {"type": "show", "title": f"Report {self.data['id']}", "user": self.user}


def report_service(ctx):
    return {"success": True, "resource": {"id": ctx.params.get("id", 1), "name": "Q1"}}


def failing_service(ctx):
    raise RuntimeError("boom")


class ReportsController(Controller):
    @action
    def index(a):
        a.service(report_service)
        a.on_success().html(lambda c: "<p>reports</p>")

    @action
    def show(a):
        a.service(report_service).page(ReportPage)
        a.on_success().html(lambda c: c.page_config["title"])

    @action
    def card(a):
        a.service(report_service).component(ResourceCard, locals={"size": "lg"})

    @action
    def broken(a):
        a.service(failing_service)

    @action
    def broken_handler(a):
        a.service(failing_service)
        a.on_error().json(lambda c, e: 1 / 0)

    @action
    def broken_success(a):
        a.service(report_service)
        a.on_success().json(lambda c: 1 / 0)


def run(controller, name):
    return controller.execute_registered_action(name)


class TestExecution:
    """Tests for execute_registered_action."""

    @pytest.mark.asyncio
    async def test_unregistered_action_raises(self):
        controller = ReportsController(params={})

        with pytest.raises(ActionNotRegistered, match="Action nope not registered on ReportsController"):
            await run(controller, "nope")

    @pytest.mark.asyncio
    async def test_action_method_is_installed(self):
        controller = ReportsController(params={})

        response = await controller.index()

        assert response.status_code == 200
        assert response.body == b"<p>reports</p>"

    @pytest.mark.asyncio
    async def test_service_exception_becomes_failure(self):
        controller = ReportsController(params={"format": "json"})

        response = await run(controller, "broken")

        assert response.status_code == 500
        assert json_body(response)["data"] == {"success": False, "error": "boom"}
        assert controller.error_kind is ErrorKind.ANY
        assert controller.context.success is False
        assert controller.context.error == "RuntimeError: boom"

    @pytest.mark.asyncio
    async def test_failing_error_handler_falls_back(self):
        controller = ReportsController(params={"format": "json"})

        response = await run(controller, "broken_handler")

        assert response.status_code == 500
        assert json_body(response)["data"]["error"]["type"] == "ZeroDivisionError"

    @pytest.mark.asyncio
    async def test_failing_success_handler_routes_to_failure(self):
        controller = ReportsController(params={"format": "json"})

        response = await run(controller, "broken_success")

        assert response.status_code == 500
        assert json_body(response)["data"]["success"] is False

    @pytest.mark.asyncio
    async def test_error_kind_handler_gets_error(self):
        async def not_found(ctx):
            raise NotFoundError("No such report")

        class ArchiveController(Controller):
            @action
            def show(a):
                a.service(not_found)
                a.on_error("not_found").json(lambda c, e: {"missing": str(e)})
                a.on_error().json(lambda c, e: {"any": str(e)})

        controller = ArchiveController(params={"format": "json"})

        response = await run(controller, "show")

        assert response.status_code == 404
        assert json_body(response) == {"missing": "No such report"}

    @pytest.mark.asyncio
    async def test_failed_result_without_exception(self):
        class LedgerController(Controller):
            @action
            def create(a):
                a.service(lambda ctx: {"success": False, "error_code": "unauthorized"})

        controller = LedgerController(params={"format": "json"})

        response = await run(controller, "create")

        assert response.status_code == 403
        assert controller.error_kind is ErrorKind.AUTHORIZATION

    @pytest.mark.asyncio
    async def test_no_service_gives_empty_result(self, renderer):
        class NotesController(Controller):
            @action
            def index(a):
                pass

        renderer.register("notes/index", lambda ctx: "<p>notes</p>")
        controller = NotesController(params={})

        response = await run(controller, "index")

        assert response.status_code == 200
        assert controller.result == ActionResult()

    @pytest.mark.asyncio
    async def test_audit_record(self):
        controller = ReportsController(params={})

        await run(controller, "index")

        audit = controller.context.to_audit_dict()
        assert audit["controller"] == "reports"
        assert audit["action"] == "index"
        assert audit["format"] == "html"
        assert audit["success"] is True
        assert audit["status_code"] == 200
        assert "service" in audit["phase_timings"]
        assert "dispatch" in audit["phase_timings"]

    @pytest.mark.asyncio
    async def test_errors_are_logged(self, caplog):
        controller = ReportsController(params={"format": "json"})

        with caplog.at_level("ERROR", logger="declaro.controller.base"):
            await run(controller, "broken")

        assert "ReportsController#broken failed during service: boom" in caplog.text

    @pytest.mark.asyncio
    async def test_error_logging_can_be_disabled(self, caplog):
        configure(error_handling={"log_errors": False})
        controller = ReportsController(params={"format": "json"})

        with caplog.at_level("ERROR", logger="declaro.controller.base"):
            await run(controller, "broken")

        assert "failed during" not in caplog.text


class TestCallbacksAndHooks:
    """Tests for callbacks, authentication and authorization."""

    @pytest.mark.asyncio
    async def test_callbacks_run_in_order(self):
        calls = []

        class AuditController(Controller):
            def load(self):
                calls.append("load")

            @action
            def index(a):
                a.before(lambda c: calls.append("first"))
                a.before("load")
                a.service(lambda ctx: calls.append("service") or {"success": True})
                a.after(lambda c, result: calls.append(f"after:{result.success}"))
                a.on_success().json(lambda c: {"ok": True})

        await run(AuditController(params={"format": "json"}), "index")

        assert calls == ["first", "load", "service", "after:True"]

    @pytest.mark.asyncio
    async def test_async_callbacks(self):
        seen = []

        async def remember(controller):
            seen.append(controller.action_name)

        class AsyncController(Controller):
            @action
            def index(a):
                a.before(remember)
                a.on_success().json(lambda c: {})

        await run(AsyncController(params={"format": "json"}), "index")

        assert seen == ["index"]

    @pytest.mark.asyncio
    async def test_before_callback_response_halts_action(self):
        calls = []

        class GateController(Controller):
            def require_login(self):
                return self.redirect_to("/login")

            @action
            def index(a):
                a.before("require_login")
                a.before(lambda c: calls.append("second"))
                a.service(lambda ctx: calls.append("service") or {"success": True})
                a.after(lambda c, result: calls.append("after"))

        controller = GateController(params={})

        response = await run(controller, "index")

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert calls == []
        assert controller.context.status_code == 303

    @pytest.mark.asyncio
    async def test_missing_callback_method_is_a_failure(self):
        class TypoController(Controller):
            @action
            def index(a):
                a.before("lod")

        response = await run(TypoController(params={"format": "json"}), "index")

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_authorization_hook(self):
        class SecureController(Controller):
            def authorize(self, config):
                if config.name == "admin":
                    raise AuthorizationError("Admins only")

            @action
            def admin(a):
                a.on_success().json(lambda c: {"ok": True})

            @action
            def public(a):
                a.skip_authorization()
                a.on_success().json(lambda c: {"ok": True})

        denied = await run(SecureController(params={"format": "json"}), "admin")
        allowed = await run(SecureController(params={"format": "json"}), "public")

        assert denied.status_code == 403
        assert json_body(denied)["data"]["error"] == "Admins only"
        assert allowed.status_code == 200

    @pytest.mark.asyncio
    async def test_skip_authentication(self):
        class LockedController(Controller):
            async def authenticate(self):
                raise AuthorizationError("Sign in first")

            @action
            def health(a):
                a.skip_authentication()
                a.on_success().json(lambda c: {"ok": True})

            @action
            def dashboard(a):
                a.on_success().json(lambda c: {"ok": True})

        assert (await run(LockedController(params={"format": "json"}), "health")).status_code == 200
        assert (await run(LockedController(params={"format": "json"}), "dashboard")).status_code == 403

    @pytest.mark.asyncio
    async def test_current_user_reaches_service(self):
        seen = {}

        def whoami(ctx):
            seen["user"] = ctx.current_user
            seen["action"] = ctx.action
            return {"success": True}

        class MeController(Controller):
            @action
            def show(a):
                a.service(whoami)
                a.on_success().json(lambda c: {})

        request = make_request({"Accept": "application/json"})
        request.state.user = "ada"

        await run(MeController(request, params={}), "show")

        assert seen == {"user": "ada", "action": "show"}


class TestPageConfig:
    """Tests for page config resolution."""

    @pytest.mark.asyncio
    async def test_page_class(self):
        controller = ReportsController(params={"id": 7})

        response = await run(controller, "show")

        assert response.body == b"Report 7"
        assert isinstance(controller.page_config, PageConfig)

    @pytest.mark.asyncio
    async def test_page_config_from_result(self):
        class DashController(Controller):
            @action
            def index(a):
                a.service(lambda ctx: {"success": True, "page_config": {"type": "dashboard"}})
                a.on_success().html(lambda c: c.page_config.page_type)

        controller = DashController(params={})

        response = await run(controller, "index")

        assert response.body == b"dashboard"

    @pytest.mark.asyncio
    async def test_modifier_works_on_a_copy(self):
        shared = {"type": "index", "components": {"table": {"title": "All"}}}

        def retitle(page_config, controller):
            page_config["components"]["table"]["title"] = controller.params["title"]

        class TableController(Controller):
            @action
            def index(a):
                a.service(lambda ctx: {"success": True, "page_config": shared})
                a.page_config(retitle)
                a.on_success().html(lambda c: c.page_config.dig("components", "table", "title"))

        response = await run(TableController(params={"title": "Mine"}), "index")

        assert response.body == b"Mine"
        assert shared["components"]["table"]["title"] == "All"

    @pytest.mark.asyncio
    async def test_modifier_return_value_replaces(self):
        class TitleController(Controller):
            @action
            def index(a):
                a.page_config(lambda page_config, controller: {"title": "Fresh"})
                a.on_success().html(lambda c: c.page_config["title"])

        response = await run(TitleController(params={}), "index")

        assert response.body == b"Fresh"


class FormComponent(Component):
    def render(self):
        result = self.locals.get("result")
        errors = result.errors if result is not None else None
        return f"<form>{', '.join(errors or [])}</form>"


def invalid_signup(ctx):
    return {"success": False, "errors": {"email": ["is invalid"]}}


class TestFailureRendering:
    """Failure handlers answer with the error status unless one is declared."""

    @pytest.mark.asyncio
    async def test_render_component_uses_error_status(self):
        class SignupsController(Controller):
            @action
            def create(a):
                a.service(invalid_signup)
                a.on_error("validation").render_component(FormComponent)

        controller = SignupsController(params={})

        response = await run(controller, "create")

        assert response.status_code == 422
        assert response.body == b"<form>email</form>"
        assert controller.context.status_code == 422

    @pytest.mark.asyncio
    async def test_render_partial_uses_error_status(self, renderer):
        class SignupsController(Controller):
            @action
            def create(a):
                a.service(invalid_signup)
                a.on_error("validation").render_partial("users/_row", locals={"name": "Ada"})

        response = await run(SignupsController(params={}), "create")

        assert response.status_code == 422
        assert response.body == b"<li>Ada</li>"

    @pytest.mark.asyncio
    async def test_declared_status_wins(self, renderer):
        class SignupsController(Controller):
            @action
            def create(a):
                a.service(invalid_signup)
                a.on_error("validation").render_partial("users/_row", status=400)

        response = await run(SignupsController(params={}), "create")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_success_defaults_to_ok(self):
        class SignupsController(Controller):
            @action
            def new(a):
                a.on_success().render_component(FormComponent)

        response = await run(SignupsController(params={}), "new")

        assert response.status_code == 200
        assert response.body == b"<form></form>"


class TestRenderPage:
    """The frame-request x page-component table for default page rendering."""

    def make_controller(self, frame, component):
        headers = {"Turbo-Frame": "reports"} if frame else {}
        controller = ReportsController(make_request(headers), params={})
        controller.action_name = "index"
        controller.action_config = ReportsController.action_registry().get("index")
        controller.result = ActionResult()
        controller.page_config = PageConfig({"klass": Card, "title": "Q1"}) if component else None
        controller.render_template = MagicMock(return_value=HTMLResponse("template"))
        return controller

    def test_frame_with_component(self, renderer):
        controller = self.make_controller(frame=True, component=True)

        response = controller.render_page()

        assert response.body == b"<article>Q1</article>"
        controller.render_template.assert_not_called()

    def test_no_frame_with_component(self, renderer):
        controller = self.make_controller(frame=False, component=True)

        response = controller.render_page()

        assert response.body == b"template"
        controller.render_template.assert_called_once_with(status=200)

    def test_frame_without_component(self, renderer):
        controller = self.make_controller(frame=True, component=False)

        controller.render_page()

        controller.render_template.assert_called_once_with(status=200, layout=False)

    def test_no_frame_without_component(self, renderer):
        controller = self.make_controller(frame=False, component=False)

        controller.render_page()

        controller.render_template.assert_called_once_with(status=200)

    def test_status_is_passed_through(self, renderer):
        controller = self.make_controller(frame=True, component=False)

        controller.render_page(status=422)

        controller.render_template.assert_called_once_with(status=422, layout=False)

    @pytest.mark.asyncio
    async def test_component_directive_wins(self, renderer):
        controller = ReportsController(params={})

        response = await run(controller, "card")

        assert response.body == b"<article>Q1 lg</article>"


class TestTurboFrameDirective:
    """Tests for the explicit turbo_frame directive."""

    @pytest.fixture
    def controller_class(self, renderer):
        renderer.register("widgets/index", lambda ctx: "<section>widgets</section>")

        class WidgetsController(Controller):
            @action
            def index(a):
                a.turbo_frame("widget_list")
                a.on_success().turbo_frame(lambda f: f.component(Card, locals={"title": "Framed"}))

        return WidgetsController

    @pytest.mark.asyncio
    async def test_matching_frame_renders_declared_content(self, controller_class):
        request = make_request({"Turbo-Frame": "widget_list"})

        response = await run(controller_class(request, params={}), "index")

        assert response.body == b"<article>Framed</article>"

    @pytest.mark.asyncio
    async def test_other_frame_uses_default_rendering(self, controller_class):
        request = make_request({"Turbo-Frame": "sidebar"})

        response = await run(controller_class(request, params={}), "index")

        assert response.body == b"<section>widgets</section>"

    @pytest.mark.asyncio
    async def test_regular_request_ignores_frame_handler(self, controller_class):
        response = await run(controller_class(make_request(), params={}), "index")

        assert response.body == b"<main><section>widgets</section></main>"

    @pytest.mark.asyncio
    async def test_frame_partial_with_layout(self, renderer):
        class PanelsController(Controller):
            @action
            def index(a):
                a.on_success().turbo_frame(lambda f: f.partial("users/_row", locals={"name": "Ada"}).layout(True))

        request = make_request({"Turbo-Frame": "panel"})

        response = await run(PanelsController(request, params={}), "index")

        assert response.body == b"<main><li>Ada</li></main>"


class TestFlashAndRedirects:
    """Tests for flash messages and redirects."""

    def test_redirect_persists_flash_to_session(self):
        session = {}
        controller = ReportsController(make_request(session=session), params={})

        response = controller.redirect_to("/reports", notice="Saved")

        assert response.status_code == 303
        assert session["_flash"] == {"notice": "Saved"}

    def test_consume_flash(self):
        session = {"_flash": {"alert": "Nope"}}
        controller = ReportsController(make_request(session=session), params={})

        assert controller.consume_flash() == {"alert": "Nope"}
        assert "_flash" not in session

    def test_redirect_to_method_name(self):
        class HomeController(Controller):
            def home_path(self):
                return "/home"

        response = HomeController(params={}).redirect_to("home_path")

        assert response.headers["location"] == "/home"

    def test_redirect_to_callable(self):
        response = ReportsController(params={"id": 3}).redirect_to(lambda c: f"/reports/{c.params['id']}")

        assert response.headers["location"] == "/reports/3"

    def test_turbo_redirect_uses_see_other(self):
        assert ReportsController(params={}).turbo_redirect_to("/reports").status_code == 303

    @pytest.mark.asyncio
    async def test_error_flash(self):
        configure(flash_messages={"errors.any": "Something went wrong"})
        controller = ReportsController(params={"format": "json"})

        await run(controller, "broken")

        assert controller.flash == {"alert": "Something went wrong"}


class TestTurboHelpers:
    """Tests for the controller's Turbo helpers."""

    def test_request_detection(self):
        controller = ReportsController(
            make_request({"Turbo-Frame": "modal", "User-Agent": "Turbo Native iOS"}), params={}
        )

        assert controller.turbo_frame_request is True
        assert controller.current_turbo_frame == "modal"
        assert controller.turbo_native_app is True
        assert controller.turbo_stream_request is False

    def test_stream_request(self):
        controller = ReportsController(make_request({"Accept": "text/vnd.turbo-stream.html"}), params={})

        assert controller.turbo_stream_request is True

    def test_render_streams(self, renderer):
        controller = ReportsController(params={})
        controller.result = ActionResult({"resource": {"name": "Q1"}})

        response = controller.render_streams(
            [
                controller.stream_prepend("reports", partial="users/_row", locals={"name": "Ada"}),
                controller.stream_replace("report_1", component=ResourceCard),
                controller.stream_remove("report_2"),
                controller.stream_flash("notice", "Done"),
            ]
        )

        assert response.body.decode().split("\n") == [
            '<turbo-stream action="prepend" target="reports"><template><li>Ada</li></template></turbo-stream>',
            '<turbo-stream action="replace" target="report_1"><template><article>Q1</article></template></turbo-stream>',
            '<turbo-stream action="remove" target="report_2"></turbo-stream>',
            '<turbo-stream action="update" target="flash"><template>'
            '<div class="flash flash-notice" role="alert">Done</div></template></turbo-stream>',
        ]

    @pytest.mark.asyncio
    async def test_declared_stream_handler(self, renderer):
        class FeedController(Controller):
            @action
            def create(a):
                a.service(lambda ctx: {"success": True, "resource": {"name": "Post"}})
                a.on_success().turbo_stream(
                    lambda s: s.append("feed", component=ResourceCard).flash("notice", "Posted")
                )

        request = make_request({"Accept": "text/vnd.turbo-stream.html"}, method="POST")

        response = await run(FeedController(request, params={}), "create")

        body = response.body.decode()
        assert response.media_type == "text/vnd.turbo-stream.html"
        assert body.startswith('<turbo-stream action="append" target="feed"><template><article>Post</article>')
        assert "Posted" in body


class TestEnvelopeHelpers:
    """Tests for the controller's envelope and CSV helpers."""

    def test_respond_with_success_merges_meta(self):
        controller = ReportsController(params={})
        controller.add_meta("total", 3)

        response = controller.respond_with_success([1, 2, 3], status=201)

        assert response.status_code == 201
        assert json_body(response) == {"data": [1, 2, 3], "meta": {"version": "v1", "total": 3}}

    def test_respond_with_error(self):
        response = ReportsController(params={}).respond_with_error("Nope")

        assert response.status_code == 422
        assert json_body(response)["data"] == {"error": {"message": "Nope"}}

    def test_paginate_defaults_from_settings(self):
        configure(pagination={"per_page": 2})
        controller = ReportsController(params={"page": "2"})

        page = controller.paginate(list(range(5)))

        assert list(page) == [2, 3]
        assert controller.meta["pagination"]["total_pages"] == 3
        assert "pagination_links" not in controller.meta

    def test_generate_csv(self, sample_users):
        csv_text = ReportsController(params={}).generate_csv(sample_users, columns=["name"])

        assert csv_text == "Name\nAda\nGrace\nLinus\n"

    @pytest.mark.asyncio
    async def test_default_json_uses_controller_serializer(self):
        class AuthorsController(Controller):
            serializer = AuthorSerializer

            @action
            def index(a):
                a.service(lambda ctx: {"success": True, "collection": [{"id": 1, "name": "Ada", "email": "x"}]})

        response = await run(AuthorsController(params={"format": "json"}), "index")

        assert json_body(response)["data"] == {"success": True, "collection": [{"id": 1, "name": "Ada"}]}

    def test_serialize_with_explicit_serializer(self):
        controller = ReportsController(params={})

        assert controller.serialize({"id": 1, "name": "Ada", "email": "x"}, AuthorSerializer) == {
            "id": 1,
            "name": "Ada",
        }
        assert controller.serialize({"id": 1}) == {"id": 1}


class AuthorSerializer(Serializer):
    attributes = ("id", "name")


def missing_report(controller):
    raise NotFoundError("Report not found")


def invalid_report(controller):
    raise ValidationFailedError("Invalid report", errors={"name": ["can't be blank"]})


def locked_report(controller):
    raise ServiceError(meta={"message": "Report is locked", "status": 409})


def crashing_report(controller):
    raise RuntimeError("boom")


class TestHandWrittenActions:
    """Tests for execute_action and handle_exception."""

    @pytest.mark.asyncio
    async def test_value_is_enveloped(self):
        controller = ReportsController(params={"id": 4})

        response = await controller.execute_action(lambda c: {"id": c.params["id"]})

        assert response.status_code == 200
        assert json_body(response) == {"data": {"id": 4}, "meta": {"version": "v1"}}

    @pytest.mark.asyncio
    async def test_response_passes_through(self):
        async def block(controller):
            return controller.redirect_to("/reports")

        response = await ReportsController(params={}).execute_action(block)

        assert response.status_code == 303
        assert response.headers["location"] == "/reports"

    @pytest.mark.asyncio
    async def test_not_found(self):
        controller = ReportsController(params={})

        response = await controller.execute_action(missing_report)

        assert response.status_code == 404
        assert json_body(response)["data"] == {"error": {"message": "Report not found"}}
        assert controller.error_kind is ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_validation_errors_in_meta(self):
        response = await ReportsController(params={}).execute_action(invalid_report)

        body = json_body(response)
        assert response.status_code == 422
        assert body["data"] == {"error": {"message": "Invalid report"}}
        assert body["meta"]["errors"] == {"name": ["can't be blank"]}

    @pytest.mark.asyncio
    async def test_service_error_status_from_meta(self):
        response = await ReportsController(params={}).execute_action(locked_report)

        assert response.status_code == 409
        assert json_body(response)["data"] == {"error": {"message": "Report is locked"}}

    @pytest.mark.asyncio
    async def test_unexpected_exception(self, caplog):
        controller = ReportsController(params={})

        response = await controller.execute_action(crashing_report)

        assert response.status_code == 500
        assert json_body(response)["data"] == {"error": {"type": "RuntimeError", "message": "boom"}}
        assert isinstance(controller.error, RuntimeError)
        assert "boom" in caplog.text


class TestServiceResponses:
    """Tests for respond_with_service and respond_with_page_config."""

    def test_json_success(self):
        controller = ReportsController(params={"format": "json"})

        response = controller.respond_with_service(
            {"success": True, "resource": {"id": 1}, "redirect_to": "/reports/1"}
        )

        assert response.status_code == 200
        assert json_body(response)["data"] == {"success": True, "resource": {"id": 1}}

    def test_json_failure_status_from_error_type(self):
        controller = ReportsController(params={"format": "json"})

        response = controller.respond_with_service(
            {"success": False, "error": "Missing", "error_type": "not_found"}
        )

        assert response.status_code == 404
        assert json_body(response)["data"] == {"success": False, "error": "Missing"}

    def test_json_failure_explicit_status(self):
        controller = ReportsController(params={"format": "json"})

        response = controller.respond_with_service({"success": False, "error": "Locked", "status": 409})

        assert response.status_code == 409

    def test_html_success_redirects_with_notice(self):
        session = {}
        controller = ReportsController(make_request(session=session), params={})

        response = controller.respond_with_service(
            {"success": True, "message": "Saved"}, success_path="/reports"
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/reports"
        assert session["_flash"] == {"notice": "Saved"}

    def test_redirect_to_key_wins(self):
        controller = ReportsController(params={})

        response = controller.respond_with_service(
            {"success": True, "redirect_to": "/reports/9"}, success_path="/reports"
        )

        assert response.headers["location"] == "/reports/9"

    def test_html_failure_renders_template(self, renderer):
        controller = ReportsController(params={})

        response = controller.respond_with_service(
            {"success": False, "error": "Invalid"}, success_path="/reports", template="users/new"
        )

        assert response.status_code == 422
        assert "<form>new</form>" in response.body.decode()
        assert controller.flash == {"alert": "Invalid"}

    def test_html_failure_redirects_to_failure_path(self):
        controller = ReportsController(params={})

        response = controller.respond_with_service(
            {"success": False, "error": "Invalid"}, failure_path="/reports/new"
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/reports/new"

    def test_html_page_config(self):
        controller = ReportsController(params={})

        response = controller.respond_with_service(
            {"success": True, "page_config": {"klass": Card, "title": "Q1"}}
        )

        assert response.status_code == 200
        assert "<article>Q1</article>" in response.body.decode()

    def test_turbo_stream_failure_flash(self):
        request = make_request({"Accept": "text/vnd.turbo-stream.html"}, method="POST")
        controller = ReportsController(request, params={})

        response = controller.respond_with_service({"success": False, "error": "Nope"})

        assert response.status_code == 422
        assert response.media_type == "text/vnd.turbo-stream.html"
        assert "Nope" in response.body.decode()

    def test_result_turbo_streams(self):
        request = make_request({"Accept": "text/vnd.turbo-stream.html"}, method="POST")
        controller = ReportsController(request, params={})

        response = controller.respond_with_service(
            {"success": True, "turbo_streams": [controller.stream_remove("report_2")]}
        )

        assert response.body.decode() == '<turbo-stream action="remove" target="report_2"></turbo-stream>'

    def test_respond_with_page_config(self):
        controller = ReportsController(params={})

        response = controller.respond_with_page_config({"page_config": {"klass": Card, "title": "Q2"}})

        assert response.status_code == 200
        assert "<article>Q2</article>" in response.body.decode()

    def test_respond_with_page_config_failure(self):
        controller = ReportsController(params={})

        failed = controller.respond_with_page_config(
            {"success": False, "page_config": {"klass": Card, "title": "Q2"}}
        )
        explicit = controller.respond_with_page_config(
            {"page_config": {"klass": Card, "title": "Q2"}}, status=202, layout=False
        )

        assert failed.status_code == 422
        assert explicit.status_code == 202
        assert explicit.body == b"<article>Q2</article>"


class TestDeclaration:
    """Tests for declaring actions on controller classes."""

    def test_reserved_names_are_rejected(self):
        with pytest.raises(ConfigurationError, match="clashes with a Controller attribute"):

            class BadController(Controller):
                @action
                def render_page(a):
                    pass

    def test_subclass_inherits_and_overrides(self):
        class BaseController(Controller):
            @action
            def index(a):
                pass

            @action
            def show(a):
                pass

        class ChildController(BaseController):
            @action
            def index(a):
                a.service(report_service)

        assert ChildController.action_registry().names == ["index", "show"]
        assert ChildController.action_registry().get("index").service is report_service
        assert BaseController.action_registry().get("index").service is None

    def test_renamed_action(self):
        class ExportsController(Controller):
            @action(name="download")
            def download_action(a):
                pass

        assert ExportsController.action_registry().has("download")
        assert callable(ExportsController.download)
        assert not hasattr(ExportsController, "download_action")

    def test_register_action(self):
        class ImperativeController(Controller):
            pass

        config = ImperativeController.register_action("archive", lambda a: a.skip_authorization())

        assert config.skip_authorization is True
        assert ImperativeController.action_registry().get("archive") is config
        assert callable(ImperativeController.archive)

    def test_naming_conventions(self):
        class AdminReportsController(Controller):
            pass

        assert AdminReportsController.controller_name == "admin_reports"
        assert AdminReportsController.resource_name == "admin_report"

