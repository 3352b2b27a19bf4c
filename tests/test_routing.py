"""
End-to-end tests: controllers mounted on a FastAPI app.
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from declaro import Controller, NotFoundError, action, configure
from declaro.controller import route_for
from declaro.turbo import TURBO_STREAM_MEDIA_TYPE

USERS = {1: {"id": 1, "name": "Ada"}, 2: {"id": 2, "name": "Grace"}}

JSON = {"Accept": "application/json"}
STREAM = {"Accept": f"{TURBO_STREAM_MEDIA_TYPE}, text/html"}


class ListUsers:
    def call(self, ctx):
        return {"success": True, "collection": list(USERS.values())}


class FindUser:
    @classmethod
    def call(cls, ctx):
        user = USERS.get(int(ctx.params["id"]))
        if user is None:
            raise NotFoundError("User not found")
        return {"success": True, "resource": user}


class CreateUser:
    def call(self, ctx):
        if not ctx.params.get("name"):
            return {
                "success": False,
                "error": "Validation failed",
                "errors": {"name": ["can't be blank"]},
            }
        return {"success": True, "resource": {"id": 1, "name": ctx.params["name"]}}


def destroy_user(ctx):
    raise PermissionError("Not yours")


def export_users(controller):
    return controller.send_csv(controller.result.collection, filename="users.csv", columns=["id", "name"])


def paged_users(controller):
    page = controller.paginate(controller.result.collection, per_page=1)
    return controller.respond_with_success(list(page))


class UsersController(Controller):
    @action
    def index(a):
        a.service(ListUsers)

    @action
    def show(a):
        a.service(FindUser)

    @action
    def create(a):
        a.service(CreateUser).permit("name", "email")
        a.on_success().redirect_to("/users", notice="User created")
        a.on_error("validation").render_page()

    @action
    def destroy(a):
        a.service(destroy_user)

    @action
    def export(a):
        a.service(ListUsers)
        a.on_success().csv(export_users)

    @action
    def paged(a):
        a.service(ListUsers)
        a.on_success().json(paged_users)

    @action
    def about(a):
        pass


EXTRA_ROUTES = {
    "export": ("GET", "/export"),
    "paged": ("GET", "/paged"),
    "about": ("GET", "/about"),
}


@pytest.fixture
def client(renderer):
    renderer.register("users/about", lambda ctx: "<h1>About</h1>")
    app = FastAPI()
    app.include_router(UsersController.router(prefix="/users", routes=EXTRA_ROUTES))
    return TestClient(app)


class TestJsonResponses:
    """Tests for default JSON responses."""

    def test_create_answers_with_envelope(self, client):
        response = client.post("/users", json={"user": {"name": "X"}}, headers=JSON)

        assert response.status_code == 200
        assert response.json() == {
            "data": {"success": True, "resource": {"id": 1, "name": "X"}},
            "meta": {"version": "v1"},
        }

    def test_permit_filters_params(self, client):
        response = client.post("/users", json={"user": {"name": "X", "admin": True}}, headers=JSON)

        assert response.json()["data"]["resource"] == {"id": 1, "name": "X"}

    def test_validation_failure(self, client):
        response = client.post("/users", json={"user": {"name": ""}}, headers=JSON)

        assert response.status_code == 422
        assert response.json() == {
            "data": {
                "success": False,
                "error": "Validation failed",
                "errors": {"name": ["can't be blank"]},
            },
            "meta": {"version": "v1"},
        }

    def test_not_found(self, client):
        response = client.get("/users/99", headers=JSON)

        assert response.status_code == 404
        assert response.json()["data"] == {"success": False, "error": "User not found"}

    def test_authorization_failure(self, client):
        response = client.delete("/users/1", headers=JSON)

        assert response.status_code == 403
        assert response.json()["data"]["error"] == "Not yours"

    def test_format_suffix(self, client):
        response = client.get("/users/2.json")

        assert response.status_code == 200
        assert response.json()["data"]["resource"] == {"id": 2, "name": "Grace"}

    def test_collection(self, client):
        response = client.get("/users.json")

        assert response.json()["data"]["collection"] == list(USERS.values())

    def test_api_version_setting(self, client):
        configure(api_version="v2")

        assert client.get("/users.json").json()["meta"] == {"version": "v2"}

    def test_pagination_meta(self, client):
        response = client.get("/users/paged?page=2", headers=JSON)

        body = response.json()
        assert body["data"] == [{"id": 2, "name": "Grace"}]
        assert body["meta"]["pagination"] == {
            "current_page": 2,
            "total_pages": 2,
            "total_count": 2,
            "per_page": 1,
        }
        links = body["meta"]["pagination_links"]
        assert links["prev"].endswith("/users/paged?page=1")
        assert "next" not in links


class TestHtmlResponses:
    """Tests for HTML responses."""

    def test_index_renders_template_with_layout(self, client):
        response = client.get("/users")

        assert response.status_code == 200
        assert response.text == "<main><ul>users</ul></main>"

    def test_literal_path_is_not_captured_by_show(self, client):
        assert client.get("/users/about").text == "<main><h1>About</h1></main>"

    def test_action_without_service_renders_page(self, client):
        response = client.get("/users/about")

        assert response.status_code == 200

    def test_success_redirect(self, client):
        response = client.post("/users", data={"user[name]": "X"}, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/users"

    def test_validation_rerenders_page(self, client):
        response = client.post("/users", data={"user[name]": ""})

        assert response.status_code == 422
        assert response.text == "<main><form>create</form></main>"

    def test_failure_without_template_falls_back(self, client):
        response = client.delete("/users/1")

        assert response.status_code == 403
        assert response.text == ""

    def test_frame_request_renders_without_layout(self, client):
        response = client.get("/users", headers={"Turbo-Frame": "users"})

        assert response.text == "<ul>users</ul>"


class TestTurboStreamResponses:
    """Tests for default Turbo Stream responses."""

    def test_success_flash_stream(self, client):
        configure(flash_messages={"users.create.success": "User created"})

        response = client.post("/users", data={"user[name]": "X"}, headers=STREAM)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(TURBO_STREAM_MEDIA_TYPE)
        assert response.text == (
            '<turbo-stream action="update" target="flash"><template>'
            '<div class="flash flash-notice" role="alert">User created</div>'
            "</template></turbo-stream>"
        )

    def test_failure_flash_and_form_errors(self, client):
        configure(flash_messages={"errors.validation": "Please fix the errors"})

        response = client.post("/users", data={"user[name]": ""}, headers=STREAM)

        assert response.status_code == 422
        streams = response.text.split("\n")
        assert len(streams) == 2
        assert 'target="flash"' in streams[0]
        assert "Please fix the errors" in streams[0]
        assert 'target="form_errors"' in streams[1]
        assert '<div class="form-errors">' in streams[1]


class TestCsvAndXml:
    """Tests for CSV and XML responses."""

    def test_csv_handler(self, client):
        response = client.get("/users/export.csv")

        assert response.status_code == 200
        assert response.headers["content-disposition"] == 'attachment; filename="users.csv"'
        assert response.text == "Id,Name\n1,Ada\n2,Grace\n"

    def test_csv_without_handler_is_empty(self, client):
        response = client.get("/users.csv")

        assert response.status_code == 204
        assert response.content == b""

    def test_xml_without_handler_is_empty(self, client):
        assert client.get("/users/1.xml").status_code == 204

    def test_xml_error_document(self, client):
        response = client.get("/users/99.xml")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("application/xml")
        assert response.text.endswith("<error><message>User not found</message></error>")


class TestRouter:
    """Tests for resource routing."""

    def test_route_for_conventions(self):
        assert route_for("index") == (("GET",), "")
        assert route_for("update") == (("PUT", "PATCH"), "/{id}")
        assert route_for("archive") == (("POST",), "/archive")
        assert route_for("archive", {"archive": ("patch", "/{id}/archive")}) == (
            ("PATCH",),
            "/{id}/archive",
        )

    def test_literal_paths_come_first(self):
        router = UsersController.router(prefix="/users", routes=EXTRA_ROUTES)
        paths = [route.path for route in router.routes]

        assert paths.index("/users/about") < paths.index("/users/{id}")
        assert paths.index("/users/{id}.{format}") < paths.index("/users/{id}")

    def test_route_names(self):
        router = UsersController.router(prefix="/users")
        names = {route.name for route in router.routes}

        assert "users.index" in names
        assert "users.show" in names

    def test_root_router_without_prefix(self):
        class PagesController(Controller):
            @action
            def index(a):
                pass

        paths = [route.path for route in PagesController.router().routes]

        assert paths == ["/"]
