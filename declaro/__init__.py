"""
Declaro - declarative controller actions for Starlette and FastAPI.

Declare what an action does (which service to call, what to answer per
format and per error kind) and let the controller run it:

    from declaro import Controller, action

    class UsersController(Controller):
        @action
        def create(a):
            a.service(CreateUser).permit("name", "email")
            a.on_success(lambda r: r.redirect_to("/users", notice="User created"))
            a.on_error("validation", lambda r: r.render_page())

    app.include_router(UsersController.router(prefix="/users"))

JSON answers use a standard envelope, Turbo Stream requests get
``<turbo-stream>`` responses, and CSV and XML are supported alongside.
"""

from .actions import (
    ActionBuilder,
    ActionConfiguration,
    ActionContext,
    ActionResult,
    ResponseBuilder,
    ResponseFormat,
    ServiceContext,
    ServiceResult,
    action,
)
from .config import configure, get_settings, reset_settings, settings_from_env
from .controller import Controller
from .errors import (
    ActionNotRegistered,
    AuthorizationError,
    ConfigurationError,
    DeclaroError,
    ErrorKind,
    FieldErrors,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
    classify_error,
    error_status,
)
from .rendering import (
    Component,
    PageConfig,
    TemplateNotFoundError,
    TemplateRenderer,
    get_template_renderer,
)
from .responses import Serializer
from .turbo import TurboStreamBuilder, dom_id

__version__ = "0.1.0"

__all__ = [
    # Declaration
    "Controller",
    "action",
    "ActionBuilder",
    "ResponseBuilder",
    "ActionConfiguration",
    "ResponseFormat",
    # Execution
    "ActionContext",
    "ActionResult",
    "ServiceContext",
    "ServiceResult",
    # Configuration
    "configure",
    "get_settings",
    "reset_settings",
    "settings_from_env",
    # Errors
    "ActionNotRegistered",
    "AuthorizationError",
    "ConfigurationError",
    "DeclaroError",
    "ErrorKind",
    "FieldErrors",
    "NotFoundError",
    "ServiceError",
    "ValidationFailedError",
    "classify_error",
    "error_status",
    # Rendering
    "Component",
    "PageConfig",
    "TemplateNotFoundError",
    "TemplateRenderer",
    "get_template_renderer",
    # Responses
    "Serializer",
    # Turbo
    "TurboStreamBuilder",
    "dom_id",
]
