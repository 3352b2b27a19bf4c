"""
Action declaration and execution primitives.

Builders produce frozen ActionConfigurations at class-definition time;
the registry stores them per controller class; services are invoked
with a ServiceContext and their return values normalized into an
ActionResult.
"""

from .builder import ActionBuilder, ResponseBuilder, TurboFrameBuilder
from .configuration import (
    EMPTY_HANDLERS,
    ActionConfiguration,
    Block,
    FrameContent,
    Redirect,
    RenderComponent,
    RenderPage,
    RenderPartial,
    ResponseFormat,
    ResponseHandlers,
    TurboFrame,
    TurboStreamList,
)
from .context import ActionContext
from .params import build_service_params, collect_params, permit_params
from .registry import ActionDeclaration, ActionRegistry, action, build_action
from .result import ActionResult, ServiceContext, ServiceResult
from .service import invoke_service, maybe_await

__all__ = [
    # Builders
    "ActionBuilder",
    "ResponseBuilder",
    "TurboFrameBuilder",
    # Configuration
    "ActionConfiguration",
    "Block",
    "EMPTY_HANDLERS",
    "FrameContent",
    "Redirect",
    "RenderComponent",
    "RenderPage",
    "RenderPartial",
    "ResponseFormat",
    "ResponseHandlers",
    "TurboFrame",
    "TurboStreamList",
    # Registry
    "ActionDeclaration",
    "ActionRegistry",
    "action",
    "build_action",
    # Execution
    "ActionContext",
    "ActionResult",
    "ServiceContext",
    "ServiceResult",
    "build_service_params",
    "collect_params",
    "invoke_service",
    "maybe_await",
    "permit_params",
]
