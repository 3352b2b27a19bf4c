"""
Resource routing for controllers.

Registered actions are exposed on a FastAPI APIRouter using the
conventional resource layout:

    index     GET        /
    new       GET        /new
    create    POST       /
    show      GET        /{id}
    edit      GET        /{id}/edit
    update    PUT, PATCH /{id}
    destroy   DELETE     /{id}

Other actions take an explicit ``routes`` entry or default to
``POST /{name}``. Every route also accepts a ``.{format}`` suffix
(``/users.json``, ``/users/5.csv``).
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Sequence

from fastapi import APIRouter
from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from .base import Controller

logger = logging.getLogger(__name__)

RESOURCE_ROUTES: dict[str, tuple[tuple[str, ...], str]] = {
    "index": (("GET",), ""),
    "new": (("GET",), "/new"),
    "create": (("POST",), ""),
    "show": (("GET",), "/{id}"),
    "edit": (("GET",), "/{id}/edit"),
    "update": (("PUT", "PATCH"), "/{id}"),
    "destroy": (("DELETE",), "/{id}"),
}


def route_for(
    name: str,
    routes: Mapping[str, tuple[str | Sequence[str], str]] | None = None,
) -> tuple[tuple[str, ...], str]:
    """HTTP methods and relative path for an action."""
    if routes and name in routes:
        methods, path = routes[name]
        if isinstance(methods, str):
            methods = (methods,)
        return tuple(m.upper() for m in methods), path
    return RESOURCE_ROUTES.get(name, (("POST",), f"/{name}"))


def make_endpoint(controller_cls: type["Controller"], name: str) -> Any:
    async def endpoint(request: Request) -> Response:
        controller = controller_cls(request)
        return await controller.execute_registered_action(name)

    endpoint.__name__ = f"{controller_cls.__name__}_{name}"
    return endpoint


def _is_literal(path: str) -> bool:
    return "{" not in path


def build_router(
    controller_cls: type["Controller"],
    prefix: str = "",
    tags: Sequence[str] | None = None,
    routes: Mapping[str, tuple[str | Sequence[str], str]] | None = None,
) -> APIRouter:
    """
    Build an APIRouter for a controller's registered actions.

    Literal paths are registered before parameterized ones, and
    ``.{format}`` variants before their bare paths, so ``/new`` and
    ``/5.json`` are never captured by ``/{id}``.
    """
    router = APIRouter(prefix=prefix, tags=list(tags or []))

    entries = []
    for name in controller_cls.action_registry().names:
        methods, path = route_for(name, routes)
        entries.append((name, methods, path))
    entries.sort(key=lambda entry: not _is_literal(entry[2]))

    for name, methods, path in entries:
        endpoint = make_endpoint(controller_cls, name)

        if path or prefix:
            router.add_api_route(
                f"{path}.{{format}}",
                endpoint,
                methods=list(methods),
                name=f"{controller_cls.controller_name}.{name}.format",
                include_in_schema=False,
            )
        router.add_api_route(
            path or ("" if prefix else "/"),
            endpoint,
            methods=list(methods),
            name=f"{controller_cls.controller_name}.{name}",
        )
        logger.debug(f"Routed {','.join(methods)} {prefix}{path or '/'} -> {controller_cls.__name__}#{name}")

    return router
