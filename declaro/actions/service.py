"""
Service invocation.

Every service is called with a single ServiceContext, whatever its shape:

    class CreateUser:                       # instantiated, then .call(ctx)
        def call(self, ctx): ...

    class ListUsers:                        # classmethod, called on the class
        @classmethod
        async def call(cls, ctx): ...

    async def archive_user(ctx): ...        # plain callable

Sync and async services are both supported.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any

from declaro.errors import ConfigurationError

from .result import ServiceContext

logger = logging.getLogger(__name__)


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def _is_class_level(klass: type, method: str) -> bool:
    attr = inspect.getattr_static(klass, method, None)
    return isinstance(attr, (classmethod, staticmethod))


def resolve_service_callable(service: Any, method: str = "call") -> Any:
    """
    Find the callable to invoke for a configured service.

    Raises:
        ConfigurationError: If the service has no such method
    """
    if inspect.isclass(service):
        if _is_class_level(service, method):
            target = service
        else:
            target = service()
    elif inspect.isfunction(service) or inspect.ismethod(service):
        return service
    else:
        target = service

    func = getattr(target, method, None)
    if func is None and method == "call" and callable(target):
        func = target
    if func is None or not callable(func):
        name = getattr(service, "__name__", type(service).__name__)
        raise ConfigurationError(f"Service {name} does not respond to '{method}'")
    return func


async def invoke_service(service: Any, context: ServiceContext, method: str = "call") -> Any:
    """Invoke ``service`` with ``context`` and return its raw result."""
    func = resolve_service_callable(service, method)
    logger.debug(
        f"Invoking service {getattr(service, '__name__', type(service).__name__)}.{method} "
        f"for action '{context.action}'"
    )
    return await maybe_await(func(context))
