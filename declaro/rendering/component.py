"""
Components for Declaro.

A component is a class constructed with keyword locals whose
``render()`` returns an HTML string. Any object with a ``render()``
method is accepted where a component is expected; the Component base
class only provides the common constructor.

Example:
    class UserCardComponent(Component):
        def render(self) -> str:
            user = self.locals["user"]
            return f'<div class="user">{escape(user.name)}</div>'
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping


class Component:
    """Base class for renderable components."""

    def __init__(self, **locals: Any):
        self.locals = locals

    def __getattr__(self, name: str) -> Any:
        # Locals are readable as attributes
        locals_ = self.__dict__.get("locals", {})
        if name in locals_:
            return locals_[name]
        raise AttributeError(f"{type(self).__name__} has no attribute '{name}'")

    def render(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must implement render()")

    def __str__(self) -> str:
        return self.render()


def instantiate_component(component: Any, locals: Mapping[str, Any] | None = None) -> Any:
    """Instantiate a component class with ``locals``; instances pass through."""
    if isinstance(component, type):
        return component(**dict(locals or {}))
    return component


def render_component_to_string(component: Any, locals: Mapping[str, Any] | None = None) -> str:
    """Render a component class (instantiated with ``locals``) or instance to a string."""
    instance = instantiate_component(component, locals)
    render = getattr(instance, "render", None)
    if render is None or not callable(render):
        raise TypeError(f"{type(instance).__name__} is not a component (no render())")
    return str(render())


def render_component_collection(
    component: type,
    items: Iterable[Any],
    as_: str = "item",
    locals: Mapping[str, Any] | None = None,
    separator: str = "",
) -> str:
    """
    Render ``component`` once per item, passing each item as ``as_``.

    Example:
        render_component_collection(UserRowComponent, users, as_="user")
    """
    base = dict(locals or {})
    return separator.join(
        render_component_to_string(component, {**base, as_: item}) for item in items
    )
