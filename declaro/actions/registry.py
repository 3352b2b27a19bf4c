"""
Action Registry for Declaro.

Every controller class owns an ActionRegistry mapping action names to
their frozen ActionConfiguration. Subclasses start from a copy of the
parent's registry, so inherited actions can be overridden or extended
without touching the parent.

Actions are declared with the ``action`` decorator on a configuration
function that receives an ActionBuilder:

    class UsersController(Controller):
        @action
        def index(a):
            a.service(ListUsers)

        @action(name="export", format="csv")
        def export_users(a):
            a.service(ListUsers).on_success(lambda r: r.csv(export_csv))
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterator

from declaro.errors import ActionNotRegistered, ConfigurationError

from .builder import ActionBuilder
from .configuration import ActionConfiguration

logger = logging.getLogger(__name__)

Configure = Callable[[ActionBuilder], Any]


class ActionRegistry:
    """
    Name -> ActionConfiguration mapping for one controller class.

    Example:
        registry = ActionRegistry(owner="UsersController")
        registry.register(config)
        registry.get("create")
    """

    def __init__(self, owner: str = "", actions: dict[str, ActionConfiguration] | None = None):
        self.owner = owner
        self._actions: dict[str, ActionConfiguration] = dict(actions or {})

    def register(self, config: ActionConfiguration) -> None:
        """
        Register an action configuration.

        An existing action with the same name is replaced (subclasses
        redeclaring an inherited action).
        """
        if config.name in self._actions:
            logger.debug(f"Replacing action '{config.name}' on {self.owner or 'controller'}")
        self._actions[config.name] = config

    def get(self, name: str) -> ActionConfiguration:
        """
        Get an action configuration by name.

        Raises:
            ActionNotRegistered: If no action is registered under ``name``
        """
        config = self._actions.get(name)
        if config is None:
            raise ActionNotRegistered(name, self.owner)
        return config

    def has(self, name: str) -> bool:
        return name in self._actions

    @property
    def names(self) -> list[str]:
        """Registered action names, in declaration order."""
        return list(self._actions)

    def copy(self, owner: str) -> "ActionRegistry":
        """Registry for a subclass, seeded with this registry's actions."""
        return ActionRegistry(owner=owner, actions=self._actions)

    def __iter__(self) -> Iterator[ActionConfiguration]:
        return iter(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, name: object) -> bool:
        return name in self._actions


def build_action(name: str, configure: Configure | None = None, **options: Any) -> ActionConfiguration:
    """Run ``configure`` against a fresh ActionBuilder and return the built configuration."""
    if not name or not str(name).isidentifier():
        raise ConfigurationError(f"Invalid action name: {name!r}")
    builder = ActionBuilder(str(name), **options)
    if configure is not None:
        configure(builder)
    return builder.build()


class ActionDeclaration:
    """
    Placeholder left in a class body by the ``action`` decorator.

    ``Controller.__init_subclass__`` replaces it with the dispatchable
    action method once the class is created.
    """

    def __init__(self, configure: Configure, name: str | None = None, **options: Any):
        self.configure = configure
        self.name = name or configure.__name__
        self.options = options

    def build(self) -> ActionConfiguration:
        return build_action(self.name, self.configure, **self.options)

    def __repr__(self) -> str:
        return f"ActionDeclaration({self.name!r})"


def action(
    configure: Configure | None = None,
    *,
    name: str | None = None,
    **options: Any,
) -> Any:
    """
    Declare a controller action.

    Usable bare (``@action``) or with arguments
    (``@action(name="export")``). Extra keyword options are kept on the
    configuration's ``options`` mapping.
    """
    if configure is not None:
        return ActionDeclaration(configure, name=name, **options)

    def decorator(func: Configure) -> ActionDeclaration:
        return ActionDeclaration(func, name=name, **options)

    return decorator
