"""
Page component lookup.

A page config names its component either directly (``klass`` /
``component``) or through its ``type``, resolved by convention under
the configured namespace:

    {namespace}.{type}            module attribute PageComponent
    {namespace}                   module attribute {Camelized type}PageComponent

e.g. type "index" with namespace "templates" finds
``templates.index.PageComponent`` or ``templates.IndexPageComponent``.
Lookup failures are not errors: the caller falls back to templates.
"""
from __future__ import annotations

import importlib
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


def camelize(value: str) -> str:
    """``user_list`` -> ``UserList``."""
    return "".join(part[:1].upper() + part[1:] for part in str(value).split("_") if part)


def _import_attr(module_name: str, attr: str) -> Any:
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    return getattr(module, attr, None)


def _declared_class(page_config: Any) -> Any:
    klass = getattr(page_config, "klass", None)
    if klass is None and isinstance(page_config, Mapping):
        klass = page_config.get("klass") or page_config.get("component")
    return klass if isinstance(klass, type) else None


def _page_type(page_config: Any) -> str | None:
    page_type = getattr(page_config, "page_type", None)
    if page_type is None and isinstance(page_config, Mapping):
        page_type = page_config.get("type")
    if page_type is None:
        return None
    return str(getattr(page_type, "value", page_type))


def find_page_component(page_config: Any, namespace: str | None) -> type | None:
    """
    Find the component class for a page config.

    Returns:
        The component class, or None when nothing matches
    """
    if page_config is None:
        return None

    klass = _declared_class(page_config)
    if klass is not None:
        return klass

    page_type = _page_type(page_config)
    if not page_type or not namespace:
        return None

    candidates = (
        (f"{namespace}.{page_type}", "PageComponent"),
        (namespace, f"{camelize(page_type)}PageComponent"),
    )
    for module_name, attr in candidates:
        try:
            found = _import_attr(module_name, attr)
        except Exception as e:
            # Errors raised while importing a page module are non-fatal
            logger.warning(f"Failed to load page component {module_name}.{attr}: {e}")
            continue
        if isinstance(found, type):
            logger.debug(f"Resolved page component {module_name}.{attr}")
            return found

    logger.debug(f"No page component for type '{page_type}' in '{namespace}'")
    return None
