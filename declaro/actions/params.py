"""
Request parameters.

Parameters are gathered from the path, the query string and the body
into one nested dict. Bracketed keys are expanded the way HTML forms
encode them:

    user[name]=Ada&user[tags][]=a&user[tags][]=b
    -> {"user": {"name": "Ada", "tags": ["a", "b"]}}

``permit_params`` then filters a nested mapping down to the declared
fields:

    permit_params(data, ["name", "email", {"tags": []}, {"address": ["city"]}])
"""
from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.requests import Request

    from .configuration import ActionConfiguration

logger = logging.getLogger(__name__)

# Keys the router owns; never forwarded to services
ROUTING_KEYS = frozenset({"format", "controller", "action"})

_BRACKET_RE = re.compile(r"\[([^\]]*)\]")


# =============================================================================
# Collection
# =============================================================================


def _split_key(key: str) -> list[str]:
    """Split ``user[address][city]`` into ``["user", "address", "city"]``."""
    head, _, rest = key.partition("[")
    if not rest:
        return [key]
    return [head] + _BRACKET_RE.findall("[" + rest)


def _assign(target: dict[str, Any], parts: list[str], value: Any) -> None:
    key, remaining = parts[0], parts[1:]
    if not remaining:
        target[key] = value
        return

    if remaining == [""]:
        existing = target.get(key)
        if not isinstance(existing, list):
            existing = [] if existing is None else [existing]
            target[key] = existing
        existing.append(value)
        return

    child = target.get(key)
    if not isinstance(child, dict):
        child = {}
        target[key] = child
    _assign(child, remaining, value)


def expand_params(items: Sequence[tuple[str, Any]]) -> dict[str, Any]:
    """Expand flat ``(key, value)`` pairs with bracketed keys into a nested dict."""
    result: dict[str, Any] = {}
    for key, value in items:
        parts = _split_key(key)
        if not parts[0]:
            continue
        _assign(result, parts, value)
    return result


async def _read_body(request: "Request") -> dict[str, Any]:
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return {}

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        raw = await request.body()
        if not raw:
            return {}
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed JSON request body")
            return {}
        return dict(payload) if isinstance(payload, Mapping) else {}

    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        return expand_params(list(form.multi_items()))

    return {}


async def collect_params(request: "Request") -> dict[str, Any]:
    """
    Merge query, body and path parameters into one nested dict.

    Later sources win: query < body < path.
    """
    params = expand_params(list(request.query_params.multi_items()))
    params.update(await _read_body(request))
    params.update(request.path_params)
    return params


# =============================================================================
# Strong Parameters
# =============================================================================


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def permit_params(data: Mapping[str, Any], fields: Sequence[Any]) -> dict[str, Any]:
    """
    Keep only the permitted fields of ``data``.

    Field forms:
        "name"                  scalar field
        {"tags": []}            list of scalars
        {"address": [fields]}   nested mapping (or list of mappings)

    Values of the wrong shape are dropped rather than raising.
    """
    permitted: dict[str, Any] = {}
    for field in fields:
        if isinstance(field, str):
            if field in data and _is_scalar(data[field]):
                permitted[field] = data[field]
            continue

        if not isinstance(field, Mapping):
            continue

        for key, nested in field.items():
            if key not in data:
                continue
            value = data[key]
            if not nested:
                if isinstance(value, list):
                    permitted[key] = [v for v in value if _is_scalar(v)]
            elif isinstance(value, Mapping):
                permitted[key] = permit_params(value, nested)
            elif isinstance(value, list):
                permitted[key] = [
                    permit_params(v, nested) for v in value if isinstance(v, Mapping)
                ]
    return permitted


# =============================================================================
# Service Parameters
# =============================================================================


def singularize(word: str) -> str:
    """Naive English singular: ``users`` -> ``user``, ``categories`` -> ``category``."""
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if word.endswith(("sses", "shes", "ches", "xes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def controller_name(cls: type) -> str:
    """``UsersController`` -> ``users``; ``AdminReportsController`` -> ``admin_reports``."""
    name = cls.__name__
    if name.endswith("Controller") and name != "Controller":
        name = name[: -len("Controller")]
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def build_service_params(
    params: Mapping[str, Any],
    config: "ActionConfiguration",
    default_key: str,
) -> dict[str, Any]:
    """
    Build the parameter bag handed to the service.

    Uses the ``params_key`` section if the request carries it, else the
    whole set minus routing keys. A declared permit list filters either
    one. The raw ``id`` is merged in when present.
    """
    key = config.params_key or default_key
    section = params.get(key)

    if isinstance(section, Mapping) and section:
        bag = dict(section)
    else:
        bag = {k: v for k, v in params.items() if k not in ROUTING_KEYS}

    if config.permitted_params:
        bag = permit_params(bag, config.permitted_params)

    if params.get("id") not in (None, ""):
        bag["id"] = params["id"]
    return bag
