"""
Service results.

Services may return a plain mapping, a ServiceResult, a pydantic
model, any object exposing ``to_dict()``, or None. ActionResult.from_value
converts all of them into one read-only mapping with typed accessors.
The mapping keeps exactly the keys the service returned, so the default
JSON response echoes them back unchanged.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any


def _is_collection(value: Any) -> bool:
    if isinstance(value, (str, bytes, Mapping)):
        return False
    return hasattr(value, "__iter__")


class ActionResult(Mapping[str, Any]):
    """
    Normalized result of a service call.

    Example:
        result = ActionResult.from_value({"success": True, "resource": user})
        result.success   # True
        result.resource  # user
        dict(result)     # {"success": True, "resource": user}
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data: dict[str, Any] = dict(data or {})

    @classmethod
    def from_value(cls, value: Any) -> "ActionResult":
        """Coerce a service return value; unknown shapes become an empty result."""
        if value is None:
            return cls()
        if isinstance(value, ActionResult):
            return value
        if isinstance(value, Mapping):
            return cls(value)
        if isinstance(value, ServiceResult):
            return cls(value.to_dict())

        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            data = to_dict()
            if isinstance(data, Mapping):
                return cls(data)

        model_dump = getattr(value, "model_dump", None)
        if callable(model_dump):
            data = model_dump()
            if isinstance(data, Mapping):
                return cls(data)

        return cls()

    # Mapping protocol

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ActionResult({self._data!r})"

    # Typed accessors

    @property
    def success(self) -> bool | None:
        """The service's own verdict, or None when it gave none."""
        return self._data.get("success")

    @property
    def resource(self) -> Any:
        return self._data.get("resource")

    @property
    def collection(self) -> Any:
        return self._data.get("collection")

    @property
    def errors(self) -> Any:
        return self._data.get("errors")

    @property
    def page_config(self) -> Any:
        return self._data.get("page_config")

    @property
    def meta(self) -> dict[str, Any]:
        meta = self._data.get("meta")
        return dict(meta) if isinstance(meta, Mapping) else {}

    @property
    def error(self) -> Any:
        return self._data.get("error")

    @property
    def message(self) -> str | None:
        return self._data.get("message")

    @property
    def error_code(self) -> Any:
        return self._data.get("error_code")

    @property
    def error_type(self) -> Any:
        return self._data.get("error_type")

    @property
    def primary_data(self) -> Any:
        """The collection when present, else the resource."""
        collection = self.collection
        return collection if collection is not None else self.resource

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def without(self, *keys: str) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k not in keys}


@dataclass
class ServiceResult:
    """
    Resource plus metadata returned by a service.

    ``meta["success"]`` defaults to True.

    Example:
        ServiceResult(user, meta={"message": "Created"})
        ServiceResult(user, meta={"success": False, "error_type": "validation"})
    """

    resource: Any = None
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        meta = dict(self.meta) if isinstance(self.meta, Mapping) else {}
        meta.setdefault("success", True)
        self.meta = meta

    @property
    def success(self) -> bool:
        return self.meta.get("success") is True

    @property
    def failure(self) -> bool:
        return not self.success

    @property
    def message(self) -> str | None:
        return self.meta.get("message")

    @property
    def errors(self) -> Any:
        return getattr(self.resource, "errors", None)

    def to_dict(self) -> dict[str, Any]:
        data = {
            "resource": self.resource,
            "collection": self.resource if _is_collection(self.resource) else None,
            "meta": self.meta,
            "success": self.success,
            "message": self.message,
            "errors": self.errors,
            "error": self.meta.get("error"),
            "error_type": self.meta.get("error_type"),
            "error_code": self.meta.get("error_code"),
            "page_config": self.meta.get("page_config"),
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class ServiceContext:
    """
    The single argument every service receives.

    Attributes:
        params: The action's parameter bag
        current_user: The authenticated user, or None
        action: Name of the executing action
        request: The Starlette request (for services that need headers etc.)
    """

    params: dict[str, Any] = field(default_factory=dict)
    current_user: Any = None
    action: str = ""
    request: Any = None
