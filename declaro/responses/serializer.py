"""
Declarative resource serializers.

A serializer lists the fields a resource exposes in JSON responses:

    class AuthorSerializer(Serializer):
        attributes = ("id", "name")

    class PostSerializer(Serializer):
        attributes = ("id", "title")
        methods = ("summary",)
        associations = {"author": AuthorSerializer}

    PostSerializer().serialize(post)
    # {"id": 1, "title": "...", "summary": "...", "author": {"id": 7, "name": "Ada"}}

Resources may be mappings or objects. Fields the resource does not
have are left out rather than raising.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

_MISSING = object()


def _read(resource: Any, name: str) -> Any:
    if isinstance(resource, Mapping):
        return resource.get(name, _MISSING)
    return getattr(resource, name, _MISSING)


def _is_collection(value: Any) -> bool:
    if isinstance(value, (str, bytes, Mapping)):
        return False
    return isinstance(value, Iterable)


class Serializer:
    """
    Base class for declarative serializers.

    Class attributes:
        attributes: Fields copied as-is
        methods: Zero-argument methods (or callables stored in a
            mapping) whose return value is included
        associations: Field name -> serializer class for nested resources
    """

    attributes: ClassVar[tuple[str, ...]] = ()
    methods: ClassVar[tuple[str, ...]] = ()
    associations: ClassVar[Mapping[str, type["Serializer"]]] = {}

    def serialize(self, resource: Any) -> Any:
        """Serialize one resource or a collection of them; None stays None."""
        if resource is None:
            return None
        if _is_collection(resource):
            return self.serialize_collection(resource)
        return self.serialize_resource(resource)

    def serialize_collection(self, collection: Iterable[Any]) -> list[dict[str, Any]]:
        return [self.serialize_resource(resource) for resource in collection]

    def serialize_resource(self, resource: Any) -> dict[str, Any]:
        data: dict[str, Any] = {}

        for name in self.attributes:
            value = _read(resource, name)
            if value is not _MISSING:
                data[name] = value

        for name in self.methods:
            method = _read(resource, name)
            if method is not _MISSING:
                data[name] = method() if callable(method) else method

        for name, serializer_class in self.associations.items():
            value = _read(resource, name)
            if value is not _MISSING:
                data[name] = serializer_class().serialize(value)

        return data


def serialize(resource: Any, serializer: type[Serializer] | Serializer | None) -> Any:
    """Serialize ``resource`` with ``serializer`` (class or instance); no serializer is a no-op."""
    if serializer is None:
        return resource
    if isinstance(serializer, type):
        serializer = serializer()
    return serializer.serialize(resource)
