"""
Errors and error classification for Declaro.

Every failed action execution is classified into exactly one ErrorKind,
which picks both the HTTP status and the handler set used to respond.

Classification sources, in order:
- Exceptions carrying an explicit ``error_kind`` attribute
- Starlette/FastAPI ``HTTPException`` status codes
- A qualified-name table for exceptions raised by common libraries
  (SQLAlchemy, Django, pydantic, marshmallow) that cannot carry a kind
- Service results: ``error_type``, ``error_code`` and ``errors`` keys
"""
from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, Iterator, Protocol, runtime_checkable

from starlette.exceptions import HTTPException


class ErrorKind(str, Enum):
    """Four-way classification of action failures."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHORIZATION = "authorization"
    ANY = "any"

    @classmethod
    def parse(cls, value: "ErrorKind | str") -> "ErrorKind":
        """Parse a kind from its value, raising ConfigurationError if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ConfigurationError(
                f"Unknown error kind: {value!r}. Expected one of: {valid}"
            ) from None


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.VALIDATION: 422,
    ErrorKind.ANY: 500,
}


def error_status(kind: ErrorKind) -> int:
    """HTTP status for an error kind."""
    return ERROR_STATUS.get(kind, 500)


# =============================================================================
# Exceptions
# =============================================================================


class DeclaroError(Exception):
    """Base class for all Declaro errors."""

    pass


class ConfigurationError(DeclaroError):
    """Raised when an action or setting is declared incorrectly."""

    pass


class UnknownDirectiveError(ConfigurationError, AttributeError):
    """Raised when a builder receives a directive it does not support."""

    def __init__(self, builder: str, directive: str):
        self.builder = builder
        self.directive = directive
        super().__init__(f"{builder} has no directive '{directive}'")


class ActionNotRegistered(DeclaroError):
    """Raised when executing an action that was never declared."""

    def __init__(self, action: str, controller: str = ""):
        self.action = action
        self.controller = controller
        where = f" on {controller}" if controller else ""
        super().__init__(f"Action {action} not registered{where}")


class ServiceError(DeclaroError):
    """
    Raised when a service reports a failed operation.

    Carries the resource the operation was working on and the
    metadata it returned, so handlers can render field errors.
    """

    error_kind: ErrorKind = ErrorKind.ANY

    def __init__(self, resource: Any = None, meta: Mapping[str, Any] | None = None):
        self.resource = resource
        self.meta = dict(meta or {})
        super().__init__(self.meta.get("message") or "Operation failed")

    @property
    def errors(self) -> Any:
        """Field errors from the resource, if it carries any."""
        errors = getattr(self.resource, "errors", None)
        if errors is None:
            return None
        if hasattr(errors, "to_dict"):
            return errors.to_dict()
        return errors


class NotFoundError(ServiceError):
    """The requested resource does not exist."""

    error_kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Resource not found", resource: Any = None):
        super().__init__(resource, {"message": message})


class AuthorizationError(ServiceError):
    """The current user may not perform the action."""

    error_kind = ErrorKind.AUTHORIZATION

    def __init__(self, message: str = "Not authorized", resource: Any = None):
        super().__init__(resource, {"message": message})


class ValidationFailedError(ServiceError):
    """Input or resource failed validation."""

    error_kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        errors: "FieldErrors | Mapping[str, Any] | None" = None,
        resource: Any = None,
    ):
        super().__init__(resource, {"message": message})
        self._errors = errors

    @property
    def errors(self) -> Any:
        if self._errors is not None:
            return self._errors
        return super().errors


# =============================================================================
# Field Errors
# =============================================================================


class FieldErrors:
    """
    Per-field validation messages.

    Example:
        errors = FieldErrors()
        errors.add("email", "can't be blank")
        errors.full_messages  # ["Email can't be blank"]
        errors.to_dict()      # {"email": ["can't be blank"]}
    """

    def __init__(self, initial: Mapping[str, Iterable[str] | str] | None = None):
        self._errors: dict[str, list[str]] = {}
        for field, messages in (initial or {}).items():
            if isinstance(messages, str):
                messages = [messages]
            for message in messages:
                self.add(field, message)

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def __getitem__(self, field: str) -> list[str]:
        return list(self._errors.get(field, []))

    def __contains__(self, field: object) -> bool:
        return field in self._errors

    def __iter__(self) -> Iterator[str]:
        return iter(self._errors)

    def __len__(self) -> int:
        return sum(len(m) for m in self._errors.values())

    def __bool__(self) -> bool:
        return bool(self._errors)

    @property
    def full_messages(self) -> list[str]:
        """Messages prefixed with the humanized field name."""
        messages = []
        for field, field_messages in self._errors.items():
            label = "" if field == "base" else field.replace("_", " ").capitalize()
            for message in field_messages:
                messages.append(f"{label} {message}".strip())
        return messages

    def to_dict(self) -> dict[str, list[str]]:
        return {field: list(messages) for field, messages in self._errors.items()}

    def __repr__(self) -> str:
        return f"FieldErrors({self.to_dict()!r})"


# =============================================================================
# Classification
# =============================================================================


@runtime_checkable
class HasErrorKind(Protocol):
    """Anything that already knows its own classification."""

    error_kind: ErrorKind | str


# Exceptions from libraries that cannot carry an error_kind.
# Matched by exact qualified name against every class in the MRO.
LEGACY_ERROR_NAMES: dict[str, ErrorKind] = {
    # Not found
    "sqlalchemy.exc.NoResultFound": ErrorKind.NOT_FOUND,
    "sqlalchemy.orm.exc.NoResultFound": ErrorKind.NOT_FOUND,
    "django.core.exceptions.ObjectDoesNotExist": ErrorKind.NOT_FOUND,
    "django.http.response.Http404": ErrorKind.NOT_FOUND,
    # Validation
    "pydantic_core._pydantic_core.ValidationError": ErrorKind.VALIDATION,
    "pydantic.ValidationError": ErrorKind.VALIDATION,
    "fastapi.exceptions.RequestValidationError": ErrorKind.VALIDATION,
    "django.core.exceptions.ValidationError": ErrorKind.VALIDATION,
    "marshmallow.exceptions.ValidationError": ErrorKind.VALIDATION,
    # Authorization
    "builtins.PermissionError": ErrorKind.AUTHORIZATION,
    "django.core.exceptions.PermissionDenied": ErrorKind.AUTHORIZATION,
}

HTTP_STATUS_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.AUTHORIZATION,
    403: ErrorKind.AUTHORIZATION,
    404: ErrorKind.NOT_FOUND,
    422: ErrorKind.VALIDATION,
}

ERROR_CODE_KINDS: dict[str, ErrorKind] = {
    "validation_error": ErrorKind.VALIDATION,
    "database_error": ErrorKind.VALIDATION,
    "authorization_error": ErrorKind.AUTHORIZATION,
    "unauthorized": ErrorKind.AUTHORIZATION,
    "resource_not_found": ErrorKind.NOT_FOUND,
}


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def classify_error(exc: BaseException) -> ErrorKind:
    """Classify an exception. Total: unknown exceptions are ``ANY``."""
    kind = getattr(exc, "error_kind", None)
    if kind is not None:
        try:
            return ErrorKind(kind)
        except ValueError:
            pass

    if isinstance(exc, HTTPException):
        return HTTP_STATUS_KINDS.get(exc.status_code, ErrorKind.ANY)

    for cls in type(exc).__mro__:
        kind = LEGACY_ERROR_NAMES.get(_qualified_name(cls))
        if kind is not None:
            return kind

    return ErrorKind.ANY


def classify_result(result: Mapping[str, Any] | None) -> ErrorKind:
    """Classify a failed service result that raised no exception."""
    if not isinstance(result, Mapping):
        return ErrorKind.ANY

    error_type = result.get("error_type")
    if error_type is not None:
        try:
            return ErrorKind(getattr(error_type, "value", error_type))
        except ValueError:
            pass

    error_code = result.get("error_code")
    if error_code is not None:
        kind = ERROR_CODE_KINDS.get(str(getattr(error_code, "value", error_code)))
        if kind is not None:
            return kind

    if result.get("errors") or result.get("validation_errors"):
        return ErrorKind.VALIDATION

    return ErrorKind.ANY
