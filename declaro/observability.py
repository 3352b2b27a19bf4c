"""
Observability for Declaro.

Structured, JSON-formatted logging of action executions. Each action
run logs a start, then exactly one completion or failure record, all
correlated by the execution id of its ActionContext.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from declaro.actions.context import ActionContext


# =============================================================================
# Log Levels
# =============================================================================


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# JSON Logger
# =============================================================================


@dataclass
class JSONLogger:
    """
    Structured logger that outputs JSON-formatted records.

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
         "message": "Action completed", "execution_id": "abc-123",
         "action": "create", "status_code": 201}
    """

    name: str = "declaro"
    execution_id: str | None = None
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        log_method = getattr(self._python_logger, level.value)
        if not self._python_logger.isEnabledFor(getattr(logging, level.name)):
            return

        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "message": message,
            **self.extra_context,
            **context,
        }
        if self.execution_id:
            record["execution_id"] = self.execution_id

        log_method(json.dumps(record, default=str))

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context)

    def with_context(self, **extra: Any) -> "JSONLogger":
        """Create a new logger with additional context."""
        return JSONLogger(
            name=self.name,
            execution_id=self.execution_id,
            extra_context={**self.extra_context, **extra},
        )


# =============================================================================
# Action Logger
# =============================================================================


@dataclass
class ActionLogger:
    """
    Logger for action execution events.

    Example:
        log = ActionLogger.for_context(ctx)
        log.action_started("json")
        log.action_completed(200, ctx.elapsed_ms)
    """

    controller: str = ""
    action: str = ""
    execution_id: str | None = None
    inner: JSONLogger | None = None

    def __post_init__(self) -> None:
        if self.inner is None:
            self.inner = JSONLogger(
                name="declaro.actions",
                execution_id=self.execution_id,
                extra_context={"controller": self.controller, "action": self.action},
            )

    @classmethod
    def for_context(cls, ctx: "ActionContext") -> "ActionLogger":
        return cls(
            controller=ctx.controller,
            action=ctx.action,
            execution_id=str(ctx.execution_id),
        )

    def action_started(self, format: str) -> None:
        self.inner.debug("Action started", format=format)

    def action_completed(self, status_code: int | None, duration_ms: float) -> None:
        self.inner.info(
            "Action completed",
            success=True,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
        )

    def action_failed(
        self,
        error_kind: str,
        status_code: int | None,
        duration_ms: float,
        error: str | None = None,
    ) -> None:
        self.inner.warning(
            "Action failed",
            success=False,
            error_kind=error_kind,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
            error=error,
        )

    def action_error(self, error: BaseException, phase: str) -> None:
        """An exception was raised inside the action pipeline."""
        self.inner.error(
            "Action raised",
            phase=phase,
            error=str(error),
            error_type=type(error).__name__,
        )

    def dispatch(self, format: str, handler: str) -> None:
        self.inner.debug("Response dispatched", format=format, handler=handler)
