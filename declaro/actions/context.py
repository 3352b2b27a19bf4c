"""
Action Context for Declaro.

Request-scoped execution state for one action run: an execution id for
log correlation, the start time and per-phase timings.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ActionContext:
    """
    Request-scoped context for one ``execute_registered_action`` call.

    Provides:
    - Unique execution ID for tracing
    - Controller, action and negotiated format
    - Per-phase timings (callbacks, service, page, dispatch)
    - The outcome once dispatched
    """

    controller: str = ""
    action: str = ""
    format: str = ""

    execution_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utc_now)

    phase_timings: dict[str, float] = field(default_factory=dict)
    success: bool | None = None
    error_kind: str | None = None
    error: str | None = None
    status_code: int | None = None

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the action started."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def record_timing(self, phase: str, duration_ms: float) -> None:
        """Record how long an execution phase took."""
        self.phase_timings[phase] = duration_ms

    def record_failure(self, kind: str, error: BaseException | str | None) -> None:
        self.success = False
        self.error_kind = kind
        if isinstance(error, BaseException):
            self.error = f"{type(error).__name__}: {error}"
        elif error:
            self.error = str(error)

    def to_audit_dict(self) -> dict[str, Any]:
        """Generate an audit record."""
        return {
            "execution_id": str(self.execution_id),
            "controller": self.controller,
            "action": self.action,
            "format": self.format,
            "started_at": self.started_at.isoformat(),
            "completed_at": datetime.now(timezone.utc).isoformat(),
            "duration_ms": self.elapsed_ms,
            "success": self.success,
            "error_kind": self.error_kind,
            "error": self.error,
            "status_code": self.status_code,
            "phase_timings": self.phase_timings,
        }
