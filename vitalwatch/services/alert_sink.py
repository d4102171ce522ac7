"""
Contracts for the collaborators the alerting core depends on.

Key patterns:
- Protocol-based dependency injection (alert sinks, vitals sources)
- Generic Result type for expected failures
- Structured logging configured once for every service module
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar

import structlog

from vitalwatch.domain.models import AlertCandidate, PersistedAlert, VitalType

_SHARED_PROCESSORS: list[Any] = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]

structlog.configure(
    processors=[*_SHARED_PROCESSORS, structlog.processors.JSONRenderer()],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Apply the configured level and renderer (json or console)."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))

    renderer: Any = (
        structlog.dev.ConsoleRenderer() if fmt == "console" else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    Sinks return Results for storage faults so callers decide the policy
    (fail open for dedup checks, skip-and-continue for writes).
    """

    def __init__(self, value: ValueT | None = None, error: ErrorT | None = None) -> None:
        if value is not None and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is None and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error:
            raise self._error
        return self._value  # type: ignore

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self._value if self._error is None else default  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error


class AlertSink(Protocol):
    """
    Durable store for alert records.

    Why Protocol over ABC: structural typing, easier test doubles.
    Storage faults come back as error Results; implementations may still
    raise, and callers treat exceptions the same way.
    """

    async def query_recent(
        self, patient_id: str | None, vital_type: VitalType, since: datetime
    ) -> Result[list[PersistedAlert], Exception]:
        """Alerts for this patient and vital created after `since`, newest first."""
        ...

    async def persist(self, candidate: AlertCandidate) -> Result[PersistedAlert, Exception]:
        """Store a new, unacknowledged alert built from `candidate`."""
        ...

    async def acknowledge(
        self, alert_id: str, acknowledger_id: str, acknowledger_name: str | None = None
    ) -> Result[PersistedAlert, Exception]:
        """Mark an alert as seen by a clinician."""
        ...

    async def active_alerts(self, doctor_id: str) -> Result[list[PersistedAlert], Exception]:
        """Unacknowledged alerts routed to `doctor_id`, newest first."""
        ...


class VitalsSource(Protocol):
    """Supplies raw patient reading snapshots (push or poll is up to the source)."""

    source_name: str

    async def fetch_readings(self) -> Result[list[Mapping[str, Any]], Exception]:
        """Latest reading snapshot per patient known to the source."""
        ...
