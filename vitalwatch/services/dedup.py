"""
Duplicate-alert suppression.

The gate keeps no state of its own: every check is a query against the alert
sink, so any number of evaluators can share one store.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from vitalwatch.domain.models import VitalType
from vitalwatch.services.alert_sink import AlertSink

logger = structlog.get_logger(__name__)

DEFAULT_COOLDOWN_MINUTES = 15


def utc_now() -> datetime:
    return datetime.now(UTC)


class DedupGate:
    """
    Suppresses repeat alerts for the same patient and vital within a cooldown.

    Fails open: if the sink cannot answer, the alert is treated as new.
    A duplicate alert is preferable to a missed one.
    """

    def __init__(
        self,
        sink: AlertSink,
        cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES,
        timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.sink = sink
        self.cooldown_minutes = cooldown_minutes
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self.logger = logger.bind(component="dedup_gate")

    async def should_suppress(
        self,
        patient_id: str | None,
        vital_type: VitalType,
        cooldown_minutes: int | None = None,
    ) -> bool:
        window = self.cooldown_minutes if cooldown_minutes is None else cooldown_minutes
        since = self.clock() - timedelta(minutes=window)

        try:
            result = await asyncio.wait_for(
                self.sink.query_recent(patient_id, vital_type, since),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            self.logger.warning(
                "recent_alert_query_timeout",
                patient_id=patient_id,
                vital_type=vital_type.value,
                timeout_seconds=self.timeout_seconds,
            )
            return False
        except Exception as e:
            self.logger.exception(
                "recent_alert_query_failed",
                patient_id=patient_id,
                vital_type=vital_type.value,
                error=str(e),
            )
            return False

        if result.is_err():
            self.logger.warning(
                "recent_alert_query_failed",
                patient_id=patient_id,
                vital_type=vital_type.value,
                error=str(result.unwrap_err()),
            )
            return False

        return len(result.unwrap()) > 0
