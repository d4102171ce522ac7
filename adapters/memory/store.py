"""
In-process implementations of the alert sink and vitals source contracts.

Used by the demo script and the test suite. A production deployment plugs a
document store in behind the same AlertSink protocol.
"""

import asyncio
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from vitalwatch.domain.models import AlertCandidate, PersistedAlert, VitalType
from vitalwatch.services.alert_sink import Result

logger = structlog.get_logger(__name__)


class InMemoryAlertSink:
    """
    List-backed alert store.

    Records are never deleted; acknowledging replaces the stored record with
    an updated copy.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._alerts: list[PersistedAlert] = []
        self._lock = asyncio.Lock()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.logger = logger.bind(component="memory_alert_sink")

    @property
    def alerts(self) -> list[PersistedAlert]:
        return list(self._alerts)

    async def query_recent(
        self, patient_id: str | None, vital_type: VitalType, since: datetime
    ) -> Result[list[PersistedAlert], Exception]:
        matches = [
            alert
            for alert in self._alerts
            if alert.patient_id == patient_id
            and alert.vital_type == vital_type
            and alert.created_at > since
        ]
        matches.sort(key=lambda alert: alert.created_at, reverse=True)
        return Result.ok(matches)

    async def persist(self, candidate: AlertCandidate) -> Result[PersistedAlert, Exception]:
        alert = PersistedAlert(
            **candidate.model_dump(),
            id=uuid.uuid4().hex,
            created_at=self.clock(),
        )
        async with self._lock:
            self._alerts.append(alert)

        self.logger.debug("alert_stored", alert_id=alert.id, patient_id=alert.patient_id)
        return Result.ok(alert)

    async def acknowledge(
        self, alert_id: str, acknowledger_id: str, acknowledger_name: str | None = None
    ) -> Result[PersistedAlert, Exception]:
        async with self._lock:
            for index, alert in enumerate(self._alerts):
                if alert.id != alert_id:
                    continue
                updated = alert.model_copy(
                    update={
                        "acknowledged": True,
                        "acknowledged_at": self.clock(),
                        "acknowledged_by": acknowledger_id,
                        "acknowledged_by_name": acknowledger_name,
                    }
                )
                self._alerts[index] = updated
                return Result.ok(updated)

        return Result.err(KeyError(f"Alert {alert_id} not found"))

    async def active_alerts(self, doctor_id: str) -> Result[list[PersistedAlert], Exception]:
        matches = [
            alert
            for alert in self._alerts
            if alert.doctor_id == doctor_id and not alert.acknowledged
        ]
        matches.sort(key=lambda alert: alert.created_at, reverse=True)
        return Result.ok(matches)


class StaticVitalsSource:
    """Serves a fixed list of readings; `update` swaps in the next snapshot."""

    def __init__(self, source_name: str, readings: list[Mapping[str, Any]] | None = None) -> None:
        self.source_name = source_name
        self._readings: list[Mapping[str, Any]] = list(readings or [])
        self.logger = logger.bind(source=source_name)

    def update(self, readings: list[Mapping[str, Any]]) -> None:
        self._readings = list(readings)

    async def fetch_readings(self) -> Result[list[Mapping[str, Any]], Exception]:
        self.logger.debug("readings_fetched", count=len(self._readings))
        return Result.ok(list(self._readings))
