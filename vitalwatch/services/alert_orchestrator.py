"""
End-to-end "evaluate and notify" for a single patient reading.

Pipeline:
1. Build alert candidates from the reading
2. Drop candidates that already fired within the cooldown
3. Persist the rest, one at a time

Candidates are handled sequentially so the dedup check and the write for one
vital finish before the next candidate is looked at. Failures never escape to
the caller: a failed write skips that candidate and the loop continues.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import BaseModel, Field

from vitalwatch.domain.models import AlertCandidate, MonitorOutcome, PersistedAlert
from vitalwatch.services.alert_builder import AlertBuilder
from vitalwatch.services.alert_sink import AlertSink, Result
from vitalwatch.services.dedup import DEFAULT_COOLDOWN_MINUTES, DedupGate

logger = structlog.get_logger(__name__)


class AlertOrchestratorConfig(BaseModel):
    """Alerting policy knobs with validation."""

    cooldown_minutes: int = Field(
        default=DEFAULT_COOLDOWN_MINUTES,
        gt=0,
        description="Window during which a repeat alert for the same vital is suppressed.",
    )
    sink_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Timeout for each alert sink call in seconds.",
    )


class AlertOrchestrator:
    """Composes AlertBuilder, DedupGate and an AlertSink."""

    def __init__(
        self,
        sink: AlertSink,
        config: AlertOrchestratorConfig | None = None,
        builder: AlertBuilder | None = None,
        dedup: DedupGate | None = None,
    ) -> None:
        self.sink = sink
        self.config = config or AlertOrchestratorConfig()
        self.builder = builder or AlertBuilder()
        self.dedup = dedup or DedupGate(
            sink,
            cooldown_minutes=self.config.cooldown_minutes,
            timeout_seconds=self.config.sink_timeout_seconds,
        )
        self.logger = logger.bind(component="alert_orchestrator")

    async def evaluate_and_alert(self, reading: Mapping[str, Any] | None) -> MonitorOutcome:
        check = self.builder.build_alerts(reading)

        if not check.checked:
            self.logger.warning("vitals_check_skipped", reason="no_reading")
            return MonitorOutcome(success=False, message="Unable to check vitals")

        if not check.alerts:
            return MonitorOutcome(success=True, message="All vitals normal", alerts_created=0)

        created: list[PersistedAlert] = []
        for candidate in check.alerts:
            if await self.dedup.should_suppress(candidate.patient_id, candidate.vital_type):
                self.logger.info(
                    "duplicate_alert_suppressed",
                    patient_id=candidate.patient_id,
                    patient_name=candidate.patient_name,
                    vital_type=candidate.vital_type.value,
                )
                continue

            persisted = await self._persist(candidate)
            if persisted is not None:
                created.append(persisted)

        self.logger.info(
            "vitals_evaluated",
            patient_id=check.patient_id,
            candidates=len(check.alerts),
            alerts_created=len(created),
        )
        return MonitorOutcome(
            success=True,
            message=f"Created {len(created)} alerts",
            alerts_created=len(created),
            alerts=created,
        )

    async def _persist(self, candidate: AlertCandidate) -> PersistedAlert | None:
        """Write one alert; any failure is logged and reported as None."""
        log = self.logger.bind(
            patient_id=candidate.patient_id, vital_type=candidate.vital_type.value
        )
        try:
            result = await asyncio.wait_for(
                self.sink.persist(candidate), timeout=self.config.sink_timeout_seconds
            )
        except TimeoutError:
            log.warning("alert_persist_timeout", timeout_seconds=self.config.sink_timeout_seconds)
            return None
        except Exception as e:
            log.exception("alert_persist_failed", error=str(e))
            return None

        if result.is_err():
            log.error("alert_persist_failed", error=str(result.unwrap_err()))
            return None

        alert = result.unwrap()
        log.info(
            "alert_persisted",
            alert_id=alert.id,
            severity=alert.severity.value,
            direction=alert.direction.value if alert.direction else None,
            is_global=alert.is_global,
        )
        return alert

    async def acknowledge_alert(
        self, alert_id: str, acknowledger_id: str, acknowledger_name: str | None = None
    ) -> Result[PersistedAlert, Exception]:
        """Record that a clinician has seen an alert."""
        try:
            result = await asyncio.wait_for(
                self.sink.acknowledge(alert_id, acknowledger_id, acknowledger_name),
                timeout=self.config.sink_timeout_seconds,
            )
        except TimeoutError as e:
            self.logger.warning(
                "alert_acknowledge_timeout",
                alert_id=alert_id,
                timeout_seconds=self.config.sink_timeout_seconds,
            )
            return Result.err(e)
        except Exception as e:
            self.logger.exception("alert_acknowledge_failed", alert_id=alert_id, error=str(e))
            return Result.err(e)

        if result.is_ok():
            self.logger.info(
                "alert_acknowledged", alert_id=alert_id, acknowledged_by=acknowledger_id
            )
        else:
            self.logger.warning(
                "alert_acknowledge_failed", alert_id=alert_id, error=str(result.unwrap_err())
            )
        return result

    async def active_alerts(self, doctor_id: str) -> Result[list[PersistedAlert], Exception]:
        """Unacknowledged alerts routed to a doctor, newest first."""
        try:
            result = await asyncio.wait_for(
                self.sink.active_alerts(doctor_id), timeout=self.config.sink_timeout_seconds
            )
        except TimeoutError as e:
            self.logger.warning(
                "active_alerts_timeout",
                doctor_id=doctor_id,
                timeout_seconds=self.config.sink_timeout_seconds,
            )
            return Result.err(e)
        except Exception as e:
            self.logger.exception("active_alerts_failed", doctor_id=doctor_id, error=str(e))
            return Result.err(e)

        if result.is_err():
            self.logger.warning(
                "active_alerts_failed", doctor_id=doctor_id, error=str(result.unwrap_err())
            )
        return result
