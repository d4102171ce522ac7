"""
Real-time patient monitoring built on the alerting core.

Each cycle:
1. Fetch reading snapshots from every vitals source
2. Keep the latest reading per patient and skip patients whose vitals are unchanged
3. Evaluate the remaining patients concurrently
4. Dispatch newly created alerts to handlers (pagers, dashboards, ...)

Readings for different patients share nothing but the read-only threshold
table, so they are evaluated in parallel. One patient is never evaluated
twice in the same cycle.
"""

import asyncio
import inspect
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, Field

from vitalwatch.config import AppConfig, get_config
from vitalwatch.domain.models import MonitorOutcome, PersistedAlert
from vitalwatch.domain.thresholds import load_threshold_table
from vitalwatch.services.alert_builder import (
    BLOOD_PRESSURE_FIELDS,
    PATIENT_ID_FIELDS,
    VITAL_FIELDS,
    AlertBuilder,
    first_present,
)
from vitalwatch.services.alert_orchestrator import AlertOrchestrator, AlertOrchestratorConfig
from vitalwatch.services.alert_sink import AlertSink, VitalsSource, configure_logging

logger = structlog.get_logger(__name__)

AlertHandler = Callable[[PersistedAlert], None] | Callable[[PersistedAlert], Awaitable[None]]


class MonitoringCycleReport(BaseModel):
    """What one monitoring cycle did."""

    readings_received: int = Field(default=0, ge=0)
    patients_evaluated: int = Field(default=0, ge=0)
    patients_unchanged: int = Field(default=0, ge=0)
    alerts_created: int = Field(default=0, ge=0)
    failed_sources: int = Field(default=0, ge=0)
    duration_seconds: float = Field(default=0.0, ge=0.0)


def vitals_fingerprint(reading: Mapping[str, Any]) -> tuple[Any, ...]:
    """Alias-resolved vitals of a reading, used to detect unchanged snapshots."""
    values = [first_present(reading, field.aliases) for field in VITAL_FIELDS]
    values.append(first_present(reading, BLOOD_PRESSURE_FIELDS))
    return tuple(values)


class AlertDispatcher:
    """Fans created alerts out to notification handlers."""

    def __init__(self, handlers: list[AlertHandler] | None = None) -> None:
        self.handlers: list[AlertHandler] = handlers or [self._log_alert_handler]
        self.logger = logger.bind(component="alert_dispatcher")

    async def dispatch(self, alerts: list[PersistedAlert]) -> None:
        for alert in alerts:
            for handler in self.handlers:
                try:
                    outcome = handler(alert)
                    if inspect.isawaitable(outcome):
                        await outcome
                except Exception as e:
                    self.logger.error(
                        "alert_dispatch_failed",
                        error=str(e),
                        alert_id=alert.id,
                        handler=getattr(handler, "__name__", type(handler).__name__),
                    )

    def _log_alert_handler(self, alert: PersistedAlert) -> None:
        """Default handler: emit the alert as a structured log event."""
        self.logger.warning(
            "patient_alert",
            alert_id=alert.id,
            patient_id=alert.patient_id,
            patient_name=alert.patient_name,
            doctor_id=alert.doctor_id,
            broadcast=alert.is_global,
            vital=alert.vital_name,
            value=alert.current_value,
            unit=alert.unit,
            severity=alert.severity.value,
            message=alert.message,
        )


class PatientMonitoringService:
    """
    Orchestrates source polling, change detection, evaluation and dispatch.

    Design principles:
    - Graceful degradation (a failing source or patient never stops the cycle)
    - Observable (structured logging per cycle)
    - Bounded concurrency across patients
    """

    def __init__(
        self,
        sink: AlertSink,
        config: AppConfig | None = None,
        handlers: list[AlertHandler] | None = None,
    ) -> None:
        self.config = config or get_config()
        self.logger = logger.bind(component="patient_monitor")
        configure_logging(self.config.logging.level, self.config.logging.format)

        table = load_threshold_table(self.config.alerting.thresholds_path)
        self.orchestrator = AlertOrchestrator(
            sink,
            config=AlertOrchestratorConfig(
                cooldown_minutes=self.config.alerting.cooldown_minutes,
                sink_timeout_seconds=self.config.alerting.sink_timeout_seconds,
            ),
            builder=AlertBuilder(table),
        )
        self.dispatcher = AlertDispatcher(handlers)
        self.sources: list[VitalsSource] = []

        self._last_fingerprints: dict[str, tuple[Any, ...]] = {}
        self._semaphore = asyncio.Semaphore(self.config.monitoring.max_concurrent_patients)
        self._is_running = False

    def add_source(self, source: VitalsSource) -> None:
        """Add a vitals source. Validates source implements protocol correctly."""
        if not hasattr(source, "fetch_readings"):
            raise TypeError(f"Source {source} must implement VitalsSource protocol")
        self.sources.append(source)
        self.logger.info("source_added", source=source.source_name)

    def remove_source(self, source: VitalsSource) -> None:
        self.sources.remove(source)
        self.logger.info("source_removed", source=source.source_name)

    async def run_monitoring_cycle(self) -> MonitoringCycleReport:
        start_time = time.perf_counter()

        readings, failed_sources = await self._fetch_all()

        latest: dict[str, Mapping[str, Any]] = {}
        anonymous: list[Mapping[str, Any]] = []
        for reading in readings:
            patient_id = first_present(reading, PATIENT_ID_FIELDS)
            if patient_id is None:
                anonymous.append(reading)
            else:
                latest[str(patient_id)] = reading

        to_evaluate: list[Mapping[str, Any]] = list(anonymous)
        unchanged = 0
        for patient_id, reading in latest.items():
            fingerprint = vitals_fingerprint(reading)
            if self._last_fingerprints.get(patient_id) == fingerprint:
                unchanged += 1
                continue
            self._last_fingerprints[patient_id] = fingerprint
            to_evaluate.append(reading)

        # a failed source may still hold patients, so only prune on a complete snapshot
        if not failed_sources:
            for patient_id in self._last_fingerprints.keys() - latest.keys():
                del self._last_fingerprints[patient_id]

        async with asyncio.TaskGroup() as task_group:
            tasks = [task_group.create_task(self._evaluate(reading)) for reading in to_evaluate]

        created: list[PersistedAlert] = []
        for task in tasks:
            outcome = task.result()
            if outcome is not None:
                created.extend(outcome.alerts)

        if created:
            await self.dispatcher.dispatch(created)

        report = MonitoringCycleReport(
            readings_received=len(readings),
            patients_evaluated=len(to_evaluate),
            patients_unchanged=unchanged,
            alerts_created=len(created),
            failed_sources=failed_sources,
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        self.logger.info("monitoring_cycle_completed", **report.model_dump())
        return report

    async def _fetch_all(self) -> tuple[list[Mapping[str, Any]], int]:
        """Fetch from every source concurrently; failed sources are logged and counted."""
        timeout = self.config.monitoring.source_timeout_seconds

        async def fetch(source: VitalsSource) -> list[Mapping[str, Any]] | None:
            try:
                result = await asyncio.wait_for(source.fetch_readings(), timeout=timeout)
            except TimeoutError:
                self.logger.warning("source_fetch_timeout", source=source.source_name)
                return None
            except Exception as e:
                self.logger.exception(
                    "unexpected_source_fetch_error", source=source.source_name, error=str(e)
                )
                return None

            if result.is_err():
                self.logger.warning(
                    "source_fetch_failed",
                    source=source.source_name,
                    error=str(result.unwrap_err()),
                )
                return None
            return result.unwrap()

        async with asyncio.TaskGroup() as task_group:
            tasks = [task_group.create_task(fetch(source)) for source in self.sources]

        readings: list[Mapping[str, Any]] = []
        failed = 0
        for task in tasks:
            batch = task.result()
            if batch is None:
                failed += 1
            else:
                readings.extend(batch)
        return readings, failed

    async def _evaluate(self, reading: Mapping[str, Any]) -> MonitorOutcome | None:
        async with self._semaphore:
            try:
                return await self.orchestrator.evaluate_and_alert(reading)
            except Exception as e:
                self.logger.exception("patient_evaluation_failed", error=str(e))
                return None

    async def run_continuous_monitoring(self) -> AsyncIterator[MonitoringCycleReport]:
        """Yield one report per poll interval until stop() is called."""
        interval = self.config.monitoring.poll_interval_seconds
        self.logger.info("continuous_monitoring_starting", interval=interval)
        self._is_running = True

        try:
            while self._is_running:
                cycle_start = time.perf_counter()
                yield await self.run_monitoring_cycle()

                sleep_time = max(0.0, interval - (time.perf_counter() - cycle_start))
                if sleep_time > 0:
                    await asyncio.sleep(sleep_time)
                else:
                    self.logger.warning(
                        "monitoring_cycle_slower_than_interval", interval_seconds=interval
                    )
        except asyncio.CancelledError:
            self.logger.info("continuous_monitoring_cancelled")
            raise
        finally:
            self._is_running = False

    async def stop(self) -> None:
        """Gracefully stop the monitoring loop."""
        self.logger.info("stopping_monitoring_service")
        self._is_running = False
