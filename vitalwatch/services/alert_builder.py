"""
Turns a raw patient reading into alert candidates.

Readings arrive as loosely-shaped mappings from device feeds and patient
records, so each vital is looked up through an ordered list of field aliases.
The first alias holding a value wins.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from vitalwatch.domain.models import (
    UNASSIGNED_DOCTOR,
    AlertCandidate,
    Severity,
    VitalCheck,
    VitalType,
)
from vitalwatch.domain.thresholds import DEFAULT_THRESHOLDS, ThresholdTable
from vitalwatch.services.classifier import classify, parse_blood_pressure

logger = structlog.get_logger(__name__)

UNKNOWN_PATIENT_NAME = "Unknown Patient"

PATIENT_ID_FIELDS = ("id", "uid", "phoneNumber")
PATIENT_NAME_FIELDS = ("name",)
DOCTOR_ID_FIELDS = ("doctorId", "assignedDoctor")
BLOOD_PRESSURE_FIELDS = ("bloodPressure",)

ALERTING_SEVERITIES = frozenset({Severity.WARNING, Severity.CRITICAL})

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class VitalField:
    """A numeric vital and the reading fields it may be reported under."""

    vital_type: VitalType
    aliases: tuple[str, ...]


VITAL_FIELDS: tuple[VitalField, ...] = (
    VitalField(VitalType.HEART_RATE, ("heartRate", "bpm")),
    VitalField(VitalType.OXYGEN, ("oxygen", "spo2")),
    VitalField(VitalType.TEMPERATURE, ("temperature", "temp")),
)


def first_present(reading: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    """Value of the first alias that is set (None and "" count as unset)."""
    for alias in aliases:
        value = reading.get(alias)
        if value is not None and value != "":
            return value
    return None


def parse_vital_value(raw: Any) -> float:
    """
    Read a numeric vital; strings are read up to their first non-numeric character.

    Anything without a numeric value comes back as NaN, which classifies as
    critical. Integers beyond float range become signed infinity.
    """
    if isinstance(raw, bool):
        return math.nan
    if isinstance(raw, int):
        try:
            return float(raw)
        except OverflowError:
            return math.inf if raw > 0 else -math.inf
    if isinstance(raw, float):
        return raw
    if isinstance(raw, str):
        match = _FLOAT_PREFIX.match(raw)
        return float(match.group(1)) if match else math.nan
    return math.nan


class AlertBuilder:
    """Classifies every vital present in a reading and collects the abnormal ones."""

    def __init__(self, table: ThresholdTable = DEFAULT_THRESHOLDS) -> None:
        self.table = table
        self.logger = logger.bind(component="alert_builder")

    def build_alerts(self, reading: Mapping[str, Any] | None) -> VitalCheck:
        if reading is None:
            return VitalCheck(checked=False)

        patient_id = first_present(reading, PATIENT_ID_FIELDS)
        if patient_id is not None:
            patient_id = str(patient_id)
        name = first_present(reading, PATIENT_NAME_FIELDS)
        patient_name = UNKNOWN_PATIENT_NAME if name is None else str(name)
        doctor = first_present(reading, DOCTOR_ID_FIELDS)
        doctor_id = UNASSIGNED_DOCTOR if doctor is None else str(doctor)
        is_global = doctor_id == UNASSIGNED_DOCTOR

        measurements: list[tuple[VitalType, float]] = []

        for field in VITAL_FIELDS:
            raw = first_present(reading, field.aliases)
            if raw is None:
                continue
            value = parse_vital_value(raw)
            if math.isnan(value):
                self.logger.warning(
                    "vital_value_unparseable",
                    patient_id=patient_id,
                    vital_type=field.vital_type.value,
                    raw_value=repr(raw),
                )
            measurements.append((field.vital_type, value))

        raw_bp = first_present(reading, BLOOD_PRESSURE_FIELDS)
        if raw_bp is not None:
            bp = parse_blood_pressure(raw_bp)
            if bp is None:
                self.logger.info(
                    "blood_pressure_unparseable", patient_id=patient_id, raw_value=repr(raw_bp)
                )
            else:
                measurements.append((VitalType.BLOOD_PRESSURE_SYSTOLIC, bp.systolic))
                measurements.append((VitalType.BLOOD_PRESSURE_DIASTOLIC, bp.diastolic))

        alerts: list[AlertCandidate] = []
        for vital_type, value in measurements:
            result = classify(vital_type, value, self.table)
            if result.severity not in ALERTING_SEVERITIES:
                continue

            threshold = self.table[vital_type]
            alerts.append(
                AlertCandidate(
                    patient_id=patient_id,
                    patient_name=patient_name,
                    doctor_id=doctor_id,
                    vital_type=vital_type,
                    vital_name=threshold.label,
                    current_value=value,
                    unit=threshold.unit,
                    severity=result.severity,
                    direction=result.direction,
                    message=result.message,
                    is_global=is_global,
                )
            )

        if alerts:
            self.logger.info(
                "abnormal_vitals_detected",
                patient_id=patient_id,
                count=len(alerts),
                vitals=[alert.vital_type.value for alert in alerts],
                is_global=is_global,
            )

        return VitalCheck(
            alerts=alerts, checked=True, patient_id=patient_id, patient_name=patient_name
        )
