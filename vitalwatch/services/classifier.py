"""
Vital sign classification against the threshold table.

Classification is two-tier: a value inside the normal band is normal, a value
inside the warning band is a warning, and anything else is critical. The
critical branch does not check the critical bounds themselves, so an abnormal
value between warning_max and critical_max is still reported as critical.
"""

import re
from typing import Any

from vitalwatch.domain.models import (
    BloodPressureReading,
    ClassificationResult,
    Direction,
    Severity,
    VitalStatus,
    VitalType,
)
from vitalwatch.domain.thresholds import DEFAULT_THRESHOLDS, ThresholdTable

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def classify(
    vital_type: VitalType | str,
    value: float,
    table: ThresholdTable = DEFAULT_THRESHOLDS,
) -> ClassificationResult:
    """Classify one reading as normal, warning, critical or unknown."""
    threshold = table.get(vital_type)
    if threshold is None:
        return ClassificationResult(status=VitalStatus.UNKNOWN, message="Unknown vital type")

    if threshold.min_value <= value <= threshold.max_value:
        return ClassificationResult(
            status=VitalStatus.NORMAL,
            severity=Severity.NONE,
            message="Within normal range",
        )

    if threshold.warning_min <= value <= threshold.warning_max:
        direction = Direction.LOW if value < threshold.min_value else Direction.HIGH
        return ClassificationResult(
            status=VitalStatus.WARNING,
            severity=Severity.WARNING,
            direction=direction,
            message=f"Slightly {direction.value} - monitor closely",
        )

    direction = Direction.LOW if value < threshold.critical_min else Direction.HIGH
    return ClassificationResult(
        status=VitalStatus.CRITICAL,
        severity=Severity.CRITICAL,
        direction=direction,
        message=f"Critically {direction.value} - immediate attention needed",
    )


def describe_vital(
    vital_type: VitalType | str,
    value: float,
    table: ThresholdTable = DEFAULT_THRESHOLDS,
) -> str:
    """User-facing sentence describing a reading, e.g. for patient dashboards."""
    threshold = table.get(vital_type)
    if threshold is None:
        return "Unable to assess vital"

    result = classify(vital_type, value, table)
    reading = f"{value:g}{threshold.unit}"

    if result.status is VitalStatus.NORMAL:
        return f"{threshold.label} is normal at {reading}"
    direction = result.direction.value if result.direction else ""
    if result.status is VitalStatus.WARNING:
        return f"{threshold.label} is {direction} at {reading} - please monitor"
    return f"⚠️ {threshold.label} is critically {direction} at {reading}!"


def _parse_int_prefix(text: str) -> int | None:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else None


def parse_blood_pressure(raw: Any) -> BloodPressureReading | None:
    """
    Split a "systolic/diastolic" string into its two integer components.

    Each side is read up to its first non-digit ("120 mmHg" reads as 120).
    Returns None for non-strings, a slash count other than one, or a side
    without leading digits. Physiological plausibility is not checked.
    """
    if not isinstance(raw, str) or not raw:
        return None

    parts = raw.split("/")
    if len(parts) != 2:
        return None

    systolic = _parse_int_prefix(parts[0])
    diastolic = _parse_int_prefix(parts[1])
    if systolic is None or diastolic is None:
        return None

    return BloodPressureReading(systolic=systolic, diastolic=diastolic)
