"""
Domain models for patient vitals monitoring.

These models represent the core clinical concepts and are framework-agnostic.
Field names are snake_case in Python and serialize to camelCase
(`model_dump(by_alias=True)`) so records keep the names alert stores expect.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

UNASSIGNED_DOCTOR = "unassigned"


class VitalType(str, Enum):
    """Vital signs the threshold table knows how to classify."""

    HEART_RATE = "heartRate"
    OXYGEN = "oxygen"
    TEMPERATURE = "temperature"
    BLOOD_PRESSURE_SYSTOLIC = "bloodPressureSystolic"
    BLOOD_PRESSURE_DIASTOLIC = "bloodPressureDiastolic"


class VitalStatus(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """How far a vital deviates from its normal range."""

    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"


class Direction(str, Enum):
    LOW = "low"
    HIGH = "high"


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ThresholdDefinition(_WireModel):
    """Normal, warning and critical bounds for one vital type."""

    vital_type: VitalType
    label: str = Field(description="Human readable vital name, e.g. 'Heart Rate'")
    min_value: float
    max_value: float
    warning_min: float
    warning_max: float
    critical_min: float
    critical_max: float
    unit: str
    description: str = ""

    @model_validator(mode="after")
    def bounds_are_nested(self) -> "ThresholdDefinition":
        """Ensure critical ⊇ warning ⊇ normal bands."""
        bounds = [
            self.critical_min,
            self.warning_min,
            self.min_value,
            self.max_value,
            self.warning_max,
            self.critical_max,
        ]
        if bounds != sorted(bounds):
            raise ValueError(
                f"thresholds for {self.vital_type.value} must satisfy "
                "critical_min <= warning_min <= min_value <= max_value "
                "<= warning_max <= critical_max"
            )
        return self


class ClassificationResult(_WireModel):
    """Outcome of classifying a single vital reading.

    `severity` is None when `status` is unknown; check the status first.
    """

    status: VitalStatus
    severity: Severity | None = None
    direction: Direction | None = None
    message: str


class BloodPressureReading(_WireModel):
    systolic: int
    diastolic: int


class AlertCandidate(_WireModel):
    """An abnormal vital that may become a persisted alert."""

    patient_id: str | None
    patient_name: str
    doctor_id: str
    vital_type: VitalType
    vital_name: str
    current_value: float
    unit: str
    severity: Severity
    direction: Direction | None
    message: str
    is_global: bool = False


class PersistedAlert(AlertCandidate):
    """Alert record owned by an alert sink."""

    id: str
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    acknowledged_by: str | None = None
    acknowledged_by_name: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class VitalCheck(BaseModel):
    """Alert candidates derived from one patient reading."""

    alerts: list[AlertCandidate] = Field(default_factory=list)
    checked: bool
    patient_id: str | None = None
    patient_name: str | None = None


class MonitorOutcome(BaseModel):
    """Summary returned to the caller of an evaluate-and-alert pass."""

    success: bool
    message: str
    alerts_created: int = Field(default=0, ge=0)
    alerts: list[PersistedAlert] = Field(default_factory=list)
