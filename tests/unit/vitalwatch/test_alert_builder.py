"""
Tests for building alert candidates from raw patient readings.

Covers:
- Missing readings
- Identity resolution and the unassigned-doctor broadcast flag
- Field alias precedence
- Blood pressure split into systolic and diastolic candidates
- Unparseable and out-of-range values
"""

import math

import pytest

from vitalwatch.domain.models import UNASSIGNED_DOCTOR, Direction, Severity, VitalType
from vitalwatch.services.alert_builder import AlertBuilder, first_present, parse_vital_value


@pytest.fixture
def builder() -> AlertBuilder:
    return AlertBuilder()


def test_missing_reading_is_not_checked(builder: AlertBuilder) -> None:
    check = builder.build_alerts(None)

    assert check.checked is False
    assert check.alerts == []
    assert check.patient_id is None
    assert check.patient_name is None


def test_low_heart_rate_yields_single_critical_candidate(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "heartRate": 35})

    assert check.checked is True
    assert check.patient_id == "p1"
    assert len(check.alerts) == 1
    alert = check.alerts[0]
    assert alert.vital_type is VitalType.HEART_RATE
    assert alert.vital_name == "Heart Rate"
    assert alert.severity is Severity.CRITICAL
    assert alert.direction is Direction.LOW
    assert alert.current_value == 35
    assert alert.unit == "bpm"
    assert alert.message == "Critically low - immediate attention needed"


def test_all_normal_vitals_yield_no_candidates(builder: AlertBuilder) -> None:
    check = builder.build_alerts(
        {"id": "p1", "heartRate": 75, "oxygen": 98, "temperature": 36.5, "bloodPressure": "110/70"}
    )

    assert check.checked is True
    assert check.alerts == []


def test_all_abnormal_vitals_yield_candidate_per_vital(builder: AlertBuilder) -> None:
    check = builder.build_alerts(
        {
            "id": "p1",
            "heartRate": 150,
            "oxygen": 85,
            "temperature": 39.5,
            "bloodPressure": "180/120",
        }
    )

    vital_types = {alert.vital_type for alert in check.alerts}
    assert len(check.alerts) >= 4
    assert {
        VitalType.HEART_RATE,
        VitalType.OXYGEN,
        VitalType.TEMPERATURE,
        VitalType.BLOOD_PRESSURE_SYSTOLIC,
    } <= vital_types
    assert VitalType.BLOOD_PRESSURE_DIASTOLIC in vital_types


def test_identity_falls_back_through_aliases(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"uid": "u-9", "phoneNumber": "+15550100", "bpm": 130})
    assert check.patient_id == "u-9"
    assert check.patient_name == "Unknown Patient"

    check = builder.build_alerts({"phoneNumber": 15550100, "bpm": 130})
    assert check.patient_id == "15550100"


def test_unassigned_patient_alerts_are_global(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "name": "Asha", "heartRate": 130})

    alert = check.alerts[0]
    assert alert.doctor_id == UNASSIGNED_DOCTOR
    assert alert.is_global is True
    assert alert.patient_name == "Asha"


def test_assigned_doctor_routes_alert(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "assignedDoctor": "dr-2", "heartRate": 130})
    assert check.alerts[0].doctor_id == "dr-2"
    assert check.alerts[0].is_global is False

    check = builder.build_alerts(
        {"id": "p1", "doctorId": "dr-1", "assignedDoctor": "dr-2", "heartRate": 130}
    )
    assert check.alerts[0].doctor_id == "dr-1"


def test_primary_field_takes_precedence_over_alias(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "heartRate": 75, "bpm": 150})
    assert check.alerts == []

    check = builder.build_alerts({"id": "p1", "heartRate": None, "bpm": 150})
    assert [alert.vital_type for alert in check.alerts] == [VitalType.HEART_RATE]


def test_alias_fields_are_checked(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "spo2": 85, "temp": "34.2"})

    by_type = {alert.vital_type: alert for alert in check.alerts}
    assert by_type[VitalType.OXYGEN].severity is Severity.CRITICAL
    assert by_type[VitalType.TEMPERATURE].current_value == pytest.approx(34.2)
    assert by_type[VitalType.TEMPERATURE].unit == "°C"


def test_zero_reading_counts_as_present(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "heartRate": 0})
    assert check.alerts[0].severity is Severity.CRITICAL
    assert check.alerts[0].direction is Direction.LOW


def test_blood_pressure_components_classified_independently(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "bloodPressure": "128/70"})

    assert len(check.alerts) == 1
    alert = check.alerts[0]
    assert alert.vital_type is VitalType.BLOOD_PRESSURE_SYSTOLIC
    assert alert.vital_name == "Systolic BP"
    assert alert.severity is Severity.WARNING
    assert alert.direction is Direction.HIGH
    assert alert.unit == "mmHg"


def test_malformed_blood_pressure_is_ignored(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "bloodPressure": "high"})
    assert check.checked is True
    assert check.alerts == []


def test_unparseable_vital_alerts_as_critical_high(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "heartRate": "n/a", "oxygen": 98})

    assert len(check.alerts) == 1
    alert = check.alerts[0]
    assert alert.vital_type is VitalType.HEART_RATE
    assert alert.severity is Severity.CRITICAL
    assert alert.direction is Direction.HIGH
    assert math.isnan(alert.current_value)


def test_oversized_integer_alerts_as_critical_high(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "heartRate": 10**400})

    assert len(check.alerts) == 1
    assert check.alerts[0].current_value == math.inf
    assert check.alerts[0].severity is Severity.CRITICAL
    assert check.alerts[0].direction is Direction.HIGH


@pytest.mark.parametrize(
    "raw,expected",
    [(72, 72.0), (36.6, 36.6), ("98", 98.0), ("  75 bpm", 75.0), (".5", 0.5), ("-3e1", -30.0)],
)
def test_parse_vital_value_reads_numeric_prefix(raw: object, expected: float) -> None:
    assert parse_vital_value(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["abc", True, float("nan"), [72], {"value": 72}])
def test_parse_vital_value_non_numbers_become_nan(raw: object) -> None:
    assert math.isnan(parse_vital_value(raw))


def test_parse_vital_value_out_of_float_range() -> None:
    assert parse_vital_value(10**400) == math.inf
    assert parse_vital_value(-(10**400)) == -math.inf


def test_first_present_skips_empty_values() -> None:
    assert first_present({"a": "", "b": None, "c": 0}, ("a", "b", "c")) == 0
    assert first_present({}, ("a",)) is None


def test_candidates_serialize_with_wire_names(builder: AlertBuilder) -> None:
    check = builder.build_alerts({"id": "p1", "heartRate": 35})
    payload = check.alerts[0].model_dump(by_alias=True, mode="json")

    assert payload["patientId"] == "p1"
    assert payload["vitalType"] == "heartRate"
    assert payload["isGlobal"] is True
    assert payload["severity"] == "critical"
