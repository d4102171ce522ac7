"""
Tests for the threshold table and its domain model validation.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from vitalwatch.domain.models import ThresholdDefinition, VitalType
from vitalwatch.domain.thresholds import DEFAULT_THRESHOLDS, ThresholdTable, load_threshold_table


def test_default_table_covers_every_vital() -> None:
    assert set(DEFAULT_THRESHOLDS) == set(VitalType)
    assert len(DEFAULT_THRESHOLDS) == 5


def test_heart_rate_defaults() -> None:
    hr = DEFAULT_THRESHOLDS[VitalType.HEART_RATE]
    assert (hr.min_value, hr.max_value) == (60, 100)
    assert (hr.warning_min, hr.warning_max) == (55, 105)
    assert (hr.critical_min, hr.critical_max) == (40, 120)
    assert hr.unit == "bpm"


def test_lookup_by_raw_string() -> None:
    assert DEFAULT_THRESHOLDS.get("temperature") is DEFAULT_THRESHOLDS[VitalType.TEMPERATURE]
    assert DEFAULT_THRESHOLDS.get("respiratoryRate") is None


def test_definitions_are_immutable() -> None:
    hr = DEFAULT_THRESHOLDS[VitalType.HEART_RATE]
    with pytest.raises(ValidationError):
        hr.min_value = 10  # type: ignore[misc]


def test_bands_must_be_nested() -> None:
    with pytest.raises(ValidationError, match="critical_min <= warning_min"):
        ThresholdDefinition(
            vital_type=VitalType.HEART_RATE,
            label="Heart Rate",
            min_value=60,
            max_value=100,
            warning_min=65,
            warning_max=105,
            critical_min=40,
            critical_max=120,
            unit="bpm",
        )


def test_table_requires_every_vital() -> None:
    with pytest.raises(ValueError, match="Missing thresholds"):
        ThresholdTable([DEFAULT_THRESHOLDS[VitalType.HEART_RATE]])


def test_table_rejects_duplicates() -> None:
    definitions = [*DEFAULT_THRESHOLDS.values(), DEFAULT_THRESHOLDS[VitalType.OXYGEN]]
    with pytest.raises(ValueError, match="Duplicate thresholds"):
        ThresholdTable(definitions)


def test_load_defaults_without_path() -> None:
    assert load_threshold_table(None) is DEFAULT_THRESHOLDS


def test_load_table_from_json_file(tmp_path: Path) -> None:
    definitions = [
        definition.model_dump(by_alias=True, mode="json")
        for definition in DEFAULT_THRESHOLDS.values()
    ]
    definitions[0]["minValue"] = 50
    definitions[0]["warningMin"] = 45
    path = tmp_path / "thresholds.json"
    path.write_text(json.dumps(definitions), encoding="utf-8")

    table = load_threshold_table(path)

    assert table[VitalType.HEART_RATE].min_value == 50
    assert table[VitalType.OXYGEN] == DEFAULT_THRESHOLDS[VitalType.OXYGEN]


def test_invalid_json_file_fails_fast(tmp_path: Path) -> None:
    path = tmp_path / "thresholds.json"
    path.write_text(json.dumps([{"vitalType": "heartRate"}]), encoding="utf-8")

    with pytest.raises(ValidationError):
        load_threshold_table(path)
