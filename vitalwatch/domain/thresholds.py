"""
Reference threshold table for patient vitals.

Values follow standard adult clinical guidelines. The table is built once at
startup and shared read-only by every evaluation.
"""

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

from pydantic import TypeAdapter

from vitalwatch.domain.models import ThresholdDefinition, VitalType

_DEFINITIONS_ADAPTER = TypeAdapter(list[ThresholdDefinition])


class ThresholdTable(Mapping[VitalType, ThresholdDefinition]):
    """Immutable mapping of vital type to its threshold definition."""

    def __init__(self, definitions: Iterable[ThresholdDefinition]) -> None:
        table: dict[VitalType, ThresholdDefinition] = {}
        for definition in definitions:
            if definition.vital_type in table:
                raise ValueError(f"Duplicate thresholds for {definition.vital_type.value}")
            table[definition.vital_type] = definition

        missing = [vital.value for vital in VitalType if vital not in table]
        if missing:
            raise ValueError(f"Missing thresholds for: {', '.join(missing)}")

        self._table = table

    def __getitem__(self, key: VitalType) -> ThresholdDefinition:
        return self._table[key]

    def __iter__(self) -> Iterator[VitalType]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def get(  # type: ignore[override]
        self, key: VitalType | str, default: ThresholdDefinition | None = None
    ) -> ThresholdDefinition | None:
        """Look up by enum member or raw string; unknown types give `default`."""
        try:
            return self._table[VitalType(key)]
        except ValueError:
            return default

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ThresholdTable":
        """Load a full replacement table from a JSON list of definitions."""
        raw = Path(path).read_bytes()
        return cls(_DEFINITIONS_ADAPTER.validate_json(raw))


DEFAULT_THRESHOLDS = ThresholdTable(
    [
        ThresholdDefinition(
            vital_type=VitalType.HEART_RATE,
            label="Heart Rate",
            min_value=60,
            max_value=100,
            warning_min=55,
            warning_max=105,
            critical_min=40,
            critical_max=120,
            unit="bpm",
            description="Normal resting heart rate for adults",
        ),
        ThresholdDefinition(
            vital_type=VitalType.OXYGEN,
            label="Oxygen Saturation",
            min_value=95,
            max_value=100,
            warning_min=92,
            warning_max=100,
            critical_min=88,
            critical_max=100,
            unit="%",
            description="Blood oxygen saturation level",
        ),
        ThresholdDefinition(
            vital_type=VitalType.TEMPERATURE,
            label="Body Temperature",
            min_value=36.1,
            max_value=37.2,
            warning_min=35.5,
            warning_max=37.8,
            critical_min=35.0,
            critical_max=39.0,
            unit="°C",
            description="Normal body temperature range",
        ),
        ThresholdDefinition(
            vital_type=VitalType.BLOOD_PRESSURE_SYSTOLIC,
            label="Systolic BP",
            min_value=90,
            max_value=120,
            warning_min=85,
            warning_max=130,
            critical_min=70,
            critical_max=140,
            unit="mmHg",
            description="Systolic blood pressure (top number)",
        ),
        ThresholdDefinition(
            vital_type=VitalType.BLOOD_PRESSURE_DIASTOLIC,
            label="Diastolic BP",
            min_value=60,
            max_value=80,
            warning_min=55,
            warning_max=85,
            critical_min=40,
            critical_max=90,
            unit="mmHg",
            description="Diastolic blood pressure (bottom number)",
        ),
    ]
)


def load_threshold_table(path: str | Path | None = None) -> ThresholdTable:
    """Return the configured table, falling back to the built-in defaults."""
    if path is None:
        return DEFAULT_THRESHOLDS
    return ThresholdTable.from_json_file(path)
