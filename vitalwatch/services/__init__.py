"""
Core services for the application.

This package contains vital classification, alert building, duplicate
suppression, alert orchestration and the patient monitoring loop.
"""

from .alert_builder import VITAL_FIELDS, AlertBuilder, VitalField
from .alert_orchestrator import AlertOrchestrator, AlertOrchestratorConfig
from .alert_sink import AlertSink, Result, VitalsSource
from .classifier import classify, describe_vital, parse_blood_pressure
from .dedup import DedupGate

__all__ = [
    "AlertBuilder",
    "AlertOrchestrator",
    "AlertOrchestratorConfig",
    "AlertSink",
    "DedupGate",
    "Result",
    "VITAL_FIELDS",
    "VitalField",
    "VitalsSource",
    "classify",
    "describe_vital",
    "parse_blood_pressure",
]
