"""
End-to-end walkthrough of the vitals alerting pipeline.

This script exercises:
1. Configuration loading and validation
2. Threshold classification of sample readings
3. Alert creation and cooldown suppression
4. A monitoring cycle over several vitals sources
5. Acknowledgement of active alerts

Run with: uv run python system_demo.py
"""

import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.memory.store import InMemoryAlertSink, StaticVitalsSource
from vitalwatch.config import get_config, print_config_summary, validate_config
from vitalwatch.domain.models import VitalType
from vitalwatch.services.alert_orchestrator import AlertOrchestrator
from vitalwatch.services.classifier import classify, describe_vital
from vitalwatch.services.patient_monitor import PatientMonitoringService

console = Console()

SAMPLE_VALUES: list[tuple[VitalType, float]] = [
    (VitalType.HEART_RATE, 72),
    (VitalType.HEART_RATE, 103),
    (VitalType.HEART_RATE, 38),
    (VitalType.OXYGEN, 93),
    (VitalType.TEMPERATURE, 39.4),
    (VitalType.BLOOD_PRESSURE_SYSTOLIC, 145),
    (VitalType.BLOOD_PRESSURE_DIASTOLIC, 58),
]

WARD_A = [
    {"id": "p-100", "name": "Asha Rao", "doctorId": "dr-1", "heartRate": 78, "oxygen": 98},
    {"id": "p-101", "name": "Ben Ortiz", "doctorId": "dr-1", "heartRate": 128, "spo2": 89},
]
WARD_B = [
    {"uid": "p-200", "name": "Chen Li", "temperature": 38.2, "bloodPressure": "165/95"},
]


async def demo_configuration() -> bool:
    """Load and validate configuration."""

    console.print(Panel("🔧 Configuration", style="blue"))

    try:
        validate_config()
        print_config_summary()
        return True
    except Exception as e:
        console.print(f"❌ Configuration failed: {e}", style="red")
        return False


async def demo_classification() -> bool:
    """Classify a handful of readings against the default thresholds."""

    console.print(Panel("🩺 Classification", style="blue"))

    table = Table(title="Sample Readings")
    table.add_column("Vital", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Status", style="magenta")
    table.add_column("Description", style="white")

    for vital_type, value in SAMPLE_VALUES:
        result = classify(vital_type, value)
        table.add_row(
            vital_type.value,
            f"{value:g}",
            result.status.value,
            describe_vital(vital_type, value),
        )

    console.print(table)
    return True


async def demo_alerting() -> bool:
    """Create alerts for one patient and show cooldown suppression."""

    console.print(Panel("🚨 Alert Creation and Cooldown", style="blue"))

    orchestrator = AlertOrchestrator(InMemoryAlertSink())
    reading = {"id": "p-300", "name": "Dana Kim", "heartRate": 135, "bloodPressure": "120/80"}

    first = await orchestrator.evaluate_and_alert(reading)
    console.print(f"First evaluation: {first.message}", style="green")

    second = await orchestrator.evaluate_and_alert(reading)
    console.print(f"Repeat within cooldown: {second.message}", style="yellow")

    return first.alerts_created == 1 and second.alerts_created == 0


async def demo_monitoring_cycle() -> bool:
    """Run a monitoring cycle over two wards and acknowledge an alert."""

    console.print(Panel("📊 Monitoring Cycle", style="blue"))

    sink = InMemoryAlertSink()
    service = PatientMonitoringService(sink, config=get_config())
    service.add_source(StaticVitalsSource("ward-a", WARD_A))
    service.add_source(StaticVitalsSource("ward-b", WARD_B))

    report = await service.run_monitoring_cycle()
    console.print(
        f"✅ {report.patients_evaluated} patients evaluated, "
        f"{report.alerts_created} alerts created in {report.duration_seconds:.3f}s",
        style="green",
    )

    alerts_table = Table(title="Stored Alerts")
    alerts_table.add_column("Patient", style="cyan")
    alerts_table.add_column("Vital", style="magenta")
    alerts_table.add_column("Value", style="green")
    alerts_table.add_column("Severity", style="red")
    alerts_table.add_column("Routed To", style="yellow")

    for alert in sink.alerts:
        alerts_table.add_row(
            alert.patient_name,
            alert.vital_name,
            f"{alert.current_value:g}{alert.unit}",
            alert.severity.value,
            "all doctors" if alert.is_global else alert.doctor_id,
        )
    console.print(alerts_table)

    active = (await service.orchestrator.active_alerts("dr-1")).unwrap()
    if active:
        acknowledged = await service.orchestrator.acknowledge_alert(
            active[0].id, "dr-1", "Dr. Iyer"
        )
        console.print(
            f"Acknowledged {acknowledged.unwrap().vital_name} alert for "
            f"{acknowledged.unwrap().patient_name}",
            style="green",
        )

    remaining = (await service.orchestrator.active_alerts("dr-1")).unwrap()
    console.print(f"Active alerts for dr-1: {len(remaining)}")
    return report.failed_sources == 0


async def run_demo() -> None:
    """Run every demo step and summarize."""

    console.print(Panel("🏥 VitalWatch - System Demo", style="bold blue"))

    steps = [
        ("Configuration", demo_configuration),
        ("Classification", demo_classification),
        ("Alerting", demo_alerting),
        ("Monitoring Cycle", demo_monitoring_cycle),
    ]

    results = []

    for step_name, step_func in steps:
        console.print(f"\n{'=' * 60}")
        try:
            result = await step_func()
            results.append((step_name, result))
        except KeyboardInterrupt:
            console.print("\n⏹️  Demo interrupted by user", style="yellow")
            break
        except Exception as e:
            console.print(f"❌ {step_name} failed with exception: {e}", style="red")
            results.append((step_name, False))

    console.print(f"\n{'=' * 60}")
    summary_table = Table(title="Demo Summary")
    summary_table.add_column("Step", style="cyan")
    summary_table.add_column("Result", style="white")

    passed = 0
    for step_name, result in results:
        if result:
            summary_table.add_row(step_name, "✅ OK")
            passed += 1
        else:
            summary_table.add_row(step_name, "❌ FAILED")

    console.print(summary_table)
    console.print(f"\n🎯 Results: {passed}/{len(results)} steps succeeded")


if __name__ == "__main__":
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        console.print("\n👋 Demo stopped by user", style="yellow")
