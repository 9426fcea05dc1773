"""
Anomaly Detector

Compares a recent window's organization metrics against a longer
historical baseline and flags relative deviations beyond a
sensitivity-dependent threshold. This is a deterministic comparison;
no model is trained or loaded.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from config import DEFAULT_SENSITIVITY_THRESHOLDS

from .metrics import compute_organization_metrics
from .models import (
    Anomaly,
    AnomalyReport,
    DateRange,
    OrganizationMetrics,
    Sensitivity,
    Severity,
)
from .ports import EnginePorts
from .primitives import clamp_unit, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_METRICS = ("completion_rate", "response_time", "voice_quality")

METRIC_FIELDS = {
    "completion_rate": "completion_rate",
    "response_time": "average_completion_time",
    "voice_quality": "average_voice_quality",
    "participation_rate": "participation_rate",
}

SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 0.9,
    Severity.HIGH: 0.7,
}
DEFAULT_SEVERITY_WEIGHT = 0.5


@dataclass(frozen=True)
class SensitivityThresholds:
    deviation_window: float
    change_threshold: float


def get_thresholds(
    sensitivity: Sensitivity, table: Optional[Dict[str, Dict[str, float]]] = None
) -> SensitivityThresholds:
    """Resolve a sensitivity level to its thresholds; higher sensitivity means a lower threshold."""
    sensitivity = Sensitivity(sensitivity)
    values = (table or DEFAULT_SENSITIVITY_THRESHOLDS)[sensitivity.value]
    return SensitivityThresholds(
        deviation_window=float(values["deviation_window"]),
        change_threshold=float(values["change_threshold"]),
    )


def metric_value(metrics: OrganizationMetrics, metric: str) -> float:
    """Numeric value for a metric name; unknown names resolve to 0."""
    field_name = METRIC_FIELDS.get(metric)
    if field_name is None:
        return 0.0
    return float(getattr(metrics, field_name))


def classify_severity(deviation: float) -> Severity:
    if deviation > 0.8:
        return Severity.CRITICAL
    if deviation > 0.5:
        return Severity.HIGH
    if deviation > 0.3:
        return Severity.MEDIUM
    return Severity.LOW


def describe_deviation(metric: str, recent: float, historical: float, deviation: float) -> str:
    direction = "increased" if recent > historical else "decreased"
    label = metric.replace("_", " ", 1)
    return f"{label} has {direction} by {round_half_up(deviation * 100)}% from baseline"


def compare_metrics(
    historical: OrganizationMetrics,
    recent: OrganizationMetrics,
    metrics: Iterable[str],
    thresholds: SensitivityThresholds,
    detected_at: datetime,
) -> List[Anomaly]:
    """
    Flag each requested metric whose recent value deviates from the baseline.

    Metrics with a zero baseline are skipped since a relative deviation
    cannot be computed against them.
    """
    anomalies = []
    for metric in metrics:
        historical_value = metric_value(historical, metric)
        recent_value = metric_value(recent, metric)

        if historical_value == 0:
            logger.debug(f"Skipping {metric}: no baseline")
            continue

        deviation = abs(recent_value - historical_value) / historical_value
        if deviation <= thresholds.change_threshold:
            continue

        anomalies.append(
            Anomaly(
                metric=metric,
                value=recent_value,
                expected_value=historical_value,
                deviation=deviation,
                severity=classify_severity(deviation),
                description=describe_deviation(metric, recent_value, historical_value, deviation),
                detected_at=detected_at,
            )
        )
    return anomalies


def report_confidence(anomalies: List[Anomaly]) -> float:
    if not anomalies:
        return 0.0
    weights = [SEVERITY_WEIGHTS.get(a.severity, DEFAULT_SEVERITY_WEIGHT) for a in anomalies]
    return clamp_unit(sum(weights) / len(weights))


def detect_anomalies(
    ports: EnginePorts,
    org_id: str,
    metrics: Iterable[str] = DEFAULT_METRICS,
    sensitivity: Sensitivity = Sensitivity.MEDIUM,
) -> AnomalyReport:
    """
    Detect anomalies in organization metrics.

    The baseline covers the configured number of trailing days and the
    recent sample the configured number of trailing hours, both ending now.
    A failed metrics fetch yields an empty report with confidence 0.

    Args:
        ports: Repository, cache, settings and clock
        org_id: Organization identifier
        metrics: Metric names to check
        sensitivity: low, medium or high

    Returns:
        AnomalyReport with the detected anomalies and an aggregate confidence
    """
    thresholds = get_thresholds(sensitivity, ports.settings.sensitivity_thresholds)
    metrics = list(metrics)
    end = ports.now()
    historical_range = DateRange(start=end - timedelta(days=ports.settings.baseline_days), end=end)
    recent_range = DateRange(start=end - timedelta(hours=ports.settings.recent_hours), end=end)

    try:
        fetched = ports.fetch_all(
            historical=lambda: compute_organization_metrics(ports, org_id, historical_range),
            recent=lambda: compute_organization_metrics(ports, org_id, recent_range),
        )
    except Exception as e:
        logger.error(f"Error detecting anomalies for {org_id}: {e}")
        return AnomalyReport(anomalies=(), confidence=0.0)

    anomalies = compare_metrics(
        fetched["historical"], fetched["recent"], metrics, thresholds, detected_at=end
    )
    report = AnomalyReport(anomalies=tuple(anomalies), confidence=report_confidence(anomalies))

    if anomalies:
        logger.warning(f"Detected {len(anomalies)} anomalies for {org_id}")
    else:
        logger.info(f"No anomalies detected for {org_id} across {len(metrics)} metrics")
    return report
