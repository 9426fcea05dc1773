"""
Trend Aggregator

Groups analyzed records into period buckets and emits one averaged data
point per bucket. Buckets only exist for periods that received at least
one record; missing periods are never padded.
"""

import logging
from typing import List, Optional

import pandas as pd

from .cache import build_cache_key, get_or_compute
from .models import (
    DateRange,
    ForceAnalysisRecord,
    ForceTrendPoint,
    TrendPeriod,
    TrendSeries,
    VoiceQualityPoint,
    VoiceQualityRecord,
    VoiceQualityTrends,
)
from .ports import EnginePorts
from .primitives import calculate_average, period_key, round1

logger = logging.getLogger(__name__)

FORCE_COLUMNS = ["push_forces", "pull_forces", "habit_forces", "anxiety_forces", "net_readiness"]
VOICE_COLUMNS = [
    "clarity_score",
    "completeness_score",
    "audibility_score",
    "transcription_accuracy",
]


def _column_average(series: pd.Series) -> float:
    return calculate_average(series.dropna().tolist())


def aggregate_forces_by_period(
    records: List[ForceAnalysisRecord], period: TrendPeriod
) -> List[ForceTrendPoint]:
    """
    Bucket force analyses by period and average each force per bucket.

    The combinations below keep the historical column semantics:
    push_forces = pain_of_old + pull_of_new and
    pull_forces = anchors_to_old + anxiety_of_new.
    """
    if not records:
        return []

    period = TrendPeriod(period)
    df = pd.DataFrame(
        [
            {
                "period": period_key(record.analyzed_at, period),
                "push_forces": record.force_scores.pain_of_old + record.force_scores.pull_of_new,
                "pull_forces": record.force_scores.anchors_to_old
                + record.force_scores.anxiety_of_new,
                "habit_forces": record.force_scores.anchors_to_old,
                "anxiety_forces": record.force_scores.anxiety_of_new,
                "net_readiness": record.readiness_score,
            }
            for record in records
        ],
        columns=["period"] + FORCE_COLUMNS,
    )

    points = []
    for key, bucket in df.groupby("period", sort=True):
        points.append(
            ForceTrendPoint(
                date=str(key),
                **{column: _column_average(bucket[column]) for column in FORCE_COLUMNS},
            )
        )
    return points


def aggregate_voice_quality_by_day(records: List[VoiceQualityRecord]) -> List[VoiceQualityPoint]:
    """Bucket voice quality rows by day; transcription confidence is scaled to 0-10."""
    if not records:
        return []

    df = pd.DataFrame(
        [
            {
                "period": period_key(record.analyzed_at, TrendPeriod.DAILY),
                "clarity_score": record.clarity,
                "completeness_score": record.completeness,
                "audibility_score": record.audibility,
                "transcription_accuracy": record.transcription_confidence * 10
                if record.transcription_confidence
                else None,
            }
            for record in records
        ],
        columns=["period"] + VOICE_COLUMNS,
    )

    return [
        VoiceQualityPoint(
            date=str(key),
            **{column: _column_average(bucket[column]) for column in VOICE_COLUMNS},
        )
        for key, bucket in df.groupby("period", sort=True)
    ]


def compute_force_trend(
    ports: EnginePorts,
    org_id: str,
    period: TrendPeriod = TrendPeriod.WEEKLY,
    date_range: Optional[DateRange] = None,
) -> TrendSeries:
    """
    Compute the JTBD force trend for an organization.

    Args:
        ports: Repository, cache, settings and clock
        org_id: Organization identifier
        period: Bucket size (daily, weekly or monthly)
        date_range: Optional inclusive window on analysis time

    Returns:
        TrendSeries sorted ascending by period key
    """
    period = TrendPeriod(period)
    date_range = date_range or DateRange()
    cache_key = build_cache_key("jtbd_trends", org_id, period.value, *date_range.cache_parts())

    def compute() -> TrendSeries:
        try:
            records = ports.repository.list_force_analyses(org_id, date_range)
        except Exception as e:
            logger.error(f"Error fetching JTBD trends for {org_id}: {e}")
            raise

        series = TrendSeries(period=period, data=tuple(aggregate_forces_by_period(records, period)))
        logger.info(
            f"Computed {len(series.data)} {period.value} force buckets "
            f"from {len(records)} analyses for {org_id}"
        )
        return series

    return get_or_compute(ports.cache, cache_key, ports.settings.force_trend_ttl_seconds, compute)


def compute_voice_quality_trend(
    ports: EnginePorts, org_id: str, date_range: Optional[DateRange] = None
) -> VoiceQualityTrends:
    """
    Compute the daily voice quality trend for an organization.

    This is supplementary dashboard data: a failed fetch is logged and
    yields an empty result instead of raising.
    """
    date_range = date_range or DateRange()
    cache_key = build_cache_key("voice_quality", org_id, *date_range.cache_parts())

    cached = ports.cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        records = ports.repository.list_voice_quality(org_id, date_range)
    except Exception as e:
        logger.error(f"Error fetching voice quality metrics for {org_id}: {e}")
        return VoiceQualityTrends(average_quality=0.0, trends=())

    average_quality = (
        sum(record.overall_score for record in records) / len(records) if records else 0.0
    )
    result = VoiceQualityTrends(
        average_quality=round1(average_quality),
        trends=tuple(aggregate_voice_quality_by_day(records)),
    )
    ports.cache.set(cache_key, result, ports.settings.voice_quality_ttl_seconds)
    return result
