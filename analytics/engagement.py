"""
Engagement Scorer

Per-user composite scores built from response volume, frequency, voice
usage, session duration and completion time.
"""

import logging
from typing import List, Optional, Tuple

import pandas as pd

from .cache import build_cache_key, get_or_compute
from .models import DateRange, EngagementRecord, SessionResponseRecord
from .ports import EnginePorts
from .primitives import as_utc, clamp, response_frequency, round1, safe_ratio

logger = logging.getLogger(__name__)


def calculate_engagement_score(
    response_count: int,
    frequency: float,
    voice_usage_rate: float,
    average_session_minutes: float,
    average_completion_seconds: float,
) -> float:
    """
    Weighted engagement composite.

    Only the final sum is clamped at 0. The completion term rewards fast
    completion and turns negative past 300 seconds.
    """
    response_score = min(100.0, (response_count / 10) * 30)
    frequency_score = min(100.0, frequency * 20)
    voice_score = (voice_usage_rate / 100) * 20
    session_score = min(100.0, (average_session_minutes / 30) * 15)
    completion_score = min(100.0, (300 - average_completion_seconds) / 3) * 0.15

    return max(
        0.0, response_score + frequency_score + voice_score + session_score + completion_score
    )


def calculate_quality_contribution(
    response_count: int, voice_count: int, average_completion_seconds: float
) -> float:
    """Quality score favouring volume, voice answers and unhurried completion."""
    response_quality = min(100.0, (response_count / 5) * 40)
    voice_quality = safe_ratio(voice_count, response_count) * 40
    thoroughness_quality = clamp((average_completion_seconds - 60) / 10, 0.0, 20.0)
    return response_quality + voice_quality + thoroughness_quality


def _session_frame(rows: List[SessionResponseRecord]) -> pd.DataFrame:
    df = pd.DataFrame(
        [
            {
                "respondent_id": row.respondent_id,
                "completion_time": row.completion_time_seconds or 0,
                "submitted_at": as_utc(row.submitted_at),
                "has_voice": bool(row.has_voice),
                "session_minutes": (
                    (as_utc(row.submitted_at) - as_utc(row.session_started_at)).total_seconds()
                    / 60
                    if row.session_started_at
                    else None
                ),
            }
            for row in rows
            if row.respondent_id
        ],
        columns=["respondent_id", "completion_time", "submitted_at", "has_voice", "session_minutes"],
    )
    return df


def score_user_engagement(
    rows: List[SessionResponseRecord], date_range: Optional[DateRange] = None
) -> List[EngagementRecord]:
    """Group rows by respondent and score each user; highest score first."""
    df = _session_frame(rows)
    if df.empty:
        return []

    date_range = date_range or DateRange()
    records = []

    for user_id, user_rows in df.groupby("respondent_id", sort=False):
        total = len(user_rows)
        voice_count = int(user_rows["has_voice"].sum())

        earliest = date_range.start or user_rows["submitted_at"].min().to_pydatetime()
        latest = date_range.end or user_rows["submitted_at"].max().to_pydatetime()
        frequency = response_frequency(total, earliest, latest)

        session_minutes = user_rows["session_minutes"].dropna()
        average_session = float(session_minutes.mean()) if not session_minutes.empty else 0.0
        voice_usage_rate = safe_ratio(voice_count, total) * 100
        average_completion = safe_ratio(float(user_rows["completion_time"].sum()), total)

        engagement_score = calculate_engagement_score(
            response_count=total,
            frequency=frequency,
            voice_usage_rate=voice_usage_rate,
            average_session_minutes=average_session,
            average_completion_seconds=average_completion,
        )
        quality_score = calculate_quality_contribution(total, voice_count, average_completion)

        records.append(
            EngagementRecord(
                user_id=str(user_id),
                engagement_score=round1(engagement_score),
                response_frequency=round1(frequency),
                average_session_duration=round1(average_session),
                voice_usage_rate=round1(voice_usage_rate),
                quality_contribution_score=round1(quality_score),
                last_active_date=user_rows["submitted_at"].max().to_pydatetime(),
                total_contributions=total,
            )
        )

    records.sort(key=lambda record: record.engagement_score, reverse=True)
    return records


def compute_user_engagement(
    ports: EnginePorts, org_id: str, date_range: Optional[DateRange] = None
) -> List[EngagementRecord]:
    """
    Compute engagement records for every respondent of the organization.

    Args:
        ports: Repository, cache, settings and clock
        org_id: Organization identifier
        date_range: Optional inclusive window on submission time; also used
            as the span for response frequency when given

    Returns:
        A new list of EngagementRecords sorted descending by engagement score
    """
    date_range = date_range or DateRange()
    cache_key = build_cache_key("user_engagement", org_id, *date_range.cache_parts())

    def compute() -> Tuple[EngagementRecord, ...]:
        try:
            rows = ports.repository.list_sessions_for_responses(org_id, date_range)
        except Exception as e:
            logger.error(f"Error calculating user engagement metrics for {org_id}: {e}")
            raise

        if not rows:
            logger.warning(f"No responses found for engagement scoring of {org_id}")

        records = score_user_engagement(rows, date_range)
        logger.info(f"Scored engagement for {len(records)} users of {org_id}")
        return tuple(records)

    # The cached tuple is shared; callers get their own list
    return list(
        get_or_compute(ports.cache, cache_key, ports.settings.engagement_ttl_seconds, compute)
    )
