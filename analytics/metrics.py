"""
Metrics Engine

Computes point-in-time organization metrics from independent raw-data
fetches. Fetch failures propagate: the anomaly detector relies on these
numbers as its baseline, so a silent default would corrupt detection.
"""

import logging
from typing import List, Optional

import pandas as pd

from .cache import build_cache_key, get_or_compute
from .models import DateRange, OrganizationMetrics, ResponseRecord
from .ports import EnginePorts
from .primitives import clamp_percentage, round1, round_half_up, safe_ratio
from .trends import compute_voice_quality_trend

logger = logging.getLogger(__name__)


def _responses_frame(responses: List[ResponseRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "respondent_id": response.respondent_id,
                "completion_time": response.completion_time_seconds,
                "has_voice": bool(response.has_voice),
            }
            for response in responses
        ],
        columns=["respondent_id", "completion_time", "has_voice"],
    )


def compute_organization_metrics(
    ports: EnginePorts, org_id: str, date_range: Optional[DateRange] = None
) -> OrganizationMetrics:
    """
    Compute organization metrics for an optional date range.

    Surveys are filtered by creation time and responses by submission time.
    The result is cached for the configured metrics TTL.

    Args:
        ports: Repository, cache, settings and clock
        org_id: Organization identifier
        date_range: Optional inclusive window

    Returns:
        OrganizationMetrics with percentages rounded to one decimal
    """
    date_range = date_range or DateRange()
    cache_key = build_cache_key("org_metrics", org_id, *date_range.cache_parts())

    def compute() -> OrganizationMetrics:
        repository = ports.repository
        try:
            fetched = ports.fetch_all(
                surveys=lambda: repository.list_surveys(org_id, date_range),
                responses=lambda: repository.list_responses(org_id, date_range),
                members=lambda: repository.list_members(org_id),
                voice_quality=lambda: compute_voice_quality_trend(ports, org_id, date_range),
            )
        except Exception as e:
            logger.error(f"Error fetching organization metrics for {org_id}: {e}")
            raise

        total_surveys = len(fetched["surveys"])
        total_users = len(fetched["members"])
        df = _responses_frame(fetched["responses"])
        total_responses = len(df)

        completion_rate = safe_ratio(total_responses, total_surveys * total_users) * 100

        completion_times = df["completion_time"].dropna()
        average_completion_time = (
            float(completion_times.mean()) if not completion_times.empty else 0.0
        )

        unique_respondents = df["respondent_id"].dropna().nunique()
        participation_rate = safe_ratio(unique_respondents, total_users) * 100

        voice_responses = int(df["has_voice"].sum()) if total_responses else 0
        voice_response_rate = safe_ratio(voice_responses, total_responses) * 100

        metrics = OrganizationMetrics(
            total_surveys=total_surveys,
            total_responses=total_responses,
            total_users=total_users,
            completion_rate=round1(clamp_percentage(completion_rate)),
            average_completion_time=round_half_up(average_completion_time),
            participation_rate=round1(clamp_percentage(participation_rate)),
            voice_response_rate=round1(clamp_percentage(voice_response_rate)),
            average_voice_quality=fetched["voice_quality"].average_quality,
        )

        logger.info(
            f"Computed metrics for {org_id}: {total_surveys} surveys, "
            f"{total_responses} responses, {total_users} users"
        )
        return metrics

    return get_or_compute(ports.cache, cache_key, ports.settings.metrics_ttl_seconds, compute)
