"""
Real-Time Snapshot

Cheap live query combining three short-window counts into a health
classification. Results are never cached.
"""

import logging
from datetime import timedelta

from .models import DateRange, RealTimeSnapshot, SystemHealth
from .ports import EnginePorts

logger = logging.getLogger(__name__)

ACTIVE_USER_WINDOW = timedelta(minutes=15)
RECENT_RESPONSE_WINDOW = timedelta(hours=1)
ACTIVE_SURVEY_STATUS = "active"


def classify_health(active_users: int, ongoing_surveys: int, recent_responses: int) -> SystemHealth:
    """Critical when several surveys run without responses, warning when nobody is active."""
    if recent_responses == 0 and ongoing_surveys > 2:
        return SystemHealth.CRITICAL
    if active_users == 0 and ongoing_surveys > 0:
        return SystemHealth.WARNING
    return SystemHealth.HEALTHY


def get_real_time_snapshot(ports: EnginePorts, org_id: str) -> RealTimeSnapshot:
    """
    Build a live snapshot for the organization.

    Any fetch failure degrades to the worst-case snapshot so a dashboard
    widget keeps rendering.
    """
    now = ports.now()
    repository = ports.repository

    try:
        fetched = ports.fetch_all(
            active=lambda: repository.list_responses(
                org_id, DateRange(start=now - ACTIVE_USER_WINDOW)
            ),
            surveys=lambda: repository.list_surveys(org_id),
            recent=lambda: repository.list_responses(
                org_id, DateRange(start=now - RECENT_RESPONSE_WINDOW)
            ),
        )
    except Exception as e:
        logger.error(f"Error fetching real-time metrics for {org_id}: {e}")
        return RealTimeSnapshot(
            active_users=0,
            ongoing_surveys=0,
            recent_responses=0,
            system_health=SystemHealth.CRITICAL,
        )

    active_users = len({r.respondent_id for r in fetched["active"] if r.respondent_id})
    ongoing_surveys = sum(1 for s in fetched["surveys"] if s.status == ACTIVE_SURVEY_STATUS)
    recent_responses = len(fetched["recent"])

    return RealTimeSnapshot(
        active_users=active_users,
        ongoing_surveys=ongoing_surveys,
        recent_responses=recent_responses,
        system_health=classify_health(active_users, ongoing_surveys, recent_responses),
    )
