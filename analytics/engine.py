"""
Analytics Engine facade

Bundles the repository, cache, settings and clock into EnginePorts and
exposes one method per engine operation. The methods delegate to the
module-level functions, which stay usable on their own with any ports.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from config import AnalyticsSettings, load_analytics_settings
from db.repository import SqlAnalyticsRepository

from .anomaly import DEFAULT_METRICS, detect_anomalies
from .cache import AnalyticsCache, get_default_cache
from .engagement import compute_user_engagement
from .metrics import compute_organization_metrics
from .models import (
    AnomalyReport,
    DateRange,
    EngagementRecord,
    OrganizationMetrics,
    RealTimeSnapshot,
    Sensitivity,
    TrendPeriod,
    TrendSeries,
    VoiceQualityTrends,
)
from .ports import EnginePorts
from .primitives import utcnow
from .realtime import get_real_time_snapshot
from .repository import AnalyticsRepository
from .trends import compute_force_trend, compute_voice_quality_trend

logger = logging.getLogger(__name__)

CACHED_AGGREGATIONS = ("org_metrics", "jtbd_trends", "voice_quality", "user_engagement")


class AnalyticsEngine:
    """Entry point used by reporting and dashboard services."""

    def __init__(
        self,
        repository: Optional[AnalyticsRepository] = None,
        cache: Optional[AnalyticsCache] = None,
        settings: Optional[AnalyticsSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the analytics engine.

        Args:
            repository: Optional data source, defaults to SqlAnalyticsRepository
            cache: Optional cache, defaults to the process-wide in-memory cache
            settings: Optional tunables, defaults to config/analytics.yml
            clock: Optional UTC clock, defaults to the system clock
        """
        settings = settings or load_analytics_settings()
        # An empty InMemoryCache is falsy, so compare against None explicitly
        self.ports = EnginePorts(
            repository=repository if repository is not None else SqlAnalyticsRepository(),
            cache=cache if cache is not None else get_default_cache(),
            settings=settings,
            clock=clock or utcnow,
        )

    @property
    def cache(self) -> AnalyticsCache:
        return self.ports.cache

    def organization_metrics(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> OrganizationMetrics:
        return compute_organization_metrics(self.ports, org_id, date_range)

    def force_trend(
        self,
        org_id: str,
        period: TrendPeriod = TrendPeriod.WEEKLY,
        date_range: Optional[DateRange] = None,
    ) -> TrendSeries:
        return compute_force_trend(self.ports, org_id, period, date_range)

    def voice_quality_trend(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> VoiceQualityTrends:
        return compute_voice_quality_trend(self.ports, org_id, date_range)

    def user_engagement(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[EngagementRecord]:
        return compute_user_engagement(self.ports, org_id, date_range)

    def anomalies(
        self,
        org_id: str,
        metrics: Iterable[str] = DEFAULT_METRICS,
        sensitivity: Sensitivity = Sensitivity.MEDIUM,
    ) -> AnomalyReport:
        return detect_anomalies(self.ports, org_id, metrics, sensitivity)

    def real_time_snapshot(self, org_id: str) -> RealTimeSnapshot:
        return get_real_time_snapshot(self.ports, org_id)

    def invalidate_organization(self, org_id: str) -> int:
        """Drop every cached aggregation of the organization, e.g. after new responses land."""
        return sum(
            self.cache.invalidate_prefix(f"{name}:{org_id}:") for name in CACHED_AGGREGATIONS
        )

    def warm_cache(self, org_id: str) -> None:
        """Populate the cache with the organization's dashboard aggregations."""
        self.organization_metrics(org_id)
        self.force_trend(org_id, TrendPeriod.WEEKLY)
        self.voice_quality_trend(org_id)
        self.user_engagement(org_id)
        logger.info(f"Warmed analytics cache for {org_id}")
