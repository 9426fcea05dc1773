"""
Typed records and value objects for the analytics engine.

Raw records are produced by a repository at the fetch boundary and are
read-only inputs. Value objects are the engine's outputs: immutable data with a
to_dict() that is safe to serialize as JSON.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class TrendPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Sensitivity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SystemHealth(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


class ValueObject:
    """Mixin giving dataclass outputs a JSON-safe dictionary form."""

    def to_dict(self) -> Dict[str, Any]:
        return _to_jsonable(asdict(self))


# ---------------------------------------------------------------------------
# Raw records (inputs)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRange:
    """Inclusive time window; either bound may be open."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def cache_parts(self) -> List[str]:
        return [
            self.start.isoformat() if self.start else "None",
            self.end.isoformat() if self.end else "None",
        ]


@dataclass(frozen=True)
class SurveyRecord:
    id: str
    created_at: datetime
    status: str


@dataclass(frozen=True)
class ResponseRecord:
    id: str
    session_id: Optional[str]
    respondent_id: Optional[str]
    completion_time_seconds: Optional[float]
    submitted_at: datetime
    has_voice: bool


@dataclass(frozen=True)
class MemberRecord:
    id: str


@dataclass(frozen=True)
class ForceScores:
    pain_of_old: float = 0.0
    pull_of_new: float = 0.0
    anchors_to_old: float = 0.0
    anxiety_of_new: float = 0.0


@dataclass(frozen=True)
class ForceAnalysisRecord:
    analyzed_at: datetime
    force_scores: ForceScores
    readiness_score: Optional[float] = None


@dataclass(frozen=True)
class VoiceQualityRecord:
    overall_score: float
    clarity: float
    completeness: float
    audibility: float
    analyzed_at: datetime
    transcription_confidence: Optional[float] = None


@dataclass(frozen=True)
class SessionResponseRecord:
    respondent_id: Optional[str]
    completion_time_seconds: Optional[float]
    submitted_at: datetime
    has_voice: bool
    session_started_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Value objects (outputs)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrganizationMetrics(ValueObject):
    """Point-in-time organization metrics; rates are percentages."""

    total_surveys: int
    total_responses: int
    total_users: int
    completion_rate: float
    average_completion_time: int
    participation_rate: float
    voice_response_rate: float
    average_voice_quality: float


@dataclass(frozen=True)
class ForceTrendPoint(ValueObject):
    date: str
    push_forces: float
    pull_forces: float
    habit_forces: float
    anxiety_forces: float
    net_readiness: float


@dataclass(frozen=True)
class TrendSeries(ValueObject):
    period: TrendPeriod
    data: Tuple[ForceTrendPoint, ...] = ()


@dataclass(frozen=True)
class VoiceQualityPoint(ValueObject):
    date: str
    clarity_score: float
    completeness_score: float
    audibility_score: float
    transcription_accuracy: float


@dataclass(frozen=True)
class VoiceQualityTrends(ValueObject):
    average_quality: float = 0.0
    trends: Tuple[VoiceQualityPoint, ...] = ()


@dataclass(frozen=True)
class EngagementRecord(ValueObject):
    user_id: str
    engagement_score: float
    response_frequency: float
    average_session_duration: float
    voice_usage_rate: float
    quality_contribution_score: float
    last_active_date: datetime
    total_contributions: int


@dataclass(frozen=True)
class Anomaly(ValueObject):
    metric: str
    value: float
    expected_value: float
    deviation: float
    severity: Severity
    description: str
    detected_at: datetime


@dataclass(frozen=True)
class AnomalyReport(ValueObject):
    anomalies: Tuple[Anomaly, ...] = ()
    confidence: float = 0.0


@dataclass(frozen=True)
class RealTimeSnapshot(ValueObject):
    active_users: int
    ongoing_surveys: int
    recent_responses: int
    system_health: SystemHealth
