"""
Inbound data contract for the analytics engine.

Implementations fetch raw rows from the persistence layer and return typed
records. All conversion and validation happens here, at the boundary, so
the aggregation code only ever sees the dataclasses from analytics.models.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import (
    DateRange,
    ForceAnalysisRecord,
    MemberRecord,
    ResponseRecord,
    SessionResponseRecord,
    SurveyRecord,
    VoiceQualityRecord,
)


class DataFetchError(Exception):
    """Raised when the persistence collaborator cannot serve a fetch."""


class AnalyticsRepository(ABC):
    """Read-only port over the survey, response and analysis tables."""

    @abstractmethod
    def list_surveys(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[SurveyRecord]:
        """Surveys of the organization, filtered by creation time."""

    @abstractmethod
    def list_responses(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[ResponseRecord]:
        """Responses to the organization's surveys, filtered by submission time."""

    @abstractmethod
    def list_members(self, org_id: str) -> List[MemberRecord]:
        """Members of the organization."""

    @abstractmethod
    def list_force_analyses(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[ForceAnalysisRecord]:
        """JTBD force analyses ordered by analysis time."""

    @abstractmethod
    def list_voice_quality(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[VoiceQualityRecord]:
        """Voice quality rows with their recording's transcription confidence."""

    @abstractmethod
    def list_sessions_for_responses(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[SessionResponseRecord]:
        """Responses joined to the start time of their originating session."""
