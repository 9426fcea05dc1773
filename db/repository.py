"""
SQL implementation of the analytics data contract.

Each fetch opens its own session so fetches can run on separate threads.
Rows are converted to typed records here; transient connection errors are
retried, anything else surfaces as DataFetchError.
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from analytics.models import (
    DateRange,
    ForceAnalysisRecord,
    ForceScores,
    MemberRecord,
    ResponseRecord,
    SessionResponseRecord,
    SurveyRecord,
    VoiceQualityRecord,
)
from analytics.primitives import as_utc
from analytics.repository import AnalyticsRepository, DataFetchError

from . import SessionLocal
from .models import (
    OrganizationMember,
    ResponseAnalysisJTBD,
    Survey,
    SurveyResponse,
    SurveySession,
    VoiceQualityMetric,
    VoiceRecording,
)

logger = logging.getLogger(__name__)


def _optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def _float(value: Any, default: float = 0.0) -> float:
    return float(value) if value is not None else default


def _apply_range(query, column, date_range: Optional[DateRange]):
    if date_range is None:
        return query
    if date_range.start is not None:
        query = query.where(column >= date_range.start)
    if date_range.end is not None:
        query = query.where(column <= date_range.end)
    return query


class SqlAnalyticsRepository(AnalyticsRepository):
    """Reads analytics inputs from the survey platform database."""

    def __init__(self, session_factory=None):
        """
        Initialize the repository.

        Args:
            session_factory: Optional custom session factory, defaults to SessionLocal
        """
        self.session_factory = session_factory or SessionLocal

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    def _execute(self, query) -> list:
        with self.session_factory() as session:
            return session.execute(query).fetchall()

    def _fetch(self, name: str, org_id: str, query) -> list:
        try:
            rows = self._execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching {name} for {org_id}: {e}")
            raise DataFetchError(f"Failed to fetch {name} for organization {org_id}") from e

        logger.debug(f"Fetched {len(rows)} {name} rows for {org_id}")
        return rows

    def list_surveys(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[SurveyRecord]:
        query = select(Survey.id, Survey.created_at, Survey.status).where(
            Survey.organization_id == org_id
        )
        query = _apply_range(query, Survey.created_at, date_range)

        return [
            SurveyRecord(id=row.id, created_at=as_utc(row.created_at), status=row.status)
            for row in self._fetch("surveys", org_id, query)
        ]

    def list_responses(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[ResponseRecord]:
        query = (
            select(
                SurveyResponse.id,
                SurveyResponse.session_id,
                SurveyResponse.respondent_id,
                SurveyResponse.completion_time,
                SurveyResponse.submitted_at,
                SurveyResponse.has_voice_recording,
            )
            .join(Survey, Survey.id == SurveyResponse.survey_id)
            .where(Survey.organization_id == org_id)
        )
        query = _apply_range(query, SurveyResponse.submitted_at, date_range)

        return [
            ResponseRecord(
                id=row.id,
                session_id=row.session_id,
                respondent_id=row.respondent_id,
                completion_time_seconds=row.completion_time,
                submitted_at=as_utc(row.submitted_at),
                has_voice=bool(row.has_voice_recording),
            )
            for row in self._fetch("responses", org_id, query)
        ]

    def list_members(self, org_id: str) -> List[MemberRecord]:
        query = select(OrganizationMember.user_id).where(
            OrganizationMember.organization_id == org_id
        )
        return [MemberRecord(id=row.user_id) for row in self._fetch("members", org_id, query)]

    def list_force_analyses(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[ForceAnalysisRecord]:
        query = (
            select(
                ResponseAnalysisJTBD.analyzed_at,
                ResponseAnalysisJTBD.force_scores,
                ResponseAnalysisJTBD.readiness_score,
            )
            .join(Survey, Survey.id == ResponseAnalysisJTBD.survey_id)
            .where(Survey.organization_id == org_id)
            .order_by(ResponseAnalysisJTBD.analyzed_at)
        )
        query = _apply_range(query, ResponseAnalysisJTBD.analyzed_at, date_range)

        records = []
        for row in self._fetch("force analyses", org_id, query):
            scores = row.force_scores or {}
            records.append(
                ForceAnalysisRecord(
                    analyzed_at=as_utc(row.analyzed_at),
                    force_scores=ForceScores(
                        pain_of_old=_float(scores.get("pain_of_old")),
                        pull_of_new=_float(scores.get("pull_of_new")),
                        anchors_to_old=_float(scores.get("anchors_to_old")),
                        anxiety_of_new=_float(scores.get("anxiety_of_new")),
                    ),
                    readiness_score=row.readiness_score,
                )
            )
        return records

    def list_voice_quality(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[VoiceQualityRecord]:
        query = (
            select(
                VoiceQualityMetric.overall_quality_score,
                VoiceQualityMetric.clarity_score,
                VoiceQualityMetric.completeness_score,
                VoiceQualityMetric.audibility_score,
                VoiceQualityMetric.analyzed_at,
                VoiceRecording.transcription_confidence,
            )
            .join(VoiceRecording, VoiceRecording.id == VoiceQualityMetric.recording_id)
            .join(Survey, Survey.id == VoiceRecording.survey_id)
            .where(Survey.organization_id == org_id)
            .order_by(VoiceQualityMetric.analyzed_at)
        )
        query = _apply_range(query, VoiceQualityMetric.analyzed_at, date_range)

        return [
            VoiceQualityRecord(
                overall_score=_float(row.overall_quality_score),
                clarity=_float(row.clarity_score),
                completeness=_float(row.completeness_score),
                audibility=_float(row.audibility_score),
                analyzed_at=as_utc(row.analyzed_at),
                transcription_confidence=row.transcription_confidence,
            )
            for row in self._fetch("voice quality", org_id, query)
        ]

    def list_sessions_for_responses(
        self, org_id: str, date_range: Optional[DateRange] = None
    ) -> List[SessionResponseRecord]:
        query = (
            select(
                SurveyResponse.respondent_id,
                SurveyResponse.completion_time,
                SurveyResponse.submitted_at,
                SurveyResponse.has_voice_recording,
                SurveySession.started_at,
            )
            .join(Survey, Survey.id == SurveyResponse.survey_id)
            .outerjoin(SurveySession, SurveySession.id == SurveyResponse.session_id)
            .where(Survey.organization_id == org_id)
        )
        query = _apply_range(query, SurveyResponse.submitted_at, date_range)

        return [
            SessionResponseRecord(
                respondent_id=row.respondent_id,
                completion_time_seconds=row.completion_time,
                submitted_at=as_utc(row.submitted_at),
                has_voice=bool(row.has_voice_recording),
                session_started_at=_optional_utc(row.started_at),
            )
            for row in self._fetch("session responses", org_id, query)
        ]
