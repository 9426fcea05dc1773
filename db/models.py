"""
SQLAlchemy ORM Models for the survey platform tables read by the analytics engine

The schema is owned by the survey services; the analytics engine only
reads these tables.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from . import Base


class Survey(Base):
    """Survey owned by an organization"""

    __tablename__ = "surveys"

    id = Column(String(36), primary_key=True)
    organization_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="draft", index=True)  # 'draft', 'active', 'closed'
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    sessions = relationship("SurveySession", back_populates="survey")
    responses = relationship("SurveyResponse", back_populates="survey")


class OrganizationMember(Base):
    """Membership of a user profile in an organization"""

    __tablename__ = "organization_members"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="user")
    joined_at = Column(DateTime(timezone=True), server_default=func.now())


class SurveySession(Base):
    """A respondent's session on a survey"""

    __tablename__ = "survey_sessions"

    id = Column(String(36), primary_key=True)
    survey_id = Column(String(36), ForeignKey("surveys.id"), nullable=False, index=True)
    organization_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=True, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    survey = relationship("Survey", back_populates="sessions")
    responses = relationship("SurveyResponse", back_populates="session")


class SurveyResponse(Base):
    """Submitted survey response"""

    __tablename__ = "survey_responses"

    id = Column(String(36), primary_key=True)
    survey_id = Column(String(36), ForeignKey("surveys.id"), nullable=False, index=True)
    session_id = Column(String(36), ForeignKey("survey_sessions.id"), nullable=True, index=True)
    respondent_id = Column(String(36), nullable=True, index=True)
    completion_time = Column(Float, nullable=True)  # Seconds
    submitted_at = Column(DateTime(timezone=True), nullable=False, index=True)
    has_voice_recording = Column(Boolean, nullable=False, default=False)

    # Relationships
    survey = relationship("Survey", back_populates="responses")
    session = relationship("SurveySession", back_populates="responses")
    jtbd_analysis = relationship("ResponseAnalysisJTBD", back_populates="response", uselist=False)
    voice_recordings = relationship("VoiceRecording", back_populates="response")


class ResponseAnalysisJTBD(Base):
    """Per-response JTBD force analysis"""

    __tablename__ = "response_analysis_jtbd"

    id = Column(Integer, primary_key=True, index=True)
    response_id = Column(String(36), ForeignKey("survey_responses.id"), nullable=False, unique=True)
    survey_id = Column(String(36), ForeignKey("surveys.id"), nullable=False, index=True)
    force_scores = Column(JSON, nullable=False)  # pain_of_old, pull_of_new, anchors_to_old, anxiety_of_new
    readiness_score = Column(Float, nullable=True)
    analyzed_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    response = relationship("SurveyResponse", back_populates="jtbd_analysis")


class VoiceRecording(Base):
    """Voice answer attached to a response"""

    __tablename__ = "voice_recordings"

    id = Column(String(36), primary_key=True)
    response_id = Column(String(36), ForeignKey("survey_responses.id"), nullable=False, index=True)
    survey_id = Column(String(36), ForeignKey("surveys.id"), nullable=False, index=True)
    transcription_confidence = Column(Float, nullable=True)  # 0.0-1.0
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    response = relationship("SurveyResponse", back_populates="voice_recordings")
    quality_metrics = relationship("VoiceQualityMetric", back_populates="recording")


class VoiceQualityMetric(Base):
    """Quality scores for a voice recording, each on a 0-10 scale"""

    __tablename__ = "voice_quality_metrics"

    id = Column(Integer, primary_key=True, index=True)
    recording_id = Column(String(36), ForeignKey("voice_recordings.id"), nullable=False, index=True)
    overall_quality_score = Column(Float, nullable=False)
    clarity_score = Column(Float, nullable=False)
    completeness_score = Column(Float, nullable=False)
    audibility_score = Column(Float, nullable=False)
    analyzed_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    recording = relationship("VoiceRecording", back_populates="quality_metrics")
