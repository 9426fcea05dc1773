"""
Unit tests for organization metrics
"""

from dataclasses import FrozenInstanceError
from datetime import timedelta

import pytest

from analytics.metrics import compute_organization_metrics
from analytics.models import (
    DateRange,
    MemberRecord,
    ResponseRecord,
    SurveyRecord,
    VoiceQualityRecord,
)
from analytics.repository import DataFetchError

from .conftest import NOW


def make_surveys(count, created_at=None):
    return [
        SurveyRecord(id=f"survey-{i}", created_at=created_at or NOW - timedelta(days=3), status="active")
        for i in range(count)
    ]


def make_members(count):
    return [MemberRecord(id=f"user-{i}") for i in range(count)]


def make_response(index, respondent_id=None, completion=None, voice=False, submitted_at=None):
    return ResponseRecord(
        id=f"response-{index}",
        session_id=None,
        respondent_id=respondent_id,
        completion_time_seconds=completion,
        submitted_at=submitted_at or NOW - timedelta(days=1),
        has_voice=voice,
    )


@pytest.fixture
def populated(repository):
    """Two surveys, ten members and seven responses, three of them with voice"""
    repository.surveys = make_surveys(2)
    repository.members = make_members(10)
    repository.responses = [
        make_response(0, "user-0", completion=100, voice=True),
        make_response(1, "user-1", completion=200, voice=True),
        make_response(2, "user-1", completion=None, voice=True),
        make_response(3, "user-2"),
        make_response(4, "user-3"),
        make_response(5, None),
        make_response(6, None),
    ]
    repository.voice_quality = [
        VoiceQualityRecord(
            overall_score=7.0, clarity=7.0, completeness=6.0, audibility=8.0,
            analyzed_at=NOW - timedelta(days=1), transcription_confidence=0.9,
        ),
        VoiceQualityRecord(
            overall_score=8.0, clarity=8.0, completeness=7.0, audibility=9.0,
            analyzed_at=NOW - timedelta(days=1), transcription_confidence=0.8,
        ),
    ]
    return repository


class TestOrganizationMetrics:
    """Test compute_organization_metrics"""

    def test_end_to_end_metrics(self, ports, populated):
        """Test every metric on a small organization"""
        metrics = compute_organization_metrics(ports, "org-1")

        assert metrics.total_surveys == 2
        assert metrics.total_users == 10
        assert metrics.total_responses == 7
        assert metrics.completion_rate == 35.0
        assert metrics.voice_response_rate == 42.9
        assert metrics.average_completion_time == 150
        assert metrics.participation_rate == 40.0
        assert metrics.average_voice_quality == 7.5

    def test_cached_result_is_reused(self, ports, populated):
        """Test a second call within the TTL does not hit the repository"""
        first = compute_organization_metrics(ports, "org-1")
        second = compute_organization_metrics(ports, "org-1")

        assert first == second
        assert populated.calls["list_surveys"] == 1
        assert populated.calls["list_responses"] == 1
        assert populated.calls["list_members"] == 1

    def test_cache_expires_after_ttl(self, ports, populated, monotonic):
        """Test that an expired entry is recomputed"""
        compute_organization_metrics(ports, "org-1")
        monotonic.advance(ports.settings.metrics_ttl_seconds)
        compute_organization_metrics(ports, "org-1")

        assert populated.calls["list_surveys"] == 2

    def test_date_range_has_its_own_cache_entry(self, ports, populated):
        """Test that different ranges are cached independently"""
        compute_organization_metrics(ports, "org-1")
        compute_organization_metrics(ports, "org-1", DateRange(start=NOW - timedelta(hours=1)))

        assert populated.calls["list_surveys"] == 2

    def test_completion_rate_is_clamped(self, ports, repository):
        """Test more responses than survey slots caps at 100%"""
        repository.surveys = make_surveys(1)
        repository.members = make_members(2)
        repository.responses = [make_response(i, f"user-{i % 2}") for i in range(30)]

        metrics = compute_organization_metrics(ports, "org-1")

        assert metrics.completion_rate == 100.0
        assert metrics.participation_rate == 100.0

    def test_completion_rate_rounding(self, ports, repository):
        """Test one decimal rounding of percentages"""
        repository.surveys = make_surveys(1)
        repository.members = make_members(3)
        repository.responses = [make_response(0, "user-0")]

        metrics = compute_organization_metrics(ports, "org-1")

        assert metrics.completion_rate == 33.3
        assert metrics.participation_rate == 33.3

    def test_exact_percentage_is_a_float(self, ports, repository):
        """Test 33 responses over 4 surveys x 25 members is stored as 33.0"""
        repository.surveys = make_surveys(4)
        repository.members = make_members(25)
        repository.responses = [make_response(i, f"user-{i % 25}") for i in range(33)]

        metrics = compute_organization_metrics(ports, "org-1")

        assert metrics.completion_rate == 33.0
        assert isinstance(metrics.completion_rate, float)

    def test_anonymous_responses_do_not_count_as_participants(self, ports, repository):
        """Test null respondents are excluded from the distinct participant count"""
        repository.surveys = make_surveys(1)
        repository.members = make_members(10)
        repository.responses = [make_response(0, "user-0"), make_response(1, None)]

        metrics = compute_organization_metrics(ports, "org-1")

        assert metrics.total_responses == 2
        assert metrics.participation_rate == 10.0

    def test_cached_result_cannot_be_modified(self, ports, populated):
        """Test a caller cannot change what the next cache hit returns"""
        first = compute_organization_metrics(ports, "org-1")

        with pytest.raises(FrozenInstanceError):
            first.total_surveys = 999

        second = compute_organization_metrics(ports, "org-1")
        assert second.total_surveys == 2
        assert populated.calls["list_surveys"] == 1

    def test_empty_organization(self, ports, repository):
        """Test zero denominators yield zero rates"""
        metrics = compute_organization_metrics(ports, "org-1")

        assert metrics.total_surveys == 0
        assert metrics.completion_rate == 0.0
        assert metrics.participation_rate == 0.0
        assert metrics.voice_response_rate == 0.0
        assert metrics.average_completion_time == 0
        assert metrics.average_voice_quality == 0.0

    def test_date_range_filters_inputs(self, ports, populated):
        """Test surveys and responses outside the range are excluded"""
        populated.responses.append(make_response(7, "user-9", submitted_at=NOW - timedelta(days=90)))
        window = DateRange(start=NOW - timedelta(days=30), end=NOW)

        metrics = compute_organization_metrics(ports, "org-1", window)

        assert metrics.total_responses == 7

    def test_fetch_failure_propagates(self, ports, populated):
        """Test that a failed fetch raises instead of returning defaults"""
        populated.fail("list_members")

        with pytest.raises(DataFetchError):
            compute_organization_metrics(ports, "org-1")

    def test_voice_failure_does_not_break_metrics(self, ports, populated):
        """Test voice quality degrades to 0 while other metrics are computed"""
        populated.fail("list_voice_quality")

        metrics = compute_organization_metrics(ports, "org-1")

        assert metrics.total_responses == 7
        assert metrics.average_voice_quality == 0.0

    def test_to_dict_is_json_safe(self, ports, populated):
        result = compute_organization_metrics(ports, "org-1").to_dict()

        assert result["completion_rate"] == 35.0
        assert set(result) == {
            "total_surveys",
            "total_responses",
            "total_users",
            "completion_rate",
            "average_completion_time",
            "participation_rate",
            "voice_response_rate",
            "average_voice_quality",
        }
