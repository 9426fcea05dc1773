"""
Unit tests for the JTBD force trend and voice quality trend
"""

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from analytics.models import (
    ForceAnalysisRecord,
    ForceScores,
    TrendPeriod,
    VoiceQualityRecord,
)
from analytics.repository import DataFetchError
from analytics.trends import (
    aggregate_forces_by_period,
    aggregate_voice_quality_by_day,
    compute_force_trend,
    compute_voice_quality_trend,
)


def at(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def analysis(moment, pain=0.0, pull=0.0, anchors=0.0, anxiety=0.0, readiness=None):
    return ForceAnalysisRecord(
        analyzed_at=moment,
        force_scores=ForceScores(
            pain_of_old=pain, pull_of_new=pull, anchors_to_old=anchors, anxiety_of_new=anxiety
        ),
        readiness_score=readiness,
    )


def voice(moment, overall=7.0, clarity=7.0, completeness=7.0, audibility=7.0, confidence=None):
    return VoiceQualityRecord(
        overall_score=overall,
        clarity=clarity,
        completeness=completeness,
        audibility=audibility,
        analyzed_at=moment,
        transcription_confidence=confidence,
    )


class TestAggregateForces:
    """Test force bucketing"""

    def test_weekly_buckets_skip_empty_weeks(self):
        """Test only weeks with analyses produce points, ascending"""
        records = [
            analysis(at(2024, 1, 15), pain=4.0),
            analysis(at(2024, 1, 1), pain=2.0),
            analysis(at(2024, 1, 2), pain=4.0),
        ]

        points = aggregate_forces_by_period(records, TrendPeriod.WEEKLY)

        assert [p.date for p in points] == ["2023-12-31", "2024-01-14"]
        assert points[0].push_forces == 3.0
        assert points[1].push_forces == 4.0

    def test_force_combinations(self):
        """Test the push/pull combinations and per-bucket averages"""
        records = [
            analysis(at(2024, 1, 3), pain=2.0, pull=3.0, anchors=1.0, anxiety=4.0, readiness=6.0),
            analysis(at(2024, 1, 3, 18), pain=4.0, pull=1.0, anchors=2.0, anxiety=2.0, readiness=7.0),
        ]

        [point] = aggregate_forces_by_period(records, TrendPeriod.DAILY)

        assert point.date == "2024-01-03"
        assert point.push_forces == 5.0
        assert point.pull_forces == 4.5
        assert point.habit_forces == 1.5
        assert point.anxiety_forces == 3.0
        assert point.net_readiness == 6.5

    def test_missing_readiness_is_excluded(self):
        """Test readiness averages only over analyses that have one"""
        records = [
            analysis(at(2024, 1, 3), readiness=None),
            analysis(at(2024, 1, 3), readiness=8.0),
            analysis(at(2024, 1, 4), readiness=None),
        ]

        points = aggregate_forces_by_period(records, TrendPeriod.DAILY)

        assert points[0].net_readiness == 8.0
        assert points[1].net_readiness == 0.0

    def test_monthly_buckets(self):
        records = [analysis(at(2024, 1, 31)), analysis(at(2024, 2, 1)), analysis(at(2024, 2, 29))]

        points = aggregate_forces_by_period(records, TrendPeriod.MONTHLY)

        assert [p.date for p in points] == ["2024-01", "2024-02"]

    def test_no_records(self):
        assert aggregate_forces_by_period([], TrendPeriod.WEEKLY) == []


class TestForceTrend:
    """Test compute_force_trend"""

    def test_returns_series_with_period(self, ports, repository):
        repository.force_analyses = [analysis(at(2024, 1, 1), pain=1.0), analysis(at(2024, 1, 15))]

        series = compute_force_trend(ports, "org-1", TrendPeriod.WEEKLY)

        assert series.period == TrendPeriod.WEEKLY
        assert len(series.data) == 2
        assert series.to_dict()["period"] == "weekly"

    def test_period_is_part_of_cache_key(self, ports, repository):
        """Test daily and weekly trends are cached separately"""
        repository.force_analyses = [analysis(at(2024, 1, 1))]

        compute_force_trend(ports, "org-1", TrendPeriod.WEEKLY)
        compute_force_trend(ports, "org-1", TrendPeriod.WEEKLY)
        compute_force_trend(ports, "org-1", TrendPeriod.DAILY)

        assert repository.calls["list_force_analyses"] == 2

    def test_cached_series_is_immutable(self, ports, repository):
        """Test the cached points cannot be replaced or reordered by a caller"""
        repository.force_analyses = [analysis(at(2024, 1, 1)), analysis(at(2024, 1, 15))]

        series = compute_force_trend(ports, "org-1")

        assert isinstance(series.data, tuple)
        with pytest.raises(FrozenInstanceError):
            series.data = ()
        assert len(compute_force_trend(ports, "org-1").data) == 2

    def test_failure_propagates(self, ports, repository):
        repository.fail("list_force_analyses")

        with pytest.raises(DataFetchError):
            compute_force_trend(ports, "org-1")


class TestVoiceQualityTrend:
    """Test compute_voice_quality_trend"""

    def test_transcription_confidence_is_scaled(self):
        """Test confidence is scaled to 0-10 and missing values are skipped"""
        records = [
            voice(at(2024, 1, 3), confidence=0.85),
            voice(at(2024, 1, 3), confidence=None),
            voice(at(2024, 1, 4), confidence=None),
        ]

        points = aggregate_voice_quality_by_day(records)

        assert points[0].transcription_accuracy == 8.5
        assert points[1].transcription_accuracy == 0.0

    def test_average_quality_and_daily_points(self, ports, repository):
        repository.voice_quality = [
            voice(at(2024, 1, 3), overall=7.0, clarity=6.0),
            voice(at(2024, 1, 3), overall=8.0, clarity=8.0),
            voice(at(2024, 1, 5), overall=9.0, clarity=9.0),
        ]

        trends = compute_voice_quality_trend(ports, "org-1")

        assert trends.average_quality == 8.0
        assert [p.date for p in trends.trends] == ["2024-01-03", "2024-01-05"]
        assert trends.trends[0].clarity_score == 7.0

    def test_failure_returns_empty_result(self, ports, repository):
        """Test fetch errors degrade to an empty trend"""
        repository.fail("list_voice_quality", RuntimeError("timeout"))

        trends = compute_voice_quality_trend(ports, "org-1")

        assert trends.average_quality == 0.0
        assert trends.trends == ()

    def test_failure_is_not_cached(self, ports, repository):
        """Test the fallback result is not stored"""
        repository.fail("list_voice_quality")
        compute_voice_quality_trend(ports, "org-1")

        repository.failures.clear()
        repository.voice_quality = [voice(at(2024, 1, 3), overall=6.0)]
        trends = compute_voice_quality_trend(ports, "org-1")

        assert trends.average_quality == 6.0

    def test_result_is_cached(self, ports, repository):
        repository.voice_quality = [voice(at(2024, 1, 3))]

        compute_voice_quality_trend(ports, "org-1")
        compute_voice_quality_trend(ports, "org-1")

        assert repository.calls["list_voice_quality"] == 1
