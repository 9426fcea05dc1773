"""
Shared fixtures for analytics tests.

FakeRepository serves in-memory records, applies date ranges like the SQL
repository does and counts calls per fetch so caching can be asserted.
"""

from collections import Counter
from datetime import datetime, timezone

import pytest

from analytics.cache import InMemoryCache
from analytics.models import DateRange
from analytics.ports import EnginePorts
from analytics.repository import AnalyticsRepository, DataFetchError
from config import AnalyticsSettings

NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _in_range(moment, date_range):
    return date_range is None or date_range.contains(moment)


class FakeRepository(AnalyticsRepository):
    def __init__(
        self,
        surveys=None,
        responses=None,
        members=None,
        force_analyses=None,
        voice_quality=None,
        session_responses=None,
    ):
        self.surveys = list(surveys or [])
        self.responses = list(responses or [])
        self.members = list(members or [])
        self.force_analyses = list(force_analyses or [])
        self.voice_quality = list(voice_quality or [])
        self.session_responses = list(session_responses or [])
        self.calls = Counter()
        self.failures = {}

    def fail(self, method, error=None):
        self.failures[method] = error or DataFetchError(f"{method} unavailable")

    def _record(self, method):
        self.calls[method] += 1
        if method in self.failures:
            raise self.failures[method]

    def list_surveys(self, org_id, date_range=None):
        self._record("list_surveys")
        return [s for s in self.surveys if _in_range(s.created_at, date_range)]

    def list_responses(self, org_id, date_range=None):
        self._record("list_responses")
        return [r for r in self.responses if _in_range(r.submitted_at, date_range)]

    def list_members(self, org_id):
        self._record("list_members")
        return list(self.members)

    def list_force_analyses(self, org_id, date_range=None):
        self._record("list_force_analyses")
        return sorted(
            (f for f in self.force_analyses if _in_range(f.analyzed_at, date_range)),
            key=lambda f: f.analyzed_at,
        )

    def list_voice_quality(self, org_id, date_range=None):
        self._record("list_voice_quality")
        return [v for v in self.voice_quality if _in_range(v.analyzed_at, date_range)]

    def list_sessions_for_responses(self, org_id, date_range=None):
        self._record("list_sessions_for_responses")
        return [s for s in self.session_responses if _in_range(s.submitted_at, date_range)]


class FakeMonotonic:
    """Controllable monotonic clock for cache expiry."""

    def __init__(self, start=1000.0):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, seconds):
        self.value += seconds


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def cache(monotonic):
    return InMemoryCache(clock=monotonic)


@pytest.fixture
def settings():
    return AnalyticsSettings(fetch_timeout_seconds=5.0)


@pytest.fixture
def ports(repository, cache, settings):
    return EnginePorts(repository=repository, cache=cache, settings=settings, clock=lambda: NOW)


@pytest.fixture
def full_range():
    return DateRange(start=datetime(2024, 1, 1, tzinfo=timezone.utc), end=NOW)
