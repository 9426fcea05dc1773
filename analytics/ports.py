"""
Ports bundle passed to every engine operation.

Operations are module-level functions that receive an EnginePorts instead
of reaching for globals, which keeps the repository, cache and clock
injectable in tests.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict

from config import AnalyticsSettings

from .cache import AnalyticsCache
from .primitives import utcnow
from .repository import AnalyticsRepository

logger = logging.getLogger(__name__)


@dataclass
class EnginePorts:
    repository: AnalyticsRepository
    cache: AnalyticsCache
    settings: AnalyticsSettings = field(default_factory=AnalyticsSettings)
    clock: Callable[[], datetime] = utcnow

    def now(self) -> datetime:
        return self.clock()

    def fetch_all(self, **fetches: Callable[[], Any]) -> Dict[str, Any]:
        """
        Run independent fetches concurrently and join them.

        Every fetch must succeed: the first exception propagates to the
        caller. The configured fetch timeout bounds the whole join; a
        concurrent.futures.TimeoutError is raised once it has elapsed.

        Args:
            **fetches: Zero-argument callables keyed by result name

        Returns:
            Dictionary of results keyed like the input
        """
        workers = max(1, min(self.settings.max_fetch_workers, len(fetches)))
        executor = ThreadPoolExecutor(max_workers=workers)
        # One deadline covers the whole join, not each fetch in turn
        deadline = time.monotonic() + self.settings.fetch_timeout_seconds
        try:
            futures = {name: executor.submit(fetch) for name, fetch in fetches.items()}
            return {
                name: future.result(timeout=max(0.0, deadline - time.monotonic()))
                for name, future in futures.items()
            }
        finally:
            # Do not block on a stuck fetch once the join has failed
            executor.shutdown(wait=False, cancel_futures=True)
