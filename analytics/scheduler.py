"""
Analytics Scheduler

Keeps the cache warm for configured organizations and sweeps them for
anomalies on a fixed schedule. Designed to run as a background service
next to the reporting API.
"""

import logging
import signal
import sys
import time
from typing import List, Optional

import schedule

from .engine import AnalyticsEngine


class AnalyticsScheduler:
    """Scheduler for cache warming and anomaly sweeps."""

    def __init__(self, engine: Optional[AnalyticsEngine] = None, organizations: Optional[List[str]] = None):
        self.engine = engine or AnalyticsEngine()
        settings = self.engine.ports.settings
        self.organizations = list(organizations or settings.warm_organizations)
        self.warm_interval_minutes = settings.warm_interval_minutes
        self.anomaly_sweep_minutes = settings.anomaly_sweep_minutes
        self.scheduler = schedule.Scheduler()
        self.running = False
        self.logger = logging.getLogger(__name__)

        # Setup signal handlers for graceful shutdown
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully."""
        self.logger.info(f"Received signal {signum}, shutting down...")
        self.running = False

    def warm_caches(self) -> int:
        """
        Warm the cache for every configured organization.

        Returns:
            Number of organizations warmed successfully
        """
        warmed = 0
        for org_id in self.organizations:
            try:
                self.engine.warm_cache(org_id)
                warmed += 1
            except Exception as e:
                self.logger.error(f"❌ Cache warming failed for {org_id}: {e}")

        self.logger.info(f"🔥 Warmed cache for {warmed}/{len(self.organizations)} organizations")
        return warmed

    def sweep_anomalies(self) -> int:
        """
        Run anomaly detection for every configured organization.

        Returns:
            Total number of anomalies found
        """
        total = 0
        for org_id in self.organizations:
            report = self.engine.anomalies(org_id)
            for anomaly in report.anomalies:
                self.logger.warning(
                    f"🚨 {org_id}: {anomaly.description} "
                    f"(severity={anomaly.severity.value}, confidence={report.confidence:.2f})"
                )
            total += len(report.anomalies)

        self.logger.info(f"🔍 Anomaly sweep completed: {total} anomalies")
        return total

    def schedule_jobs(self):
        self.scheduler.every(self.warm_interval_minutes).minutes.do(self.warm_caches)
        self.scheduler.every(self.anomaly_sweep_minutes).minutes.do(self.sweep_anomalies)

    def start(self):
        """Start the scheduler service."""
        self.logger.info("🚀 Starting Analytics Scheduler...")

        if not self.organizations:
            self.logger.warning("⚠️ No organizations configured for warming")

        self.schedule_jobs()
        self.running = True
        self.logger.info("📅 Scheduled jobs:")
        for job in self.scheduler.jobs:
            self.logger.info(f"   {job}")

        # Warm immediately instead of waiting for the first interval
        self.warm_caches()

        try:
            while self.running:
                self.scheduler.run_pending()
                time.sleep(1)

        except KeyboardInterrupt:
            self.logger.info("⏹️  Scheduler stopped by user")
        finally:
            self.scheduler.clear()
            self.logger.info("👋 Analytics Scheduler stopped")

    def stop(self):
        """Stop the scheduler service."""
        self.running = False
        self.logger.info("🛑 Stopping scheduler...")


def main():
    """Main entry point for the scheduler service."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logger = logging.getLogger(__name__)

    try:
        logger.info("🌟 Analytics Scheduler starting...")
        scheduler = AnalyticsScheduler()
        scheduler.start()
    except Exception as e:
        logger.error(f"💥 Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
