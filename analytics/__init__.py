"""
Analytics module for survey metrics aggregation and anomaly detection.

This module turns raw survey responses, sessions, JTBD force analyses and
voice quality rows into organization metrics, period trends, per-user
engagement scores, real-time health snapshots and anomaly reports.
Use analytics.engine.AnalyticsEngine as the entry point.
"""

__version__ = "1.0.0"
