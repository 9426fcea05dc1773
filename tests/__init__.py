"""
Test Suite Module

This module contains all tests for the survey analytics engine,
including unit tests for the aggregations and SQL repository tests.
"""

__version__ = "1.0.0"
__author__ = "Readiness Analytics Team"
