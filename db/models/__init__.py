"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.historical_analysis import HistoricalAnalysis, TrendComparison
from db.models.metric_source import MetricSource, UnifiedMetric
from db.models.scheduled_job import JobExecution, JobExecutionStatus, Platform, ScheduledJob

__all__ = [
    "ScheduledJob",
    "JobExecution",
    "JobExecutionStatus",
    "Platform",
    "HistoricalAnalysis",
    "TrendComparison",
    "MetricSource",
    "UnifiedMetric",
]
