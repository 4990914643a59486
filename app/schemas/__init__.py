"""
app/schemas package marker.
"""

from app.schemas.analysis import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    FilterSpecModel,
    UploadResponse,
)
from app.schemas.integrations import (
    IntegrationFetchBody,
    IntegrationFetchResponse,
    PlatformListResponse,
)
from app.schemas.scheduled_jobs import (
    HistoricalAnalysisListResponse,
    JobExecutionListResponse,
    JobTriggerResponse,
    ScheduledJobCreate,
    ScheduledJobListResponse,
    ScheduledJobResponse,
    ScheduledJobUpdate,
    TrendComparisonRequest,
    TrendComparisonResponse,
)
from app.schemas.unified_dashboard import (
    AddSourceRequest,
    AddSourceResponse,
    DashboardRequest,
    DashboardResponse,
    ListSourcesRequest,
    SourceListResponse,
)

__all__ = [
    "AnalyzeRequest",
    "AnalyzeResponse",
    "ErrorResponse",
    "FilterSpecModel",
    "UploadResponse",
    "IntegrationFetchBody",
    "IntegrationFetchResponse",
    "PlatformListResponse",
    "HistoricalAnalysisListResponse",
    "JobExecutionListResponse",
    "JobTriggerResponse",
    "ScheduledJobCreate",
    "ScheduledJobListResponse",
    "ScheduledJobResponse",
    "ScheduledJobUpdate",
    "TrendComparisonRequest",
    "TrendComparisonResponse",
    "AddSourceRequest",
    "AddSourceResponse",
    "DashboardRequest",
    "DashboardResponse",
    "ListSourcesRequest",
    "SourceListResponse",
]
