"""
app/services package marker.
"""

from app.services.analysis_service import build_llm_adapter, get_analysis_orchestrator
from app.services.integration_service import (
    IntegrationFetchRequest,
    IntegrationFetchResult,
    IntegrationService,
    get_integration_service,
)
from app.services.job_runner import ScheduledJobRunner, get_job_runner
from app.services.schedule_service import ScheduleService, get_schedule_service
from app.services.unified_metrics_service import (
    IntegrationSourceData,
    UnifiedMetricsService,
    get_unified_metrics_service,
)
from app.services.upload_service import UploadResult, UploadService, get_upload_service

__all__ = [
    "build_llm_adapter",
    "get_analysis_orchestrator",
    "IntegrationFetchRequest",
    "IntegrationFetchResult",
    "IntegrationService",
    "get_integration_service",
    "ScheduledJobRunner",
    "get_job_runner",
    "ScheduleService",
    "get_schedule_service",
    "IntegrationSourceData",
    "UnifiedMetricsService",
    "get_unified_metrics_service",
    "UploadResult",
    "UploadService",
    "get_upload_service",
]
