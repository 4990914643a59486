"""
app/api/routers package marker.
"""

from app.api.routers.analysis import router as analysis_router
from app.api.routers.integrations import router as integrations_router
from app.api.routers.scheduled_jobs import router as scheduled_jobs_router
from app.api.routers.unified_dashboard import router as unified_dashboard_router
from app.api.routers.upload import router as upload_router

__all__ = [
    "analysis_router",
    "integrations_router",
    "scheduled_jobs_router",
    "unified_dashboard_router",
    "upload_router",
]
