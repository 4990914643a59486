"""
app/api/routers/unified_dashboard.py

Unified dashboard endpoints: metric source management and the
cross-source dashboard.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.schemas.analysis import ErrorResponse
from app.schemas.unified_dashboard import (
    AddSourceRequest,
    AddSourceResponse,
    DashboardRequest,
    DashboardResponse,
    ListSourcesRequest,
    SourceListResponse,
)
from app.services.unified_metrics_service import (
    IntegrationSourceData,
    UnifiedMetricsService,
    get_unified_metrics_service,
)
from db.session import get_db

router = APIRouter(prefix="/unified-dashboard", tags=["unified-dashboard"])


@router.post("", response_model=DashboardResponse, responses={400: {"model": ErrorResponse}})
def build_unified_dashboard(
    payload: DashboardRequest,
    db: Session = Depends(get_db),
    metrics_service: UnifiedMetricsService = Depends(get_unified_metrics_service),
) -> DashboardResponse:
    dashboard = metrics_service.build_dashboard(
        db,
        source_ids=payload.source_ids,
        start_date=payload.start_date,
        end_date=payload.end_date,
        metrics=payload.metrics,
        group_by=payload.group_by,
    )
    return DashboardResponse.model_validate(dashboard)


@router.post(
    "/sources",
    response_model=AddSourceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def add_metric_source(
    payload: AddSourceRequest,
    db: Session = Depends(get_db),
    metrics_service: UnifiedMetricsService = Depends(get_unified_metrics_service),
) -> AddSourceResponse:
    integration = None
    if payload.integration_data is not None:
        integration = IntegrationSourceData(
            account_id=payload.integration_data.account_id.strip(),
            access_token=payload.integration_data.access_token.strip(),
            start_date=payload.integration_data.start_date,
            end_date=payload.integration_data.end_date,
        )
    result = metrics_service.add_source(
        db,
        name=payload.name,
        type=payload.type,
        platform=payload.platform,
        file_id=payload.file_id,
        integration=integration,
    )
    return AddSourceResponse(
        source_id=result.source_id,
        status=result.status,
        message=result.message,
        row_count=result.row_count,
    )


@router.post("/sources/list", response_model=SourceListResponse)
def list_metric_sources(
    payload: ListSourcesRequest | None = None,
    db: Session = Depends(get_db),
    metrics_service: UnifiedMetricsService = Depends(get_unified_metrics_service),
) -> SourceListResponse:
    source_ids = payload.source_ids if payload is not None else None
    sources = metrics_service.list_sources(db, source_ids)
    return SourceListResponse.model_validate({"sources": [source.to_dict() for source in sources]})


@router.delete(
    "/sources/{source_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
def remove_metric_source(
    source_id: UUID,
    db: Session = Depends(get_db),
    metrics_service: UnifiedMetricsService = Depends(get_unified_metrics_service),
) -> Response:
    metrics_service.remove_source(db, source_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
