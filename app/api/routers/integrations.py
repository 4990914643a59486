"""
app/api/routers/integrations.py

Platform integration endpoints: fetch a report from an ad or analytics
platform into storage, and list the supported platforms.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.schemas.analysis import ErrorResponse
from app.schemas.integrations import (
    IntegrationFetchBody,
    IntegrationFetchResponse,
    PlatformListResponse,
)
from app.services.integration_service import (
    IntegrationFetchRequest,
    IntegrationService,
    get_integration_service,
)

router = APIRouter(prefix="/integrations", tags=["integrations"])


@router.post(
    "/fetch-data",
    response_model=IntegrationFetchResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def fetch_integration_data(
    payload: IntegrationFetchBody,
    integration_service: IntegrationService = Depends(get_integration_service),
) -> IntegrationFetchResponse:
    result = integration_service.fetch_data(
        IntegrationFetchRequest(
            platform=payload.platform.strip(),
            account_id=payload.account_id.strip(),
            access_token=payload.access_token.strip(),
            refresh_token=payload.refresh_token,
            start_date=payload.start_date,
            end_date=payload.end_date,
            metrics=tuple(payload.metrics),
            dimensions=tuple(payload.dimensions),
        )
    )
    return IntegrationFetchResponse(
        file_id=result.file_id,
        file_name=result.file_name,
        total_rows=result.total_rows,
        headers=result.headers,
        uploaded_at=result.uploaded_at,
    )


@router.get("/platforms", response_model=PlatformListResponse)
def list_platforms(
    integration_service: IntegrationService = Depends(get_integration_service),
) -> PlatformListResponse:
    return PlatformListResponse.model_validate({"platforms": integration_service.get_platform_configs()})
