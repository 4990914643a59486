"""
app/api/routers/upload.py

Report file upload endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import UploadedReport, read_report_upload
from app.schemas.analysis import ErrorResponse, UploadResponse
from app.services.upload_service import UploadService, get_upload_service

router = APIRouter(tags=["upload"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def upload_report(
    report: UploadedReport = Depends(read_report_upload),
    upload_service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    """
    Validate and store one CSV or Excel report. The returned file_id is the
    handle used by /analyze and the unified dashboard.
    """

    result = upload_service.upload(
        file_name=report.file_name,
        content=report.content,
        content_type=report.content_type,
    )
    return UploadResponse(
        file_id=result.file_id,
        file_name=result.file_name,
        uploaded_at=result.uploaded_at,
        row_count=result.row_count,
        column_count=result.column_count,
    )
