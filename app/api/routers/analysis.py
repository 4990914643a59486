"""
app/api/routers/analysis.py

Report analysis endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from analysis.base import AnalysisRequest
from analysis.orchestrator import AnalysisOrchestrator
from app.schemas.analysis import AnalyzeRequest, AnalyzeResponse, ErrorResponse
from app.services.analysis_service import get_analysis_orchestrator

router = APIRouter(tags=["analysis"])


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
def analyze_report(
    payload: AnalyzeRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_analysis_orchestrator),
) -> AnalyzeResponse:
    result = orchestrator.analyze(
        AnalysisRequest(
            file_id=payload.file_id.strip(),
            report_type=payload.report_type.strip(),
            analysis_type=payload.analysis_type.strip(),
            filters=payload.filters.to_filter_spec() if payload.filters is not None else None,
        )
    )
    return AnalyzeResponse.model_validate(result.to_dict())
