"""
analysis/orchestrator.py

Drives one analysis request end to end:

    validate -> load -> classify -> filter -> charts -> prompt -> generate
             -> decode -> (payload | deterministic fallback)

Generation failures are classified into the error taxonomy and never
retried. Only an undecodable reply degrades to the fallback analysis.
"""

from __future__ import annotations

import logging

from analysis.base import (
    AnalysisContent,
    AnalysisRequest,
    AnalysisResult,
    AnalysisType,
    FilterSpec,
    Insight,
    ParsedTable,
    Recommendation,
    ReportType,
)
from analysis.charts import build_charts
from analysis.classifier import classify_columns
from analysis.filters import apply_filters
from analysis.loader import load_table
from analysis.summary import (
    build_data_summary,
    build_fallback_analysis,
    compute_key_metrics,
    merge_key_metrics,
)
from app.errors import (
    AnalyticsError,
    GenerationConfigError,
    GenerationRateLimitedError,
    GenerationServiceError,
    GenerationTimeoutError,
    StorageError,
    internal_error,
    invalid_argument,
    not_found,
)
from db.repositories.errors import FileStorageError
from db.repositories.storage import BlobStorage
from llm_synthesis.adapter import (
    BaseLLMAdapter,
    LLMAdapterError,
    LLMAuthenticationError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from llm_synthesis.prompt_builder import AnalysisPromptBuilder
from llm_synthesis.schema import AnalysisPayload
from llm_synthesis.validator import MalformedResponse, decode_analysis_response

logger = logging.getLogger(__name__)


def validate_request_types(report_type: str, analysis_type: str) -> None:
    if not report_type or not analysis_type:
        raise invalid_argument(
            "MISSING_PARAMETERS",
            "Report type and analysis type are required.",
            "Provide both report_type and analysis_type.",
        )
    if report_type not in ReportType.ALL:
        raise invalid_argument(
            "INVALID_REPORT_TYPE",
            f"Report type '{report_type}' is not supported.",
            f"Use one of: {', '.join(sorted(ReportType.ALL))}.",
        )
    if analysis_type not in AnalysisType.ALL:
        raise invalid_argument(
            "INVALID_ANALYSIS_TYPE",
            f"Analysis type '{analysis_type}' is not supported.",
            f"Use one of: {', '.join(sorted(AnalysisType.ALL))}.",
        )


def _content_from_payload(
    payload: AnalysisPayload,
    headers: tuple[str, ...],
    rows: tuple[tuple[str, ...], ...],
) -> AnalysisContent:
    insights = tuple(
        Insight(
            category=item.category,
            title=item.title,
            description=item.description,
            impact=item.impact,
            metrics=item.metrics,
        )
        for item in payload.insights
    )
    recommendations = tuple(
        Recommendation(
            title=item.title,
            description=item.description,
            priority=item.priority,
            effort=item.effort,
            expected_impact=item.expected_impact,
        )
        for item in payload.recommendations
    )
    return AnalysisContent(
        insights=insights,
        recommendations=recommendations,
        summary=payload.summary,
        key_metrics=merge_key_metrics(compute_key_metrics(headers, rows), payload.key_metrics),
    )


class AnalysisOrchestrator:
    """
    Runs the analysis pipeline against injected storage and generation
    collaborators.
    """

    def __init__(
        self,
        *,
        storage: BlobStorage,
        adapter: BaseLLMAdapter,
        prompt_builder: AnalysisPromptBuilder | None = None,
    ) -> None:
        self._storage = storage
        self._adapter = adapter
        self._prompt_builder = prompt_builder or AnalysisPromptBuilder()

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Analyze a stored file located by its id prefix.
        """

        try:
            if not request.file_id:
                raise invalid_argument(
                    "MISSING_PARAMETERS",
                    "File ID, report type, and analysis type are required.",
                    "Provide all analysis parameters.",
                )
            validate_request_types(request.report_type, request.analysis_type)
            file_name, content = self._fetch_file(request.file_id)
            table = load_table(file_name, content)
            return self.analyze_table(
                table,
                report_type=request.report_type,
                analysis_type=request.analysis_type,
                filters=request.filters,
            )
        except AnalyticsError:
            raise
        except Exception as exc:
            logger.exception("Analysis failed unexpectedly file_id=%s", request.file_id)
            raise internal_error(
                "UNEXPECTED_ERROR",
                f"Analysis processing failed: {exc}",
                "Try again. If the problem persists, contact support.",
            ) from exc

    def analyze_table(
        self,
        table: ParsedTable,
        *,
        report_type: str,
        analysis_type: str,
        filters: FilterSpec | None = None,
    ) -> AnalysisResult:
        """
        Analyze an already parsed table.
        """

        validate_request_types(report_type, analysis_type)

        classification = classify_columns(table.headers, table.rows)
        filtered = apply_filters(table.headers, table.rows, filters, classification)
        data_summary = build_data_summary(table.headers, table.rows, filtered.rows, classification)
        charts = build_charts(table.headers, filtered.rows, report_type, classification)

        prompt = self._prompt_builder.build_prompt(
            report_type=report_type,
            analysis_type=analysis_type,
            headers=table.headers,
            rows=filtered.rows,
            filters=filters,
        )
        raw_response = self._generate(prompt)

        decoded = decode_analysis_response(raw_response)
        if isinstance(decoded, MalformedResponse):
            logger.warning(
                "Generation reply unusable, using fallback stage=%s reason=%s",
                decoded.stage,
                decoded.reason,
            )
            content = build_fallback_analysis(table.headers, filtered.rows, report_type)
        else:
            content = _content_from_payload(decoded.payload, table.headers, filtered.rows)

        logger.info(
            "Analysis completed report_type=%s analysis_type=%s rows=%s filtered_rows=%s "
            "charts=%s fallback=%s",
            report_type,
            analysis_type,
            table.row_count,
            len(filtered.rows),
            len(charts),
            content.used_fallback,
        )

        return AnalysisResult(
            insights=content.insights,
            recommendations=content.recommendations,
            summary=content.summary,
            key_metrics=content.key_metrics,
            charts=tuple(charts),
            headers=table.headers,
            rows=filtered.rows,
            data_summary=data_summary,
            applied_filters=filtered.applied_filters,
            used_fallback=content.used_fallback,
        )

    def _fetch_file(self, file_id: str) -> tuple[str, bytes]:
        try:
            match = next(iter(self._storage.list(file_id)), None)
        except FileStorageError as exc:
            raise StorageError("Unable to access file storage.", code="STORAGE_ACCESS_ERROR") from exc

        if match is None:
            raise not_found(
                "FILE_NOT_FOUND",
                f"No file found with ID: {file_id}",
                "Upload a new file or check that the file ID is correct.",
            )

        try:
            return match.name, self._storage.download(match.name)
        except FileStorageError as exc:
            raise StorageError("Unable to download the file from storage.", code="DOWNLOAD_ERROR") from exc

    def _generate(self, prompt: str) -> str:
        try:
            return self._adapter.generate(prompt)
        except LLMRateLimitError as exc:
            raise GenerationRateLimitedError() from exc
        except LLMTimeoutError as exc:
            raise GenerationTimeoutError(exc.timeout_seconds) from exc
        except LLMAuthenticationError as exc:
            raise GenerationConfigError() from exc
        except LLMAdapterError as exc:
            raise GenerationServiceError(str(exc)) from exc
