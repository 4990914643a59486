"""Structured prompt builder for marketing-analysis generation."""

import json
from typing import List, Optional, Sequence

from analysis.base import FilterSpec

SAMPLE_ROW_LIMIT = 5

_EXAMPLE_OUTPUT = json.dumps(
    {
        "insights": [
            {
                "category": "Performance|Traffic|Conversion|Revenue|Engagement",
                "title": "Brief insight title",
                "description": "Detailed explanation of what the data shows",
                "impact": "high|medium|low",
                "metrics": {"metric_name": 0},
            }
        ],
        "recommendations": [
            {
                "title": "Actionable recommendation title",
                "description": "Specific steps to take based on the data",
                "priority": "high|medium|low",
                "effort": "low|medium|high",
                "expectedImpact": "Expected outcome description",
            }
        ],
        "summary": "Executive summary of key findings and overall performance",
        "keyMetrics": {"metric_name": 0},
    },
    indent=2,
)

_FOCUS_POINTS = (
    "Actionable insights based on actual data patterns",
    "Specific, implementable recommendations",
    "Quantifiable metrics where possible",
    "Clear explanations of what the data means for business decisions",
)


class AnalysisPromptBuilder:
    """Builds a deterministic prompt for one analysis request.

    The prompt carries the headers, a small row sample, the filtered row
    count and a one-line description of any active filters.
    """

    def build_prompt(
        self,
        report_type: str,
        analysis_type: str,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        filters: Optional[FilterSpec] = None,
    ) -> str:
        """Build the full analysis prompt.

        Args:
            report_type: ga4, ads or general.
            analysis_type: insights, recommendations or summary.
            headers: Table headers.
            rows: Filtered table rows; only the first few are embedded.
            filters: The filters applied to ``rows``, if any.

        Returns:
            A fully formatted prompt string ready for LLM consumption.
        """
        preview = self._format_sample(headers, rows[:SAMPLE_ROW_LIMIT])
        filter_context = self.describe_filters(filters)

        focus = list(_FOCUS_POINTS)
        if filter_context:
            focus.append("Consider the applied filters when providing insights")
        focus_lines = "\n".join(f"{index}. {point}" for index, point in enumerate(focus, start=1))

        filter_line = f"\n\nApplied filters: {filter_context}" if filter_context else ""

        return (
            f"Analyze this {report_type} report data and provide {analysis_type}.\n\n"
            f"Headers: {', '.join(headers)}\n\n"
            f"Sample data (first {SAMPLE_ROW_LIMIT} rows):\n{preview}\n\n"
            f"Total rows in filtered dataset: {len(rows)}{filter_line}\n\n"
            f"Please provide a JSON response with the following structure:\n"
            f"{_EXAMPLE_OUTPUT}\n\n"
            f"Focus on:\n{focus_lines}\n\n"
            f"Ensure all numeric values in metrics are actual numbers, not strings."
        )

    @staticmethod
    def describe_filters(filters: Optional[FilterSpec]) -> str:
        """Render active filters as one comma-separated line, or ''."""
        if filters is None:
            return ""

        parts: List[str] = []
        date_range = filters.date_range
        if date_range is not None and (date_range.start or date_range.end):
            start = date_range.start.isoformat() if date_range.start else "start"
            end = date_range.end.isoformat() if date_range.end else "end"
            parts.append(f"Date range: {start} to {end}")
        if filters.selected_metrics:
            parts.append(f"Focus metrics: {', '.join(filters.selected_metrics)}")
        if filters.selected_categories:
            parts.append(f"Selected categories: {', '.join(filters.selected_categories)}")
        if filters.min_value is not None or filters.max_value is not None:
            low = f"{filters.min_value:g}" if filters.min_value is not None else "min"
            high = f"{filters.max_value:g}" if filters.max_value is not None else "max"
            parts.append(f"Value range: {low} to {high}")
        return ", ".join(parts)

    @staticmethod
    def _format_sample(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
        return "\n".join(
            ", ".join(f"{header}: {row[index] or 'N/A'}" for index, header in enumerate(headers))
            for row in rows
        )
