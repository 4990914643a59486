"""
unified/aggregator.py

Cross-source aggregation for the unified dashboard: date-range choice,
per-metric comparisons, time series and heuristic insights.

Every function is pure. The caller supplies "today"/"now".
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Sequence

from unified.base import (
    DashboardSummary,
    GroupBy,
    MetricComparison,
    MetricPoint,
    SourceInfo,
    SourceValue,
    TimeSeriesPoint,
    UnifiedInsight,
)

DEFAULT_LOOKBACK_DAYS = 30
PERFORMANCE_GAP_PERCENT = 50.0
STALE_SOURCE_DAYS = 7
UNKNOWN_PLATFORM = "unknown"


def determine_date_range(
    sources: Sequence[SourceInfo],
    requested_start: date | None = None,
    requested_end: date | None = None,
    today: date | None = None,
) -> tuple[date, date]:
    """
    Requested bounds win. Otherwise use the overlap of the sources' ranges
    (latest start, earliest end), or the last 30 days when no source has one.
    """

    if requested_start is not None and requested_end is not None:
        return requested_start, requested_end

    ranges = [
        (source.date_range_start, source.date_range_end)
        for source in sources
        if source.date_range_start is not None and source.date_range_end is not None
    ]
    if not ranges:
        end = today or datetime.now(timezone.utc).date()
        return end - timedelta(days=DEFAULT_LOOKBACK_DAYS), end

    latest_start = max(start for start, _ in ranges)
    earliest_end = min(end for _, end in ranges)
    return requested_start or latest_start, requested_end or earliest_end


def _source_lookup(sources: Iterable[SourceInfo]) -> dict[str, SourceInfo]:
    return {source.id: source for source in sources}


def generate_metric_comparisons(
    metrics: Sequence[MetricPoint],
    sources: Sequence[SourceInfo],
) -> list[MetricComparison]:
    """
    Sum each metric per source and rank metrics by total, descending.

    The best-performing source is the first one reaching the maximum in
    aggregation order.
    """

    lookup = _source_lookup(sources)
    grouped: dict[str, dict[str, float]] = {}
    for point in metrics:
        per_source = grouped.setdefault(point.metric_name, {})
        per_source[point.source_id] = per_source.get(point.source_id, 0.0) + point.metric_value

    comparisons: list[MetricComparison] = []
    for metric_name, per_source in grouped.items():
        values = []
        for source_id, value in per_source.items():
            source = lookup.get(source_id)
            values.append(
                SourceValue(
                    source_id=source_id,
                    source_name=source.name if source else "Unknown",
                    platform=(source.platform if source and source.platform else UNKNOWN_PLATFORM),
                    value=value,
                )
            )

        best = values[0]
        for candidate in values[1:]:
            if candidate.value > best.value:
                best = candidate

        total = sum(item.value for item in values)
        comparisons.append(
            MetricComparison(
                metric_name=metric_name,
                sources=tuple(values),
                total_value=total,
                average_value=total / len(values),
                best_performing=best,
            )
        )

    comparisons.sort(key=lambda item: item.total_value, reverse=True)
    return comparisons


def bucket_date(value: date, group_by: str) -> date:
    if group_by == GroupBy.WEEK:
        # weeks start on Sunday
        return value - timedelta(days=(value.weekday() + 1) % 7)
    if group_by == GroupBy.MONTH:
        return value.replace(day=1)
    return value


def generate_time_series(
    metrics: Sequence[MetricPoint],
    group_by: str = GroupBy.DAY,
) -> dict[str, list[TimeSeriesPoint]]:
    series: dict[str, dict[date, dict[str, float]]] = {}
    for point in metrics:
        bucket = bucket_date(point.date, group_by)
        per_source = series.setdefault(point.metric_name, {}).setdefault(bucket, {})
        per_source[point.source_id] = per_source.get(point.source_id, 0.0) + point.metric_value

    result: dict[str, list[TimeSeriesPoint]] = {}
    for metric_name, buckets in series.items():
        result[metric_name] = [
            TimeSeriesPoint(
                date=bucket.isoformat(),
                sources=dict(per_source),
                total=sum(per_source.values()),
            )
            for bucket, per_source in sorted(buckets.items())
        ]
    return result


def _performance_gap_insight(comparison: MetricComparison) -> UnifiedInsight | None:
    if len(comparison.sources) < 2:
        return None

    best = comparison.best_performing
    worst = comparison.sources[0]
    for candidate in comparison.sources[1:]:
        if candidate.value < worst.value:
            worst = candidate

    if best.value <= worst.value:
        return None
    if worst.value <= 0:
        gap_text = "a wide margin"
    else:
        gap = (best.value - worst.value) / worst.value * 100
        if gap <= PERFORMANCE_GAP_PERCENT:
            return None
        gap_text = f"{gap:.1f}%"

    return UnifiedInsight(
        title=f"Significant Performance Gap in {comparison.metric_name}",
        description=(
            f"{best.source_name} ({best.platform}) is outperforming "
            f"{worst.source_name} ({worst.platform}) by {gap_text}. Consider analyzing "
            "the strategies used in the top-performing source."
        ),
        type="comparison",
        impact="high",
        sources=(best.source_id, worst.source_id),
    )


def _is_stale(source: SourceInfo, now: datetime) -> bool:
    if source.last_analyzed is None:
        return True
    last = source.last_analyzed
    if last.tzinfo is None:
        last = last.replace(tzinfo=timezone.utc)
    return now - last > timedelta(days=STALE_SOURCE_DAYS)


def generate_unified_insights(
    sources: Sequence[SourceInfo],
    comparisons: Sequence[MetricComparison],
    now: datetime | None = None,
) -> list[UnifiedInsight]:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    insights: list[UnifiedInsight] = []

    if comparisons:
        gap = _performance_gap_insight(comparisons[0])
        if gap is not None:
            insights.append(gap)

    platforms = {source.platform or UNKNOWN_PLATFORM for source in sources}
    if len(platforms) == 1 and len(sources) > 1:
        platform = next(iter(platforms))
        insights.append(
            UnifiedInsight(
                title="Single Platform Dependency",
                description=(
                    f"All your data sources are from {platform}. Consider diversifying your "
                    "marketing channels to reduce dependency and discover new opportunities."
                ),
                type="opportunity",
                impact="medium",
                sources=tuple(source.id for source in sources),
            )
        )

    stale = [source for source in sources if _is_stale(source, now)]
    if stale:
        insights.append(
            UnifiedInsight(
                title="Outdated Data Sources",
                description=(
                    f"{len(stale)} data source(s) haven't been updated in over a week. "
                    "Regular updates ensure accurate insights and trend analysis."
                ),
                type="anomaly",
                impact="medium",
                sources=tuple(source.id for source in stale),
            )
        )

    return insights


def calculate_summary(
    sources: Sequence[SourceInfo],
    metrics: Sequence[MetricPoint],
    date_range: tuple[date, date],
) -> DashboardSummary:
    totals: dict[str, float] = {}
    for point in metrics:
        totals[point.source_id] = totals.get(point.source_id, 0.0) + point.metric_value

    lookup = _source_lookup(sources)
    top = {"source_id": "", "source_name": "", "platform": ""}
    best_value = 0.0
    for source_id, value in totals.items():
        source = lookup.get(source_id)
        if value > best_value and source is not None:
            best_value = value
            top = {
                "source_id": source.id,
                "source_name": source.name,
                "platform": source.platform or UNKNOWN_PLATFORM,
            }

    return DashboardSummary(
        total_sources=len(sources),
        date_range=(date_range[0].isoformat(), date_range[1].isoformat()),
        top_performing_source=top,
        total_metrics_tracked=len({point.metric_name for point in metrics}),
    )
