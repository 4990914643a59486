"""
analysis/filters.py

Fail-open row filters over a parsed table.

Filters compose by sequential AND. A row whose filter-relevant cell is empty
or unparseable is kept, so every filter only ever narrows the input.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from analysis.base import ColumnClassification, DateRange, FilterResult, FilterSpec
from analysis.classifier import classify_columns, parse_date, parse_numeric
from app.errors import NoRowsAfterFilterError

logger = logging.getLogger(__name__)

Row = tuple[str, ...]


def _format_bound(value: float) -> str:
    return f"{value:g}"


def _filter_by_date(rows: list[Row], index: int, date_range: DateRange) -> list[Row]:
    start, end = date_range.start, date_range.end

    kept: list[Row] = []
    for row in rows:
        parsed = parse_date(row[index])
        if parsed is None:
            kept.append(row)
            continue
        day = parsed.date()
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        kept.append(row)
    return kept


def _filter_by_category(rows: list[Row], index: int, selected: Sequence[str]) -> list[Row]:
    allowed = set(selected)
    return [row for row in rows if not row[index] or row[index] in allowed]


def _filter_by_value(rows: list[Row], index: int, spec: FilterSpec) -> list[Row]:
    kept: list[Row] = []
    for row in rows:
        number = parse_numeric(row[index])
        if number is None:
            kept.append(row)
            continue
        if spec.min_value is not None and number < spec.min_value:
            continue
        if spec.max_value is not None and number > spec.max_value:
            continue
        kept.append(row)
    return kept


def apply_filters(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    spec: FilterSpec | None,
    classification: ColumnClassification | None = None,
) -> FilterResult:
    """
    Apply date, category and value-range filters without mutating the input.

    Column choice comes from ``classification``; pass the classification of
    the unfiltered table so repeated filtering targets the same columns.

    Raises:
        NoRowsAfterFilterError: when no row survives the filters.
    """

    current: list[Row] = [tuple(row) for row in rows]
    if spec is None or spec.is_empty:
        if not current:
            raise NoRowsAfterFilterError()
        return FilterResult(rows=tuple(current))

    if classification is None:
        classification = classify_columns(headers, current)
    header_index = {header: index for index, header in enumerate(headers)}
    applied: list[str] = []

    date_range = spec.date_range
    if date_range is not None and (date_range.start is not None or date_range.end is not None):
        date_column = classification.primary_date
        if date_column is not None:
            current = _filter_by_date(current, header_index[date_column], date_range)
            start_label = date_range.start.isoformat() if date_range.start else "start"
            end_label = date_range.end.isoformat() if date_range.end else "end"
            applied.append(f"Date range: {start_label} to {end_label}")

    if spec.selected_metrics:
        applied.append(f"Selected metrics: {', '.join(spec.selected_metrics)}")

    if spec.selected_categories:
        category_column = classification.primary_categorical
        if category_column is not None:
            current = _filter_by_category(
                current, header_index[category_column], spec.selected_categories
            )
            applied.append(f"Categories: {', '.join(spec.selected_categories)}")

    if spec.min_value is not None or spec.max_value is not None:
        value_column = classification.primary_numeric
        if value_column is not None:
            current = _filter_by_value(current, header_index[value_column], spec)
            bounds: list[str] = []
            if spec.min_value is not None:
                bounds.append(f"min: {_format_bound(spec.min_value)}")
            if spec.max_value is not None:
                bounds.append(f"max: {_format_bound(spec.max_value)}")
            applied.append(f"Value range: {', '.join(bounds)}")

    logger.debug(
        "Filters applied input_rows=%s output_rows=%s filters=%s",
        len(rows),
        len(current),
        applied,
    )

    if not current:
        raise NoRowsAfterFilterError()
    return FilterResult(rows=tuple(current), applied_filters=tuple(applied))
