"""
analysis/classifier.py

Heuristic column classification using header keywords and value sampling.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from analysis.base import ColumnClassification, ColumnRole

DATE_KEYWORDS: tuple[str, ...] = (
    "date", "time", "day", "month", "year", "created", "updated", "timestamp",
)

NUMERIC_KEYWORDS: tuple[str, ...] = (
    "count", "total", "sum", "amount", "value", "price", "cost", "revenue", "sales",
    "clicks", "impressions", "views", "sessions", "users", "conversion", "rate",
    "ctr", "cpc", "cpm", "roas", "roi", "bounce", "duration", "pages", "goal",
)

CATEGORICAL_KEYWORDS: tuple[str, ...] = (
    "category", "type", "source", "medium", "campaign", "channel", "device",
    "browser", "country", "region", "city", "gender", "age", "segment",
    "status", "group", "class", "tag", "label",
)

NUMERIC_SAMPLE_SIZE = 10
NUMERIC_SAMPLE_RATIO = 0.7
CATEGORICAL_SAMPLE_SIZE = 20
CATEGORICAL_DISTINCT_RATIO = 0.8

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y%m%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)

_NUMERIC_STRIP = str.maketrans("", "", "$,%")


def parse_numeric(value: str | None) -> float | None:
    """
    Parse a cell as a number after removing currency, thousands and percent marks.

    Returns None for empty, non-numeric or non-finite values.
    """

    if value is None:
        return None
    cleaned = value.translate(_NUMERIC_STRIP).strip()
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def finite_sum(values: Iterable[float]) -> float | None:
    """
    Sum values, returning None when the total overflows to infinity.
    """

    total = sum(values, 0.0)
    return total if math.isfinite(total) else None


def parse_date(value: str | None) -> datetime | None:
    """
    Parse a cell as a date or datetime. Timezone-aware values are converted to
    naive UTC so that all parsed values compare against each other.
    """

    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(candidate, fmt)
        except ValueError:
            continue

    normalized = candidate[:-1] + "+00:00" if candidate.endswith("Z") else candidate
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _has_keyword(header: str, keywords: Sequence[str]) -> bool:
    lowered = header.lower()
    return any(keyword in lowered for keyword in keywords)


def is_date_column(header: str) -> bool:
    return _has_keyword(header, DATE_KEYWORDS)


def is_numeric_column(header: str, values: Sequence[str]) -> bool:
    if _has_keyword(header, NUMERIC_KEYWORDS):
        return True
    sample = values[:NUMERIC_SAMPLE_SIZE]
    if not sample:
        return False
    numeric_count = sum(1 for value in sample if parse_numeric(value) is not None)
    return numeric_count >= len(sample) * NUMERIC_SAMPLE_RATIO


def is_categorical_column(header: str, values: Sequence[str]) -> bool:
    if _has_keyword(header, CATEGORICAL_KEYWORDS):
        return True
    sample = values[:CATEGORICAL_SAMPLE_SIZE]
    distinct = len(set(sample))
    return 1 < distinct < len(sample) * CATEGORICAL_DISTINCT_RATIO


def classify_columns(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
) -> ColumnClassification:
    """
    Assign one role per header, testing date, then numeric, then categorical.
    """

    roles: dict[str, str] = {}
    date_columns: list[str] = []
    numeric_columns: list[str] = []
    categorical_columns: list[str] = []

    for index, header in enumerate(headers):
        values = [row[index] for row in rows]
        if is_date_column(header):
            roles[header] = ColumnRole.DATE
            date_columns.append(header)
        elif is_numeric_column(header, values):
            roles[header] = ColumnRole.NUMERIC
            numeric_columns.append(header)
        elif is_categorical_column(header, values):
            roles[header] = ColumnRole.CATEGORICAL
            categorical_columns.append(header)
        else:
            roles[header] = ColumnRole.UNCLASSIFIED

    return ColumnClassification(
        roles=roles,
        date_columns=tuple(date_columns),
        numeric_columns=tuple(numeric_columns),
        categorical_columns=tuple(categorical_columns),
    )
