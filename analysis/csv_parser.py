"""
analysis/csv_parser.py

Tokenizes raw CSV text into a validated ParsedTable.
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Sequence

from analysis.base import ParsedTable
from app.errors import (
    DuplicateHeaderError,
    EmptyHeaderCellError,
    EmptyInputError,
    InsufficientRowsError,
    MissingHeaderError,
    RowColumnMismatchError,
)

MIN_HEADER_COLUMNS = 2
MIN_DATA_ROWS = 2

_LINE_SPLIT_PATTERN = re.compile(r"\r?\n")
_BOM = "\ufeff"


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into trimmed fields.

    A double quote toggles quoting; a doubled quote inside a quoted field is
    a literal quote. Commas only terminate a field outside quotes.
    """

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if char == '"':
            if in_quotes and index + 1 < length and line[index + 1] == '"':
                current.append('"')
                index += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        index += 1

    fields.append("".join(current).strip())
    return fields


def validate_headers(headers: Sequence[str]) -> tuple[str, ...]:
    """
    Enforce header rules shared by CSV and spreadsheet inputs.
    """

    if len(headers) < MIN_HEADER_COLUMNS:
        raise MissingHeaderError()

    seen: set[str] = set()
    for index, header in enumerate(headers):
        if not header.strip():
            raise EmptyHeaderCellError(index)
        folded = header.strip().lower()
        if folded in seen:
            raise DuplicateHeaderError(header)
        seen.add(folded)
    return tuple(header.strip() for header in headers)


def build_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    *,
    first_line_number: int = 2,
) -> ParsedTable:
    """
    Validate headers and row widths, returning an immutable ParsedTable.

    ``first_line_number`` is the line number reported for ``rows[0]``.
    """

    validated_headers = validate_headers(headers)
    expected = len(validated_headers)

    validated_rows: list[tuple[str, ...]] = []
    for offset, row in enumerate(rows):
        if len(row) != expected:
            raise RowColumnMismatchError(
                line_number=first_line_number + offset,
                actual=len(row),
                expected=expected,
            )
        validated_rows.append(tuple(row))

    if len(validated_rows) < MIN_DATA_ROWS:
        raise InsufficientRowsError(len(validated_rows))

    return ParsedTable(headers=validated_headers, rows=tuple(validated_rows))


def parse_csv(text: str) -> ParsedTable:
    """
    Parse raw CSV text into a ParsedTable.

    Blank lines are dropped before parsing; line numbers in errors count the
    remaining lines starting from 1 for the header.
    """

    if text.startswith(_BOM):
        text = text[len(_BOM):]

    lines = [line for line in _LINE_SPLIT_PATTERN.split(text) if line.strip()]
    if not lines:
        raise EmptyInputError()

    headers = parse_csv_line(lines[0])
    if len(headers) < MIN_HEADER_COLUMNS:
        raise MissingHeaderError()

    rows = [parse_csv_line(line) for line in lines[1:]]
    return build_table(headers, rows, first_line_number=2)


def serialize_csv(headers: Sequence[str], rows: Sequence[Sequence[object]]) -> str:
    """
    Render a table as CSV with every cell quoted and embedded quotes doubled.
    """

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow("" if value is None else value for value in row)
    return buf.getvalue()
