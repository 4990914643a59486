"""
analysis/loader.py

Turns stored file bytes into a ParsedTable. CSV is decoded as UTF-8 and
tokenized by the CSV parser; spreadsheets are read with pandas and pass
through the same header and row checks.
"""

from __future__ import annotations

import io
import math
from datetime import date, datetime
from pathlib import PurePosixPath
from typing import Any

import pandas as pd

from analysis.base import ParsedTable
from analysis.csv_parser import build_table, parse_csv
from app.errors import (
    EmptyInputError,
    InvalidEncodingError,
    UnreadableSpreadsheetError,
    UnsupportedFormatError,
)

CSV_EXTENSIONS = frozenset({".csv"})
EXCEL_EXTENSIONS = frozenset({".xls", ".xlsx"})
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | EXCEL_EXTENSIONS

_EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


def file_extension(file_name: str) -> str:
    return PurePosixPath(file_name.strip().lower()).suffix


def decode_text(content: bytes) -> str:
    """
    Decode UTF-8 bytes, rejecting invalid sequences and replacement characters.
    """

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncodingError() from exc
    if "\ufffd" in text:
        raise InvalidEncodingError()
    return text


def _cell_to_text(value: Any) -> str:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (datetime, pd.Timestamp)):
        if value.hour == 0 and value.minute == 0 and value.second == 0:
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def read_spreadsheet(content: bytes, extension: str) -> ParsedTable:
    """
    Read the first sheet of an .xls/.xlsx workbook into a ParsedTable.
    """

    try:
        frame = pd.read_excel(
            io.BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=_EXCEL_ENGINES[extension],
        )
    except Exception as exc:  # engine-specific: BadZipFile, XLRDError, ValueError
        raise UnreadableSpreadsheetError(str(exc)) from exc

    lines = [[_cell_to_text(value) for value in record] for record in frame.itertuples(index=False)]
    lines = [line for line in lines if any(cell for cell in line)]
    if not lines:
        raise EmptyInputError()

    headers = lines[0]
    while headers and not headers[-1]:
        headers = headers[:-1]
    width = len(headers)
    rows = [line[:width] if not any(line[width:]) else line for line in lines[1:]]
    return build_table(headers, rows, first_line_number=2)


def load_table(file_name: str, content: bytes) -> ParsedTable:
    """
    Parse file bytes according to the file name's extension.
    """

    extension = file_extension(file_name)
    if extension in CSV_EXTENSIONS:
        return parse_csv(decode_text(content))
    if extension in EXCEL_EXTENSIONS:
        return read_spreadsheet(content, extension)
    raise UnsupportedFormatError(file_name)
