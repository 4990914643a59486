"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import File, UploadFile

from app.config import get_upload_settings
from app.errors import invalid_argument

_READ_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class UploadedReport:
    file_name: str
    content_type: str
    content: bytes


def read_report_upload(file: UploadFile | None = File(default=None)) -> UploadedReport:
    """
    Read the multipart `file` part into memory.

    Reading stops one byte past the configured limit so an oversized body is
    never buffered in full; the upload service reports FILE_TOO_LARGE.
    """

    if file is None:
        raise invalid_argument(
            "MISSING_FIELDS",
            "No file was provided.",
            "Attach a CSV or Excel file in the 'file' form field.",
        )

    limit = get_upload_settings().max_file_size_bytes
    chunks: list[bytes] = []
    total = 0
    try:
        while total <= limit:
            chunk = file.file.read(_READ_CHUNK_BYTES)
            if not chunk:
                break
            chunks.append(chunk)
            total += len(chunk)
    finally:
        file.file.close()

    return UploadedReport(
        file_name=(file.filename or "").strip(),
        content_type=(file.content_type or "").strip().lower(),
        content=b"".join(chunks),
    )
