"""
app/services/upload_service.py

Validates uploaded report files and stores them in blob storage.

A file is accepted only if it parses into a table through the same checks
the analysis orchestrator re-runs when the file is analyzed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

from analysis.loader import SUPPORTED_EXTENSIONS, file_extension, load_table
from app.config import get_upload_settings
from app.errors import StorageError, invalid_argument
from db.repositories.errors import FileStorageError
from db.repositories.storage import BlobStorage, LocalBlobStorage

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "text/csv",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "application/octet-stream",
    }
)


@dataclass(frozen=True)
class UploadResult:
    file_id: str
    file_name: str
    uploaded_at: datetime
    row_count: int
    column_count: int


def build_storage_path(file_id: str, file_name: str) -> str:
    return f"{file_id}-{file_name}"


class UploadService:
    """
    Accepts CSV/XLS/XLSX uploads up to the configured size limit.
    """

    def __init__(self, *, storage: BlobStorage, max_file_size_bytes: int) -> None:
        self._storage = storage
        self._max_file_size_bytes = max_file_size_bytes

    def upload(
        self,
        *,
        file_name: str | None,
        content: bytes | None,
        content_type: str | None,
    ) -> UploadResult:
        if file_name is None or content is None or not content_type:
            raise invalid_argument(
                "MISSING_FIELDS",
                "File name, data, and type are required.",
                "Select a file to upload and try again.",
            )

        file_name = file_name.strip()
        if not file_name:
            raise invalid_argument(
                "INVALID_FILENAME",
                "File name cannot be empty.",
                "Rename the file and upload it again.",
            )
        if "/" in file_name or "\\" in file_name:
            raise invalid_argument(
                "INVALID_FILENAME",
                f"File name '{file_name}' must not contain path separators.",
                "Rename the file and upload it again.",
            )

        extension = file_extension(file_name)
        if extension not in SUPPORTED_EXTENSIONS:
            raise invalid_argument(
                "UNSUPPORTED_FORMAT",
                f"File extension '{extension or file_name}' is not supported.",
                "Upload a .csv, .xls or .xlsx file.",
            )

        normalized_type = content_type.split(";", 1)[0].strip().lower()
        if normalized_type not in ALLOWED_CONTENT_TYPES:
            raise invalid_argument(
                "UNSUPPORTED_MIME_TYPE",
                f"MIME type '{content_type}' is not supported.",
                "Upload a CSV or Excel file.",
            )

        if not content:
            raise invalid_argument(
                "EMPTY_FILE",
                "The uploaded file is empty.",
                "Upload a file that contains a header row and data rows.",
            )

        if len(content) > self._max_file_size_bytes:
            size_mb = len(content) / (1024 * 1024)
            limit_mb = self._max_file_size_bytes / (1024 * 1024)
            raise invalid_argument(
                "FILE_TOO_LARGE",
                f"File size ({size_mb:.2f}MB) exceeds the maximum limit of {limit_mb:g}MB.",
                "Split the report into smaller files or narrow its date range.",
            )

        table = load_table(file_name, content)

        file_id = uuid.uuid4().hex
        try:
            self._storage.upload(build_storage_path(file_id, file_name), content, normalized_type)
        except FileStorageError as exc:
            logger.error("Upload storage failed file_name=%s error=%s", file_name, exc)
            raise StorageError("Failed to save file to storage.") from exc

        logger.info(
            "Upload stored file_id=%s file_name=%s bytes=%s rows=%s",
            file_id,
            file_name,
            len(content),
            table.row_count,
        )
        return UploadResult(
            file_id=file_id,
            file_name=file_name,
            uploaded_at=datetime.now(timezone.utc),
            row_count=table.row_count,
            column_count=table.column_count,
        )


@lru_cache(maxsize=1)
def get_blob_storage() -> BlobStorage:
    return LocalBlobStorage(get_upload_settings().storage_root)


@lru_cache(maxsize=1)
def get_upload_service() -> UploadService:
    """
    Build and cache the upload service with env-driven settings.
    """
    settings = get_upload_settings()
    return UploadService(
        storage=get_blob_storage(),
        max_file_size_bytes=settings.max_file_size_bytes,
    )
