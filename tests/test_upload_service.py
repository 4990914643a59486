"""
tests/test_upload_service.py

Upload validation and spreadsheet loading against in-memory storage.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from datetime import datetime, timezone

import pandas as pd
import pytest

from analysis.loader import load_table
from app.errors import AnalyticsError
from app.services.upload_service import UploadService, build_storage_path
from db.repositories.errors import FileStorageError
from db.repositories.storage import StoredObject

CSV_BYTES = b"date,clicks\n2024-01-01,10\n2024-01-02,20\n"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


class InMemoryStorage:
    def __init__(self, *, fail_uploads: bool = False) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str | None] = {}
        self.fail_uploads = fail_uploads

    def upload(self, path: str, content: bytes, content_type: str | None = None) -> None:
        if self.fail_uploads:
            raise FileStorageError("disk full")
        self.objects[path] = content
        self.content_types[path] = content_type

    def download(self, path: str) -> bytes:
        return self.objects[path]

    def list(self, prefix: str = "") -> Iterator[StoredObject]:
        for name, content in self.objects.items():
            if name.startswith(prefix):
                yield StoredObject(name=name, size_bytes=len(content), updated_at=datetime.now(timezone.utc))


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def service(storage: InMemoryStorage) -> UploadService:
    return UploadService(storage=storage, max_file_size_bytes=1024)


def _xlsx_bytes(records: list[list[object]]) -> bytes:
    buffer = io.BytesIO()
    pd.DataFrame(records).to_excel(buffer, index=False, header=False, engine="openpyxl")
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Accepted uploads
# ---------------------------------------------------------------------------


class TestUploadAccepted:
    def test_csv_is_stored_under_file_id(self, service: UploadService, storage: InMemoryStorage) -> None:
        result = service.upload(file_name="report.csv", content=CSV_BYTES, content_type="text/csv; charset=utf-8")

        assert len(result.file_id) == 32
        assert (result.row_count, result.column_count) == (2, 2)
        path = build_storage_path(result.file_id, "report.csv")
        assert storage.objects[path] == CSV_BYTES
        assert storage.content_types[path] == "text/csv"
        assert next(storage.list(result.file_id)).name == path

    def test_xlsx_upload(self, storage: InMemoryStorage) -> None:
        content = _xlsx_bytes([["date", "clicks"], ["2024-01-01", 10], ["2024-01-02", 20]])
        service = UploadService(storage=storage, max_file_size_bytes=1024 * 1024)

        result = service.upload(
            file_name="report.xlsx",
            content=content,
            content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

        assert result.row_count == 2


# ---------------------------------------------------------------------------
# Rejected uploads
# ---------------------------------------------------------------------------


class TestUploadRejected:
    @pytest.mark.parametrize(
        ("kwargs", "code"),
        [
            ({"file_name": None, "content": CSV_BYTES, "content_type": "text/csv"}, "MISSING_FIELDS"),
            ({"file_name": "a.csv", "content": CSV_BYTES, "content_type": ""}, "MISSING_FIELDS"),
            ({"file_name": "  ", "content": CSV_BYTES, "content_type": "text/csv"}, "INVALID_FILENAME"),
            ({"file_name": "../a.csv", "content": CSV_BYTES, "content_type": "text/csv"}, "INVALID_FILENAME"),
            ({"file_name": "a.json", "content": CSV_BYTES, "content_type": "text/csv"}, "UNSUPPORTED_FORMAT"),
            ({"file_name": "a.csv", "content": CSV_BYTES, "content_type": "image/png"}, "UNSUPPORTED_MIME_TYPE"),
            ({"file_name": "a.csv", "content": b"", "content_type": "text/csv"}, "EMPTY_FILE"),
            ({"file_name": "a.csv", "content": b"x" * 2048, "content_type": "text/csv"}, "FILE_TOO_LARGE"),
            ({"file_name": "a.csv", "content": b"date,clicks\n", "content_type": "text/csv"}, "INSUFFICIENT_DATA"),
            ({"file_name": "a.csv", "content": b"a,b\n\xff\xfe,1\n2,3\n", "content_type": "text/csv"}, "INVALID_ENCODING"),
        ],
    )
    def test_validation_errors(
        self,
        service: UploadService,
        storage: InMemoryStorage,
        kwargs: dict,
        code: str,
    ) -> None:
        with pytest.raises(AnalyticsError) as ctx:
            service.upload(**kwargs)

        assert ctx.value.code == code
        assert ctx.value.http_status == 400
        assert storage.objects == {}

    def test_storage_failure(self) -> None:
        service = UploadService(storage=InMemoryStorage(fail_uploads=True), max_file_size_bytes=1024)

        with pytest.raises(AnalyticsError) as ctx:
            service.upload(file_name="a.csv", content=CSV_BYTES, content_type="text/csv")

        assert ctx.value.code == "STORAGE_ERROR"
        assert ctx.value.http_status == 500


# ---------------------------------------------------------------------------
# Spreadsheet loading
# ---------------------------------------------------------------------------


class TestLoadSpreadsheet:
    def test_cells_become_text(self) -> None:
        content = _xlsx_bytes(
            [
                ["date", "clicks", "ctr"],
                [datetime(2024, 1, 1), 10, 0.25],
                [datetime(2024, 1, 2), 12.0, None],
            ]
        )

        table = load_table("report.xlsx", content)

        assert table.headers == ("date", "clicks", "ctr")
        assert table.rows == (("2024-01-01", "10", "0.25"), ("2024-01-02", "12", ""))

    def test_unreadable_workbook(self) -> None:
        with pytest.raises(AnalyticsError) as ctx:
            load_table("report.xlsx", b"not a zip file")

        assert ctx.value.code == "INVALID_SPREADSHEET"

    def test_unknown_extension(self) -> None:
        with pytest.raises(AnalyticsError) as ctx:
            load_table("report.txt", CSV_BYTES)

        assert ctx.value.code == "UNSUPPORTED_FORMAT"
