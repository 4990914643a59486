"""
Blob storage abstractions for uploaded and fetched report files.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from db.repositories.errors import FileStorageError


@dataclass(frozen=True)
class StoredObject:
    """
    Descriptor returned by ``BlobStorage.list``.
    """

    name: str
    size_bytes: int
    updated_at: datetime


class BlobStorage(Protocol):
    """
    Flat key/value object store for report files.
    """

    def upload(self, path: str, content: bytes, content_type: str | None = None) -> None:
        ...

    def download(self, path: str) -> bytes:
        ...

    def list(self, prefix: str = "") -> Iterator[StoredObject]:
        ...


def _sanitize_object_name(name: str) -> str:
    safe_name = name.strip()
    if not safe_name or "/" in safe_name or "\\" in safe_name or safe_name in {".", ".."}:
        raise FileStorageError(f"Invalid object name: {name!r}")
    return safe_name


class LocalBlobStorage:
    """
    Local filesystem storage backend. Objects live as files directly under
    ``root_dir``; names must not contain path separators.
    """

    def __init__(self, root_dir: str | Path = "data/reports") -> None:
        self._root_dir = Path(root_dir)

    def upload(self, path: str, content: bytes, content_type: str | None = None) -> None:
        target = self._root_dir / _sanitize_object_name(path)
        tmp_path = target.with_name(f"{target.name}.tmp")
        try:
            self._root_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(target)
        except OSError as exc:
            raise FileStorageError("Failed to write object to storage.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

    def download(self, path: str) -> bytes:
        target = self._root_dir / _sanitize_object_name(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise FileStorageError(f"Object not found: {path}") from exc
        except OSError as exc:
            raise FileStorageError("Failed to read object from storage.") from exc

    def list(self, prefix: str = "") -> Iterator[StoredObject]:
        if not self._root_dir.exists():
            return iter(())
        try:
            entries = sorted(self._root_dir.iterdir(), key=lambda entry: entry.name)
        except OSError as exc:
            raise FileStorageError("Failed to list storage objects.") from exc

        objects = []
        for entry in entries:
            if not entry.is_file() or entry.name.endswith(".tmp") or not entry.name.startswith(prefix):
                continue
            stat = entry.stat()
            objects.append(
                StoredObject(
                    name=entry.name,
                    size_bytes=stat.st_size,
                    updated_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return iter(objects)
