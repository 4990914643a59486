"""
Repository layer exports.
"""

from db.repositories.errors import FileStorageError, RepositoryError
from db.repositories.metric_source_repository import MetricSourceRepository
from db.repositories.scheduled_job_repository import ScheduledJobRepository
from db.repositories.storage import BlobStorage, LocalBlobStorage, StoredObject

__all__ = [
    "ScheduledJobRepository",
    "MetricSourceRepository",
    "BlobStorage",
    "LocalBlobStorage",
    "StoredObject",
    "RepositoryError",
    "FileStorageError",
]
