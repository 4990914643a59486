"""
Repository-layer exceptions for storage flows.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class FileStorageError(RepositoryError):
    """Raised when writing, reading or listing stored objects fails."""
