"""GitHub client library for page synchronization.

This package provides Python abstractions over the GitHub REST Contents API,
enabling typed, revision-checked reads and writes of repository files.
"""

from .errors import (
    SyncError,
    RepositoryError,
    AuthFailureError,
    NotFoundError,
    ConflictError,
    AlreadyExistsError,
    APIUnreachableError,
    APIAccessError,
    InvalidContentError,
)
from .models import ContentKind, FileEntry, RevisionedContent
from .session import RepositoryReference, RepositorySession

__all__ = [
    "SyncError",
    "RepositoryError",
    "AuthFailureError",
    "NotFoundError",
    "ConflictError",
    "AlreadyExistsError",
    "APIUnreachableError",
    "APIAccessError",
    "InvalidContentError",
    "ContentKind",
    "FileEntry",
    "RevisionedContent",
    "RepositoryReference",
    "RepositorySession",
]
