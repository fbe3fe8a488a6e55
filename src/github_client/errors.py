"""Typed exception hierarchy for repository-store errors.

This module defines the exceptions raised by the GitHub Contents API client.
All exceptions inherit from RepositoryError (itself a SyncError) for easy
catching and carry the path or endpoint involved to help with debugging.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all github-page-sync errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class RepositoryError(SyncError):
    """Base exception for all repository-store errors."""
    pass


class AuthFailureError(RepositoryError):
    """Raised when credentials are missing, invalid or rejected."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        message = f"Authentication failed for {endpoint}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.endpoint = endpoint
        self.reason = reason


class NotFoundError(RepositoryError):
    """Raised when a requested path does not exist on the branch."""

    def __init__(self, path: str):
        super().__init__(f"Path '{path}' not found")
        self.path = path


class ConflictError(RepositoryError):
    """Raised when a write or delete carries a stale revision token.

    Another writer committed to the same path since the token was observed.
    """

    def __init__(self, path: str, revision_token: Optional[str] = None):
        if revision_token:
            message = (
                f"Conflict on '{path}': revision {revision_token[:12]} is stale "
                f"(the file was changed by someone else)"
            )
        else:
            message = f"Conflict on '{path}': the file was changed by someone else"
        super().__init__(message)
        self.path = path
        self.revision_token = revision_token


class AlreadyExistsError(RepositoryError):
    """Raised when a token-less write targets a path that already exists."""

    def __init__(self, path: str):
        super().__init__(
            f"Path '{path}' already exists; a revision token is required to overwrite it"
        )
        self.path = path


class APIUnreachableError(RepositoryError):
    """Raised when the GitHub API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(RepositoryError):
    """Raised when the API rejects a request for any other reason."""

    def __init__(self, message: str = "GitHub API failure", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidContentError(RepositoryError):
    """Raised when content cannot be interpreted (e.g. unparsable JSON)."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Invalid content in '{path}': {message}")
        self.path = path
        self.message = message
