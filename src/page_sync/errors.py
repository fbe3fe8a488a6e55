"""Typed exception hierarchy for page synchronization errors.

These describe misuse of the synchronizer state machine. Repository failures
(conflicts, missing files, auth) keep their own types from
src.github_client.errors and are re-raised unchanged.
"""

from typing import Optional

from src.github_client.errors import SyncError


class PageSyncError(SyncError):
    """Base exception for all page synchronizer errors."""
    pass


class BusyError(PageSyncError):
    """Raised when a save for the same path is already in flight."""

    def __init__(self, path: str):
        super().__init__(f"A save of '{path}' is already in progress")
        self.path = path


class InvalidStateError(PageSyncError):
    """Raised when an operation is not allowed in the page's current state."""

    def __init__(self, message: str, state: Optional[str] = None):
        if state:
            message = f"{message} (state: {state})"
        super().__init__(message)
        self.state = state


class UnsavedChangesError(PageSyncError):
    """Raised when switching away from a page that has unsaved edits.

    The caller is expected to confirm with the operator and retry with
    discard_changes=True, or save first.
    """

    def __init__(self, path: str):
        super().__init__(f"'{path}' has unsaved changes; save or discard them first")
        self.path = path
