"""Typed exception hierarchy for media errors."""

from typing import Iterable

from src.github_client.errors import SyncError


class MediaError(SyncError):
    """Base exception for all media upload and replacement errors."""
    pass


class InvalidMediaNameError(MediaError):
    """Raised when an uploaded filename has nothing usable after sanitizing."""

    def __init__(self, filename: str):
        super().__init__(f"Invalid media file name: '{filename}'")
        self.filename = filename


class UnknownMediaFolderError(MediaError):
    """Raised when an upload targets a folder outside the configured ones."""

    def __init__(self, folder: str, allowed: Iterable[str]):
        allowed = sorted(allowed)
        super().__init__(
            f"Media folder '{folder}' is not allowed (expected one of: {', '.join(allowed)})"
        )
        self.folder = folder
        self.allowed = allowed
