"""Data models for media uploads."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MediaAssetReference:
    """An uploaded asset.

    Attributes:
        name: Generated unique name ("<timestamp>-<sanitized>")
        folder: Media folder, e.g. "images" or "pdfs"
        content: File bytes
    """

    name: str
    folder: str
    content: bytes

    @property
    def path(self) -> str:
        """Relative repository path, without a leading slash."""
        return f"{self.folder}/{self.name}"


@dataclass
class DeleteResult:
    """Outcome of a best-effort media delete.

    Attributes:
        ok: True if the file was deleted
        path: Repository path that was targeted
        error: The failure, when ok is False
    """

    ok: bool
    path: str
    error: Optional[Exception] = None


@dataclass
class UploadResult:
    """Outcome of an upload or replacement.

    Attributes:
        path: New relative path to splice into page content
        filename: Generated file name
        replaced_path: Old asset targeted for deletion, if any
        deleted_old: True if the old asset was removed
        delete_error: Why the old asset could not be removed, if it wasn't
    """

    path: str
    filename: str
    replaced_path: Optional[str] = None
    deleted_old: bool = False
    delete_error: Optional[Exception] = None
