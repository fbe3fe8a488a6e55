"""Data models for repository-store operations.

This module defines the file and content structures returned by the
GitHub Contents API client.
"""

from dataclasses import dataclass
from enum import Enum


class ContentKind(Enum):
    """Classification of a repository file, driving which editor applies."""

    JSON = "json"
    HTML = "html"
    BINARY = "binary"

    @classmethod
    def from_path(cls, path: str) -> "ContentKind":
        """Classify a path by its (case-insensitive) extension.

        Examples:
            >>> ContentKind.from_path("about.json")
            <ContentKind.JSON: 'json'>
            >>> ContentKind.from_path("images/logo.PNG")
            <ContentKind.BINARY: 'binary'>
        """
        name = path.rsplit('/', 1)[-1].lower()
        if name.endswith('.json'):
            return cls.JSON
        if name.endswith('.html'):
            return cls.HTML
        return cls.BINARY


@dataclass(frozen=True)
class FileEntry:
    """A file in the repository tree.

    Attributes:
        path: Path relative to the repository root (unique within a branch)
        kind: Content kind derived from the path suffix
    """

    path: str
    kind: ContentKind

    @property
    def name(self) -> str:
        """Final path segment."""
        return self.path.rsplit('/', 1)[-1]

    @classmethod
    def from_path(cls, path: str) -> "FileEntry":
        return cls(path=path, kind=ContentKind.from_path(path))


@dataclass(frozen=True)
class RevisionedContent:
    """File content together with the revision token it was read at.

    Attributes:
        path: Repository path
        content: Raw file bytes
        revision_token: Opaque server-assigned token (git blob SHA); required
                        on subsequent conditional writes and deletes
    """

    path: str
    content: bytes
    revision_token: str

    @property
    def text(self) -> str:
        """Content decoded as UTF-8."""
        return self.content.decode('utf-8')
