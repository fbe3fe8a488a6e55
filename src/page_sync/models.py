"""Data models for the page synchronizer.

This module defines the editable page state tracked between open, edit and
save, and the result returned by a save.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from src.github_client.models import ContentKind, FileEntry


class PageState(Enum):
    """Lifecycle of an open page.

    CLEAN -> DIRTY -> SAVING -> {CLEAN, SAVE_FAILED}
    """

    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVE_FAILED = "save_failed"


@dataclass
class EditablePage:
    """A page opened for editing.

    Attributes:
        entry: The repository file being edited
        content: Current in-memory text (possibly with unsaved edits)
        revision_token: Token of the last confirmed server state
        state: Current lifecycle state
        last_error: Error from the last failed save, if any
        opened_at: When the page was loaded from the server
        document: Cached parsed JSON for JSON pages (None until parsed)
    """

    entry: FileEntry
    content: str
    revision_token: str
    state: PageState = PageState.CLEAN
    last_error: Optional[Exception] = None
    opened_at: datetime = field(default_factory=datetime.now)
    document: Any = field(default=None, repr=False)

    @property
    def path(self) -> str:
        return self.entry.path

    @property
    def kind(self) -> ContentKind:
        return self.entry.kind

    @property
    def is_dirty(self) -> bool:
        """True while local edits are not confirmed committed."""
        return self.state in (PageState.DIRTY, PageState.SAVING, PageState.SAVE_FAILED)


@dataclass
class SaveResult:
    """Result of a save.

    Attributes:
        path: Page that was saved
        committed: False when there was nothing to save
        old_token: Revision token the write was conditioned on
        new_token: Revision token held after the confirmatory re-read
        content_changed_on_server: True when the re-read returned content
                                   different from what was written (e.g.
                                   line-ending normalisation)
    """

    path: str
    committed: bool
    old_token: str
    new_token: str
    content_changed_on_server: bool = False
