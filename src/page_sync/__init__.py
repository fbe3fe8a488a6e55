"""Page synchronization for repository-hosted JSON and HTML pages.

Key classes:
    PageDiscovery: Lists editable pages at the repository root
    ContentSynchronizer: open/edit/save cycle with revision-token checks
    SaveRegistry: Rejects overlapping saves of the same path
    SchemaRegistry: Maps detected JSON page sections to validators
    EditablePage: In-memory state of the open page
"""

from .models import EditablePage, PageState, SaveResult
from .errors import PageSyncError, BusyError, InvalidStateError, UnsavedChangesError
from .discovery import PageDiscovery
from .synchronizer import ContentSynchronizer, SaveRegistry
from .schemas import SchemaRegistry, SectionSchema, DetectedSection, default_registry

__all__ = [
    "PageDiscovery",
    "ContentSynchronizer",
    "SaveRegistry",
    "SchemaRegistry",
    "SectionSchema",
    "DetectedSection",
    "default_registry",
    "EditablePage",
    "PageState",
    "SaveResult",
    "PageSyncError",
    "BusyError",
    "InvalidStateError",
    "UnsavedChangesError",
]
