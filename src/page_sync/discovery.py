"""Page discovery at the repository root.

Lists root files, keeps the editable kinds and sorts them by name.
"""

import logging
from typing import Iterable, List, Optional

from src.github_client.errors import AuthFailureError, RepositoryError
from src.github_client.models import ContentKind, FileEntry

logger = logging.getLogger(__name__)

PAGE_KINDS = frozenset({ContentKind.JSON, ContentKind.HTML})


class PageDiscovery:
    """Finds the editable pages of a repository.

    Pages live at the repository root as *.json and *.html files. Media
    folders and any other directory are not scanned.

    Example:
        >>> discovery = PageDiscovery(client)
        >>> [p.name for p in discovery.discover_pages()]
        ['about.json', 'config.json', 'index.html']
    """

    def __init__(self, client):
        """Initialize discovery.

        Args:
            client: Repository client exposing list_entries(path)
        """
        self.client = client

    def discover_pages(self, kinds: Optional[Iterable[ContentKind]] = None) -> List[FileEntry]:
        """List the pages at the repository root.

        A failed listing degrades to an empty list (the editor shows "no
        pages available"). Authentication failures propagate.

        Args:
            kinds: Content kinds to keep (defaults to json and html)

        Returns:
            File entries sorted by name

        Raises:
            AuthFailureError: If the repository rejected the credentials
        """
        wanted = frozenset(kinds) if kinds is not None else PAGE_KINDS

        try:
            entries = self.client.list_entries('')
        except AuthFailureError:
            raise
        except RepositoryError as e:
            logger.error(f"Failed to discover pages: {e}")
            return []

        pages = [entry for entry in entries if entry.kind in wanted]
        pages.sort(key=lambda entry: (entry.name.lower(), entry.name))

        logger.debug(f"Discovered {len(pages)} pages")
        return pages
