"""Content synchronizer for one open page.

This module implements the open/edit/save cycle between the editor's
in-memory page and the repository store. Writes are conditioned on the
revision token observed at the last open or save; a stale token means
another writer committed first, and the save fails so the operator can
reconcile. Local edits are never silently overwritten or discarded.
"""

import json
import logging
import threading
from typing import Any, Optional, Sequence, Set

from src.github_client.errors import AuthFailureError, InvalidContentError, RepositoryError
from src.github_client.models import ContentKind, FileEntry
from . import json_tree
from .errors import BusyError, InvalidStateError, UnsavedChangesError
from .models import EditablePage, PageState, SaveResult

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_MESSAGE = "Update {name} via CMS editor"


class SaveRegistry:
    """Tracks which paths have a save in flight.

    Share one registry between synchronizers of the same repository
    session to reject overlapping saves of the same path. Different paths
    never block each other.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight: Set[str] = set()

    def try_acquire(self, path: str) -> bool:
        """Mark path as saving. Returns False if it already is."""
        with self._lock:
            if path in self._in_flight:
                return False
            self._in_flight.add(path)
            return True

    def release(self, path: str) -> None:
        with self._lock:
            self._in_flight.discard(path)

    def is_saving(self, path: str) -> bool:
        with self._lock:
            return path in self._in_flight


class ContentSynchronizer:
    """Keeps one open page in step with the repository.

    States: CLEAN -> DIRTY -> SAVING -> {CLEAN, SAVE_FAILED}

    - open() loads content and revision token (CLEAN). It refuses to drop a
      page with unsaved edits unless discard_changes=True.
    - edit() replaces the in-memory content (DIRTY); no server traffic.
    - save() writes with the held token. On success the page is re-read so
      memory matches what the server stores; on conflict the page goes to
      SAVE_FAILED with its content intact and the ConflictError propagates.

    Usage:
        sync = ContentSynchronizer(client)
        sync.open("about.json")
        sync.edit_field(("missionStatement",), "New mission")
        result = sync.save()
    """

    def __init__(
        self,
        client,
        save_registry: Optional[SaveRegistry] = None,
        commit_message: str = DEFAULT_COMMIT_MESSAGE,
    ):
        """Initialize the synchronizer.

        Args:
            client: Repository client (read_content / write_content)
            save_registry: Registry shared across synchronizers of the same
                           session. A private one is created if omitted.
            commit_message: Template for commit messages; may reference
                            {name} and {path}
        """
        self.client = client
        self.save_registry = save_registry or SaveRegistry()
        self.commit_message = commit_message
        self._lock = threading.Lock()
        self._page: Optional[EditablePage] = None

    @property
    def current(self) -> Optional[EditablePage]:
        """The open page, or None."""
        return self._page

    @property
    def state(self) -> Optional[PageState]:
        return self._page.state if self._page else None

    def _check_can_leave(self, discard_changes: bool) -> None:
        page = self._page
        if page is None:
            return
        if page.state is PageState.SAVING:
            raise BusyError(page.path)
        if page.is_dirty and not discard_changes:
            raise UnsavedChangesError(page.path)

    def open(self, path: str, discard_changes: bool = False) -> EditablePage:
        """Load a page for editing.

        Args:
            path: Repository path of the page
            discard_changes: Drop unsaved edits of the current page

        Returns:
            The newly opened EditablePage (state CLEAN)

        Raises:
            UnsavedChangesError: If the current page has unsaved edits
            BusyError: If the current page is being saved
            NotFoundError: If the page doesn't exist
            InvalidContentError: If the file is not UTF-8 text
        """
        with self._lock:
            self._check_can_leave(discard_changes)

        revisioned = self.client.read_content(path)
        text = self._decode(revisioned.content, path)

        with self._lock:
            # A save may have started on the old page while we were reading
            self._check_can_leave(discard_changes)
            if self._page is not None and self._page.is_dirty:
                logger.warning(f"Discarding unsaved changes to '{self._page.path}'")
            self._page = EditablePage(
                entry=FileEntry.from_path(revisioned.path),
                content=text,
                revision_token=revisioned.revision_token,
            )
            logger.info(f"Opened '{path}' at {revisioned.revision_token[:12]}")
            return self._page

    def close(self, discard_changes: bool = False) -> None:
        """Close the current page.

        Raises:
            UnsavedChangesError: If the page has unsaved edits
            BusyError: If the page is being saved
        """
        with self._lock:
            self._check_can_leave(discard_changes)
            self._page = None

    @staticmethod
    def _decode(content: bytes, path: str) -> str:
        try:
            return content.decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidContentError(path, "not UTF-8 text") from e

    def _require_editable(self) -> EditablePage:
        page = self._page
        if page is None:
            raise InvalidStateError("No page is open")
        if page.state is PageState.SAVING:
            raise BusyError(page.path)
        return page

    def edit(self, new_content: str) -> EditablePage:
        """Replace the in-memory content of the open page.

        Allowed from CLEAN, DIRTY and SAVE_FAILED. Always leaves the page
        DIRTY, even if the text is unchanged.

        Raises:
            InvalidStateError: If no page is open
            BusyError: If the page is being saved
        """
        with self._lock:
            page = self._require_editable()
            page.content = new_content
            page.document = None
            page.state = PageState.DIRTY
            return page

    def document(self) -> Any:
        """Parsed JSON of the open page (cached until the next edit).

        Raises:
            InvalidStateError: If no page is open or it is not a JSON page
            InvalidContentError: If the content is not valid JSON
        """
        page = self._page
        if page is None:
            raise InvalidStateError("No page is open")
        if page.kind is not ContentKind.JSON:
            raise InvalidStateError(f"'{page.path}' is not a JSON page")
        if page.document is None:
            page.document = self._parse_json(page.content, page.path)
        return page.document

    @staticmethod
    def _parse_json(content: str, path: str) -> Any:
        try:
            return json.loads(content)
        except ValueError as e:
            raise InvalidContentError(path, f"invalid JSON ({e})") from e

    def _apply_tree_edit(self, operation, *args) -> EditablePage:
        page = self._page
        tree = self.document()
        try:
            new_tree = operation(tree, *args)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise InvalidContentError(page.path, str(e)) from e

        page = self.edit(json.dumps(new_tree, indent=2, ensure_ascii=False))
        page.document = new_tree
        return page

    def edit_field(self, keys: Sequence[json_tree.Key], value: Any) -> EditablePage:
        """Set the value at keys in the open JSON page."""
        return self._apply_tree_edit(json_tree.set_in, tuple(keys), value)

    def remove_field(self, keys: Sequence[json_tree.Key]) -> EditablePage:
        """Remove the dict key or list item at keys in the open JSON page."""
        return self._apply_tree_edit(json_tree.delete_in, tuple(keys))

    def append_item(self, keys: Sequence[json_tree.Key], item: Any) -> EditablePage:
        """Append item to the list at keys in the open JSON page."""
        return self._apply_tree_edit(json_tree.append_in, tuple(keys), item)

    def _message_for(self, page: EditablePage, message: Optional[str]) -> str:
        if message:
            return message
        return self.commit_message.format(name=page.entry.name, path=page.path)

    def save(self, message: Optional[str] = None) -> SaveResult:
        """Commit the open page's edits.

        A CLEAN page has nothing to save: the call returns committed=False
        without contacting the server.

        Args:
            message: Commit message (defaults to the configured template)

        Returns:
            SaveResult with the old and new revision tokens

        Raises:
            InvalidStateError: If no page is open
            BusyError: If a save of this path is already in flight
            InvalidContentError: If a JSON page does not parse (nothing sent)
            ConflictError: If another writer committed first (SAVE_FAILED)
            RepositoryError: Any other store failure (SAVE_FAILED)
        """
        with self._lock:
            page = self._page
            if page is None:
                raise InvalidStateError("No page is open")
            if page.state is PageState.SAVING:
                raise BusyError(page.path)
            if page.state is PageState.CLEAN:
                logger.debug(f"Nothing to save for '{page.path}'")
                return SaveResult(
                    path=page.path,
                    committed=False,
                    old_token=page.revision_token,
                    new_token=page.revision_token,
                )

            if page.kind is ContentKind.JSON:
                self._parse_json(page.content, page.path)

            if not self.save_registry.try_acquire(page.path):
                raise BusyError(page.path)

            page.state = PageState.SAVING
            content = page.content
            old_token = page.revision_token
            commit_message = self._message_for(page, message)

        try:
            return self._commit(page, content, old_token, commit_message)
        finally:
            self.save_registry.release(page.path)

    def _commit(self, page: EditablePage, content: str, old_token: str, message: str) -> SaveResult:
        try:
            new_token = self.client.write_content(
                page.path, content.encode('utf-8'), message, old_token
            )
        except Exception as e:
            with self._lock:
                page.state = PageState.SAVE_FAILED
                page.last_error = e
            logger.error(f"Save of '{page.path}' failed: {e}")
            raise

        logger.info(f"Saved '{page.path}': {old_token[:12]} -> {new_token[:12]}")

        # Confirm convergence: adopt whatever the server now stores
        final_content, final_token = content, new_token
        try:
            confirmed = self.client.read_content(page.path)
            final_content = self._decode(confirmed.content, page.path)
            final_token = confirmed.revision_token
        except AuthFailureError:
            self._mark_clean(page, final_content, final_token)
            raise
        except RepositoryError as e:
            logger.warning(f"Saved '{page.path}' but could not re-read it: {e}")

        if final_token != new_token:
            logger.warning(
                f"'{page.path}' changed again after our commit "
                f"({new_token[:12]} -> {final_token[:12]})"
            )

        self._mark_clean(page, final_content, final_token)
        return SaveResult(
            path=page.path,
            committed=True,
            old_token=old_token,
            new_token=final_token,
            content_changed_on_server=final_content != content,
        )

    def _mark_clean(self, page: EditablePage, content: str, token: str) -> None:
        with self._lock:
            page.content = content
            page.revision_token = token
            page.document = None
            page.last_error = None
            page.state = PageState.CLEAN
