"""Page commands: list, show, push and structural JSON edits.

Every command drives a ContentSynchronizer through one open/edit/save
cycle, so the revision-token check applies exactly as it does in the
editor: a push against a page someone else changed fails with a conflict.
"""

import json
import logging
from typing import Any, List, Optional

from src.github_client.errors import InvalidContentError
from src.github_client.models import ContentKind
from src.page_sync import json_tree
from src.page_sync.discovery import PageDiscovery
from src.page_sync.models import EditablePage
from src.page_sync.schemas import DetectedSection, SchemaRegistry, default_registry
from src.page_sync.synchronizer import ContentSynchronizer, SaveRegistry
from .base_command import BaseCommand, read_local_file
from .errors import FilesystemError
from .models import ExitCode

logger = logging.getLogger(__name__)


class PageCommand(BaseCommand):
    """Base for commands that open a page."""

    def __init__(self, *args, schema_registry: Optional[SchemaRegistry] = None,
                 save_registry: Optional[SaveRegistry] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.schema_registry = schema_registry or default_registry()
        self.save_registry = save_registry or SaveRegistry()

    def _synchronizer(self) -> ContentSynchronizer:
        return ContentSynchronizer(
            self._get_client(),
            save_registry=self.save_registry,
            commit_message=self.config.commit_message,
        )

    def _open(self, sync: ContentSynchronizer, path: str) -> EditablePage:
        with self.output_handler.spinner(f"Reading {path}..."):
            return sync.open(path)

    def _sections(self, page: EditablePage) -> List[DetectedSection]:
        if page.kind is not ContentKind.JSON:
            return []
        try:
            document = json.loads(page.content)
        except ValueError as e:
            self.output_handler.warning(f"{page.path} is not valid JSON: {e}")
            return []
        return self.schema_registry.detect(document)

    def _report_problems(self, page: EditablePage) -> None:
        for section in self._sections(page):
            for problem in section.problems:
                self.output_handler.warning(f"{section.schema.title}: {problem}")


class PagesCommand(PageCommand):
    """Lists the editable pages at the repository root.

    Example:
        >>> PagesCommand(output_handler=output).run()
    """

    def run(self, all_kinds: bool = False) -> ExitCode:
        def action() -> None:
            kinds = list(ContentKind) if all_kinds else None
            discovery = PageDiscovery(self._get_client())
            with self.output_handler.spinner("Listing pages..."):
                pages = discovery.discover_pages(kinds)
            self.output_handler.print_pages(pages)

        return self.execute(action)


class ShowCommand(PageCommand):
    """Prints a page with its revision token and detected sections."""

    def run(self, path: str) -> ExitCode:
        def action() -> None:
            page = self._open(self._synchronizer(), path)
            self.output_handler.print_page(page, self._sections(page))

        return self.execute(action)


class PushCommand(PageCommand):
    """Replaces a page's content with a local file and saves it.

    The page is opened first, so the save carries the token of the version
    just read; the local file is the edit.

    Example:
        >>> PushCommand(output_handler=output).run("about.json", "./about.json")
    """

    def run(self, path: str, source_file: str, message: Optional[str] = None) -> ExitCode:
        def action() -> None:
            raw = read_local_file(source_file)
            try:
                text = raw.decode('utf-8')
            except UnicodeDecodeError:
                raise FilesystemError(source_file, 'read', 'File is not UTF-8 text')

            sync = self._synchronizer()
            page = self._open(sync, path)
            if text == page.content:
                self.output_handler.print(f"{path} already matches {source_file}")
                return

            sync.edit(text)
            self._report_problems(sync.current)
            with self.output_handler.spinner(f"Saving {path}..."):
                result = sync.save(message)
            self.output_handler.print_save_result(result)

        return self.execute(action)


def parse_value(raw: str) -> Any:
    """Interpret a command-line value as JSON, falling back to a plain string.

    Example:
        >>> parse_value('{"name": "Ada"}')
        {'name': 'Ada'}
        >>> parse_value('Hello world')
        'Hello world'
    """
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class SetCommand(PageCommand):
    """Changes one location inside a JSON page and saves it.

    Modes:
        set: Replace (or create) the value at key
        append: Append the value to the list at key
        remove: Delete the dict key or list item at key (no value)

    Example:
        >>> SetCommand(output_handler=output).run(
        ...     "about.json", "stateOfficers.0.name", '"Ada Lovelace"')
    """

    MODES = ('set', 'append', 'remove')

    def run(
        self,
        path: str,
        key: str,
        raw_value: Optional[str] = None,
        message: Optional[str] = None,
        mode: str = 'set',
    ) -> ExitCode:
        def action() -> Optional[ExitCode]:
            if mode not in self.MODES:
                self.output_handler.error(f"Unknown edit mode '{mode}'")
                return ExitCode.GENERAL_ERROR
            if mode != 'remove' and raw_value is None:
                self.output_handler.error(f"A value is required to {mode} '{key}'")
                return ExitCode.GENERAL_ERROR

            try:
                keys = json_tree.parse_path(key)
            except ValueError as e:
                raise InvalidContentError(path, str(e))

            sync = self._synchronizer()
            page = self._open(sync, path)
            if page.kind is not ContentKind.JSON:
                raise InvalidContentError(path, "only JSON pages support structural edits")

            if mode == 'remove':
                sync.remove_field(keys)
            elif mode == 'append':
                sync.append_item(keys, parse_value(raw_value))
            else:
                sync.edit_field(keys, parse_value(raw_value))
            logger.info(f"Applied {mode} on '{key}' in {path}")

            self._report_problems(sync.current)
            with self.output_handler.spinner(f"Saving {path}..."):
                result = sync.save(message)
            self.output_handler.print_save_result(result)
            return None

        return self.execute(action)
