"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status messages, spinners, the page table and save/upload
summaries. Supports verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner
from rich.table import Table

from src.auth.models import AuthSession
from src.github_client.models import FileEntry
from src.media.models import DeleteResult, UploadResult
from src.page_sync.models import EditablePage, SaveResult
from src.page_sync.schemas import DetectedSection


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Saved about.json")
        >>> with handler.spinner("Saving..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False, console: Optional[Console] = None):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
            console: Console to print to (tests pass a recording console)
        """
        self.verbosity = verbosity
        self.console = console or Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(message, markup=False)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single network operations.

        Example:
            >>> with handler.spinner("Reading about.json..."):
            ...     page = sync.open("about.json")
        """
        if not self.console.is_terminal:
            yield
            return
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_pages(self, entries: List[FileEntry]) -> None:
        """Display discovered pages as a table."""
        if not entries:
            self.console.print("[yellow]No pages found[/yellow]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Page")
        table.add_column("Kind")
        for entry in entries:
            table.add_row(escape(entry.path), entry.kind.value)
        self.console.print(table)
        self.console.print(f"\n{len(entries)} page(s)")

    def print_page(self, page: EditablePage, sections: Optional[List[DetectedSection]] = None) -> None:
        """Display an opened page: header, detected sections, then the content."""
        self.console.print(f"[bold]{escape(page.path)}[/bold] ({page.kind.value})")
        self.console.print(f"  Revision: {page.revision_token}")

        if sections:
            self.console.print("  Sections:")
            for section in sections:
                marker = "[green]✓[/green]" if section.is_valid else "[yellow]⚠[/yellow]"
                self.console.print(f"    {marker} {escape(section.schema.title)}")
                for problem in section.problems:
                    self.console.print(f"        [yellow]{escape(problem)}[/yellow]")

        self.console.print("")
        self.console.print(page.content, markup=False, highlight=False)

    def print_save_result(self, result: SaveResult) -> None:
        """Display the outcome of a save."""
        if not result.committed:
            self.console.print(f"[dim]─[/dim] {escape(result.path)}: no changes to save")
            return

        self.success(f"Saved {result.path}")
        self.info(f"  Revision: {result.old_token} -> {result.new_token}")
        if result.content_changed_on_server:
            self.warning(
                f"{result.path} changed on the server right after the save; "
                f"the latest version was loaded"
            )

    def print_upload_result(self, result: UploadResult) -> None:
        """Display the outcome of an upload or replacement."""
        self.success(f"Uploaded {result.path}")
        self.console.print(f"  Reference: {escape(result.path)}")

        if result.replaced_path is None:
            return
        if result.deleted_old:
            self.console.print(f"  [red]✗[/red] Removed {escape(result.replaced_path)}")
        elif result.delete_error is not None:
            self.warning(
                f"Could not remove {result.replaced_path}: {result.delete_error}"
            )

    def print_delete_result(self, result: DeleteResult) -> None:
        """Display the outcome of a media delete."""
        if result.ok:
            self.success(f"Deleted {result.path}")
        else:
            self.error(f"Could not delete {result.path}: {result.error}")

    def print_user(self, session: Optional[AuthSession]) -> None:
        """Display the signed-in operator."""
        if session is None:
            self.console.print("Not signed in")
            return
        self.console.print(f"Signed in as [bold]{escape(session.email)}[/bold]")
        self.info(f"  User ID: {session.user_id}")
        self.info(f"  Session expires: {session.expires_at.isoformat()}")
