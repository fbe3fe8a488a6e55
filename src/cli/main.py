"""Main CLI entry point for the cms-sync command.

This module provides the Typer application for editing the pages and media
of a GitHub-hosted site: one subcommand per editor action, plus login
management. Global options configure logging and output.
"""

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from src.cli import __version__
from src.cli.auth_commands import LoginCommand, LogoutCommand, WhoamiCommand
from src.cli.config import DEFAULT_CONFIG_PATH
from src.cli.init_command import InitCommand
from src.cli.media_commands import DeleteMediaCommand, UploadCommand
from src.cli.output import OutputHandler
from src.cli.page_commands import PagesCommand, PushCommand, SetCommand, ShowCommand

app = typer.Typer(
    name="cms-sync",
    help="""Edit the JSON/HTML pages and media of a GitHub-hosted site.

QUICK START:
  cms-sync login --email you@example.org
  cms-sync init --repo https://github.com/<owner>/<repo>
  cms-sync pages
  cms-sync show about.json
  cms-sync set about.json missionStatement '"Our new mission"'
  cms-sync upload ./logo.png --replace /images/old_logo.png""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


@dataclass
class CliOptions:
    """Global options shared by every subcommand."""
    verbosity: int = 0
    no_color: bool = False
    config_path: str = DEFAULT_CONFIG_PATH


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"cms-sync_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cms-sync version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    config_path: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to the project configuration file",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Edit the JSON/HTML pages and media of a GitHub-hosted site."""
    _configure_logging(verbosity, logdir)
    ctx.obj = CliOptions(verbosity=verbosity, no_color=no_color, config_path=config_path)


def _options(ctx: typer.Context) -> CliOptions:
    return ctx.obj if isinstance(ctx.obj, CliOptions) else CliOptions()


def _output(ctx: typer.Context) -> OutputHandler:
    options = _options(ctx)
    return OutputHandler(verbosity=options.verbosity, no_color=options.no_color)


@app.command()
def login(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", prompt=True, help="Account email address"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Account password"),
) -> None:
    """Sign in with email and password."""
    exit_code = LoginCommand(output_handler=_output(ctx)).run(email, password)
    raise typer.Exit(exit_code)


@app.command()
def logout(ctx: typer.Context) -> None:
    """Sign out (forget the saved session)."""
    raise typer.Exit(LogoutCommand(output_handler=_output(ctx)).run())


@app.command()
def whoami(ctx: typer.Context) -> None:
    """Show the signed-in account."""
    raise typer.Exit(WhoamiCommand(output_handler=_output(ctx)).run())


@app.command()
def init(
    ctx: typer.Context,
    repo: str = typer.Option(..., "--repo", help="https://github.com/<owner>/<repo> or <owner>/<repo>"),
    branch: str = typer.Option("main", "--branch", help="Branch to read and commit to"),
) -> None:
    """Create .cms-sync/config.yaml for a repository."""
    command = InitCommand(config_path=_options(ctx).config_path, output_handler=_output(ctx))
    raise typer.Exit(command.run(repo, branch))


@app.command()
def pages(
    ctx: typer.Context,
    all_kinds: bool = typer.Option(False, "--all-kinds", help="Also list non-page files at the root"),
) -> None:
    """List the editable pages."""
    command = PagesCommand(config_path=_options(ctx).config_path, output_handler=_output(ctx))
    raise typer.Exit(command.run(all_kinds=all_kinds))


@app.command()
def show(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Page path, e.g. about.json"),
) -> None:
    """Print a page, its revision and detected sections."""
    command = ShowCommand(config_path=_options(ctx).config_path, output_handler=_output(ctx))
    raise typer.Exit(command.run(path))


@app.command()
def push(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Page path, e.g. about.json"),
    source: str = typer.Option(..., "--from", help="Local file with the new content"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
) -> None:
    """Replace a page with the content of a local file."""
    command = PushCommand(config_path=_options(ctx).config_path, output_handler=_output(ctx))
    raise typer.Exit(command.run(path, source, message))


@app.command(name="set")
def set_value(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="JSON page path, e.g. about.json"),
    key: str = typer.Argument(..., help="Dotted key, e.g. stateOfficers.0.name"),
    value: Optional[str] = typer.Argument(None, help="JSON value (plain text is taken as a string)"),
    append: bool = typer.Option(False, "--append", help="Append the value to the list at key"),
    remove: bool = typer.Option(False, "--remove", help="Remove the key or list item"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
) -> None:
    """Change one value inside a JSON page and save it."""
    output = _output(ctx)
    if append and remove:
        output.error("Cannot use both --append and --remove")
        raise typer.Exit(1)

    mode = "append" if append else "remove" if remove else "set"
    command = SetCommand(config_path=_options(ctx).config_path, output_handler=output)
    raise typer.Exit(command.run(path, key, value, message, mode=mode))


@app.command()
def upload(
    ctx: typer.Context,
    local_file: str = typer.Argument(..., help="File to upload"),
    folder: Optional[str] = typer.Option(None, "--folder", help="Media folder (images, pdfs)"),
    replace: Optional[str] = typer.Option(
        None, "--replace", help="Reference of the asset being replaced (URL, path or name)"
    ),
    page: Optional[str] = typer.Option(
        None, "--page", help="Page whose references to --replace are updated and saved"
    ),
) -> None:
    """Upload an image or PDF, optionally replacing an old one."""
    command = UploadCommand(config_path=_options(ctx).config_path, output_handler=_output(ctx))
    raise typer.Exit(command.run(local_file, folder, replace, page))


@app.command(name="delete-media")
def delete_media_command(
    ctx: typer.Context,
    file_name: str = typer.Argument(..., help="File name inside the media folder"),
    folder: Optional[str] = typer.Option(None, "--folder", help="Media folder (images, pdfs)"),
) -> None:
    """Delete a media file."""
    command = DeleteMediaCommand(config_path=_options(ctx).config_path, output_handler=_output(ctx))
    raise typer.Exit(command.run(file_name, folder))


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
