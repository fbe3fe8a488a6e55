"""Command-line interface for editing repository-hosted pages.

This package provides the `cms-sync` CLI tool: login management, page
listing and editing through the content synchronizer, and media uploads,
with Rich output and exit codes per failure type.
"""

__version__ = "0.1.0"

from .models import ExitCode, CmsConfig
from .errors import (
    CLIError,
    ConfigError,
    ConfigNotFoundError,
    FilesystemError,
    InitError,
)

__all__ = [
    'ExitCode',
    'CmsConfig',
    'CLIError',
    'ConfigError',
    'ConfigNotFoundError',
    'FilesystemError',
    'InitError',
]
