"""Data models for CLI operations."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

from src.media.replacement import DEFAULT_MEDIA_FOLDER, DEFAULT_MEDIA_FOLDERS
from src.page_sync.synchronizer import DEFAULT_COMMIT_MESSAGE


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Config issues, invalid input, unexpected failures
    - CONFLICTS (2): The page or file was changed by someone else
    - AUTH_ERROR (3): Not signed in, or credentials rejected
    - NETWORK_ERROR (4): GitHub or Firebase unreachable or failing
    - BUSY (5): A save of the same page is already in progress

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFLICTS = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
    BUSY = 5


@dataclass
class CmsConfig:
    """Project configuration stored in .cms-sync/config.yaml.

    Attributes:
        repository: Repository slug, "owner/repo"
        branch: Branch pages are read from and committed to
        commit_message: Commit message template ({name}, {path})
        media_folders: Folders media may be uploaded to
        default_media_folder: Folder used when none is given
        timeout: HTTP timeout in seconds

    Example:
        >>> config = CmsConfig(repository="acme/site")
        >>> config.branch
        'main'
    """
    repository: str
    branch: str = "main"
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    media_folders: List[str] = field(default_factory=lambda: list(DEFAULT_MEDIA_FOLDERS))
    default_media_folder: str = DEFAULT_MEDIA_FOLDER
    timeout: float = 30
