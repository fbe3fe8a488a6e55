"""Shared plumbing for repository-backed CLI commands.

Each command loads the project configuration, checks that an operator is
signed in, builds the repository client, runs, and translates exceptions
into exit codes.
"""

import logging
from typing import Callable, Optional

from src.auth.firebase_gate import FirebaseAuthGate
from src.github_client.api_wrapper import GitHubContentsClient
from src.github_client.auth import Authenticator
from src.github_client.errors import (
    AlreadyExistsError,
    APIAccessError,
    APIUnreachableError,
    AuthFailureError,
    ConflictError,
    RepositoryError,
)
from src.github_client.session import RepositoryReference, RepositorySession
from src.media.errors import MediaError
from src.page_sync.errors import BusyError, PageSyncError
from .config import ConfigLoader, DEFAULT_CONFIG_PATH
from .errors import CLIError, ConfigError, ConfigNotFoundError, FilesystemError
from .models import CmsConfig, ExitCode
from .output import OutputHandler

logger = logging.getLogger(__name__)


class BaseCommand:
    """Base class for CLI commands.

    Subclasses that only manage the local login set requires_login to False.

    All collaborators are optional so tests can inject fakes; in
    production they are created from the config file and environment.
    """

    requires_login = True

    def __init__(
        self,
        config_path: str = DEFAULT_CONFIG_PATH,
        output_handler: Optional[OutputHandler] = None,
        auth_gate: Optional[FirebaseAuthGate] = None,
        authenticator: Optional[Authenticator] = None,
        client: Optional[GitHubContentsClient] = None,
    ):
        """Initialize the command.

        Args:
            config_path: Path to configuration YAML file
            output_handler: OutputHandler for terminal output
            auth_gate: Login gate (defaults to the persisted Firebase session)
            authenticator: Source of the GitHub token
            client: Repository client (built from config when omitted)
        """
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.auth_gate = auth_gate
        self.authenticator = authenticator
        self.client = client
        self._config: Optional[CmsConfig] = None

    @property
    def config(self) -> CmsConfig:
        if self._config is None:
            logger.info(f"Loading configuration from {self.config_path}")
            self._config = ConfigLoader.load(self.config_path)
        return self._config

    def _get_auth_gate(self) -> FirebaseAuthGate:
        if self.auth_gate is None:
            self.auth_gate = FirebaseAuthGate()
        return self.auth_gate

    def _require_login(self) -> None:
        user = self._get_auth_gate().require_user()
        logger.debug(f"Acting as {user.email}")

    def _get_client(self) -> GitHubContentsClient:
        if self.client is None:
            if self.authenticator is None:
                self.authenticator = Authenticator()
            config = self.config
            reference = RepositoryReference.parse(config.repository, config.branch)
            session = RepositorySession(reference, self.authenticator.get_credentials())
            self.client = GitHubContentsClient(session, timeout=config.timeout)
        return self.client

    def execute(self, action: Callable[[], Optional[ExitCode]]) -> ExitCode:
        """Run action after the login check, mapping failures to exit codes.

        Returns:
            ExitCode returned by action (SUCCESS if it returns None), or the
            code for the exception it raised
        """
        output = self.output_handler
        try:
            if self.requires_login:
                self._require_login()
            return action() or ExitCode.SUCCESS

        except AuthFailureError as e:
            logger.error(f"Authentication failed: {e}")
            output.error(f"Authentication failed: {e}")
            output.info("Run 'cms-sync login' and check GITHUB_TOKEN in your environment")
            return ExitCode.AUTH_ERROR

        except (ConflictError, AlreadyExistsError) as e:
            logger.error(f"Conflict: {e}")
            output.error(str(e))
            output.print("Reload the page to get the latest version, then re-apply your changes.")
            return ExitCode.CONFLICTS

        except BusyError as e:
            logger.warning(f"Busy: {e}")
            output.error(str(e))
            return ExitCode.BUSY

        except (APIUnreachableError, APIAccessError) as e:
            logger.error(f"API error: {e}")
            output.error(f"API error: {e}")
            output.info("Check your internet connection and try again")
            return ExitCode.NETWORK_ERROR

        except ConfigNotFoundError as e:
            logger.error(f"Configuration error: {e}")
            output.error(str(e))
            output.print("Initialize the project first:")
            output.print("  cms-sync init --repo <owner>/<repo>")
            return ExitCode.GENERAL_ERROR

        except (RepositoryError, PageSyncError, MediaError) as e:
            logger.error(f"Operation failed: {e}")
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        except (ConfigError, FilesystemError, CLIError) as e:
            logger.error(f"CLI error: {e}")
            output.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error")
            output.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR


def read_local_file(path: str) -> bytes:
    """Read a local file for pushing or uploading.

    Raises:
        FilesystemError: If the file cannot be read
    """
    try:
        with open(path, 'rb') as f:
            return f.read()
    except FileNotFoundError:
        raise FilesystemError(path, 'read', 'File not found')
    except PermissionError:
        raise FilesystemError(path, 'read', 'Permission denied')
    except OSError as e:
        raise FilesystemError(path, 'read', str(e))
