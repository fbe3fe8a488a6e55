"""InitCommand for configuration initialization.

This module implements the `init` command: it parses the repository URL,
checks that the branch can be listed with the configured token, and writes
.cms-sync/config.yaml.
"""

import logging
import os
from typing import Optional

from src.github_client.errors import NotFoundError
from src.github_client.session import RepositoryReference
from src.page_sync.discovery import PAGE_KINDS
from .base_command import BaseCommand
from .config import ConfigLoader
from .errors import FilesystemError, InitError
from .models import CmsConfig, ExitCode

logger = logging.getLogger(__name__)


class InitCommand(BaseCommand):
    """Handles initialization of the project configuration.

    Example:
        >>> init = InitCommand(output_handler=output)
        >>> init.run(repo_url="https://github.com/acme/site", branch="main")
    """

    def _check_config_exists(self) -> None:
        """Raises InitError if a config file is already present."""
        if os.path.exists(self.config_path):
            raise InitError(
                f"Configuration file already exists at {self.config_path}\n"
                "Please delete it first if you want to reinitialize."
            )

    def _parse_repository(self, repo_url: str, branch: Optional[str]) -> RepositoryReference:
        try:
            return RepositoryReference.parse(repo_url, branch or "main")
        except ValueError as e:
            raise InitError(str(e))

    def _validate_repository(self, reference: RepositoryReference) -> int:
        """List the repository root; returns the number of pages found.

        Raises:
            InitError: If the repository or branch does not exist
        """
        try:
            entries = self._get_client().list_entries('')
        except NotFoundError:
            raise InitError(
                f"Repository '{reference.slug}' or branch '{reference.branch}' not found.\n"
                "Please verify the URL and that GITHUB_TOKEN can read the repository."
            )
        return sum(1 for entry in entries if entry.kind in PAGE_KINDS)

    def run(self, repo_url: str, branch: Optional[str] = None) -> ExitCode:
        """Create the configuration for a repository.

        Args:
            repo_url: https://github.com/<owner>/<repo> or <owner>/<repo>
            branch: Branch to edit (defaults to main)

        Returns:
            ExitCode indicating success or specific failure type
        """
        def action() -> None:
            self._check_config_exists()
            reference = self._parse_repository(repo_url, branch)
            logger.info(f"Parsed repository: {reference.slug}@{reference.branch}")

            self._config = CmsConfig(repository=reference.slug, branch=reference.branch)

            with self.output_handler.spinner("Validating repository..."):
                page_count = self._validate_repository(reference)

            try:
                ConfigLoader.save(self.config_path, self._config)
            except FilesystemError as e:
                raise InitError(f"Failed to save configuration: {e}")
            logger.info(f"Configuration saved to {self.config_path}")

            self.output_handler.success("Configuration initialized successfully")
            self.output_handler.print(f"  Repository: {reference.slug} (branch {reference.branch})")
            self.output_handler.print(f"  Pages found: {page_count}")
            self.output_handler.print(f"  Config file: {self.config_path}")

        return self.execute(action)
