"""Repository reference and session objects.

A RepositorySession bundles the repository coordinates with the credentials
used to reach it. It is created once per run and passed explicitly to the
client and the synchronizer; there is no process-wide active repository.
"""

import re
from dataclasses import dataclass

from .auth import Credentials


# owner/repo as accepted by GitHub: alphanumerics, '-', '_' and '.'
_SLUG_PART = r'[A-Za-z0-9_.-]+'
_REPO_URL_PATTERN = re.compile(
    rf'^(?:https?://(?:www\.)?github\.com/|git@github\.com:)?'
    rf'(?P<owner>{_SLUG_PART})/(?P<repo>{_SLUG_PART}?)(?:\.git)?/?$'
)


@dataclass(frozen=True)
class RepositoryReference:
    """Coordinates of the repository being edited.

    Attributes:
        owner: Account or organisation that owns the repository
        repo: Repository name
        branch: Branch that reads and commits target
    """

    owner: str
    repo: str
    branch: str = "main"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def parse(cls, repo_url: str, branch: str = "main") -> "RepositoryReference":
        """Build a reference from a GitHub URL or an owner/repo slug.

        Args:
            repo_url: e.g. "https://github.com/acme/site", "acme/site.git"
            branch: Branch name (defaults to "main")

        Returns:
            RepositoryReference

        Raises:
            ValueError: If the URL is not a recognisable GitHub repository
        """
        if not repo_url or not repo_url.strip():
            raise ValueError("Repository URL cannot be empty")

        match = _REPO_URL_PATTERN.match(repo_url.strip())
        if not match or not match.group('repo'):
            raise ValueError(
                f"Invalid repository '{repo_url}'. "
                f"Expected https://github.com/<owner>/<repo> or <owner>/<repo>."
            )

        branch = (branch or "main").strip() or "main"
        return cls(owner=match.group('owner'), repo=match.group('repo'), branch=branch)


@dataclass(frozen=True)
class RepositorySession:
    """A configured connection to one repository branch."""

    reference: RepositoryReference
    credentials: Credentials

    @property
    def contents_url(self) -> str:
        return f"{self.credentials.api_url}/repos/{self.reference.slug}/contents"

    @property
    def blobs_url(self) -> str:
        return f"{self.credentials.api_url}/repos/{self.reference.slug}/git/blobs"
