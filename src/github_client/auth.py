"""Authentication module for loading repository credentials.

This module loads the GitHub bearer token from environment variables using
python-dotenv. The token is attached to every Contents API request by the
client; it is never cached to disk or logged.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import AuthFailureError


GITHUB_API_URL = "https://api.github.com"


class Credentials(NamedTuple):
    """GitHub API credentials."""
    token: str
    api_url: str = GITHUB_API_URL


class Authenticator:
    """Loads and validates GitHub credentials from environment variables.

    Required environment variables:
        GITHUB_TOKEN: Personal access token (or fine-grained token) with
                      contents read/write permission on the repository

    Optional environment variables:
        GITHUB_API_URL: API base URL (defaults to https://api.github.com)

    Raises:
        AuthFailureError: If the token is missing

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
    """

    def __init__(self, env_file: Optional[str] = None):
        """Initialize the authenticator by loading environment variables.

        Args:
            env_file: Optional path to a .env file. Defaults to python-dotenv's
                      lookup of a .env file in the current directory tree.
        """
        load_dotenv(env_file)

    def get_credentials(self) -> Credentials:
        """Get GitHub credentials from environment variables.

        Returns:
            Credentials: A named tuple containing token and api_url

        Raises:
            AuthFailureError: If GITHUB_TOKEN is missing
        """
        token = os.getenv('GITHUB_TOKEN')
        api_url = os.getenv('GITHUB_API_URL') or GITHUB_API_URL

        if not token or not token.strip():
            raise AuthFailureError(
                endpoint=api_url,
                reason="GITHUB_TOKEN is not set",
            )

        return Credentials(token=token.strip(), api_url=api_url.rstrip('/'))
