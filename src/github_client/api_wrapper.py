"""API wrapper for the GitHub REST Contents API.

This module wraps a requests Session and provides error translation from
HTTP responses to our typed exception hierarchy. Revision tokens are git
blob SHAs: GitHub verifies them atomically on PUT and DELETE, which gives
the optimistic-concurrency check the synchronizer relies on.

Every operation is single-shot. There is no retry here, not
even for rate limits; retry policy belongs to the caller.
"""

import base64
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from .errors import (
    AuthFailureError,
    NotFoundError,
    ConflictError,
    AlreadyExistsError,
    APIUnreachableError,
    APIAccessError,
    InvalidContentError,
)
from .models import FileEntry, RevisionedContent
from .session import RepositorySession

logger = logging.getLogger(__name__)

GITHUB_API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30


class GitHubContentsClient:
    """Wrapper around the GitHub Contents API with error translation.

    This class provides a thin wrapper over the Contents API that:
    1. Attaches the session's bearer token to every request
    2. Encodes and decodes base64 file bodies
    3. Sends revision tokens (blob SHAs) for conditional writes and deletes
    4. Translates HTTP errors to typed exceptions

    Example:
        >>> session = RepositorySession(RepositoryReference("acme", "site"), creds)
        >>> client = GitHubContentsClient(session)
        >>> content = client.read_content("about.json")
        >>> token = client.write_content("about.json", b"{}", "Update", content.revision_token)
    """

    def __init__(
        self,
        session: RepositorySession,
        http: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the client for one repository session.

        Args:
            session: Repository coordinates and credentials
            http: Optional pre-built requests Session (created lazily otherwise)
            timeout: Per-request timeout in seconds
        """
        self.session = session
        self.timeout = timeout
        self._http = http

    @property
    def branch(self) -> str:
        return self.session.reference.branch

    def _get_http(self) -> requests.Session:
        """Get or create the underlying requests Session.

        Returns:
            requests.Session with authentication headers installed
        """
        if self._http is None:
            http = requests.Session()
            http.headers.update({
                'Authorization': f'Bearer {self.session.credentials.token}',
                'Accept': 'application/vnd.github+json',
                'X-GitHub-Api-Version': GITHUB_API_VERSION,
                'User-Agent': 'github-page-sync',
            })
            self._http = http
        return self._http

    def _validate_path(self, path: str, allow_root: bool = False) -> str:
        """Validate and normalise a repository path.

        Rejects traversal segments and absolute paths so that a crafted
        page or media name can never address outside the repository tree.

        Args:
            path: The path to validate
            allow_root: Whether the empty path (repository root) is allowed

        Returns:
            str: The normalised path

        Raises:
            ValueError: If the path is empty (when not allowed) or unsafe
        """
        path = (path or '').strip()
        if not path:
            if allow_root:
                return ''
            raise ValueError("path cannot be empty")

        if path.startswith('/'):
            raise ValueError(f"Invalid path '{path}': must be relative to the repository root")

        segments = path.split('/')
        if any(segment in ('', '.', '..') for segment in segments):
            raise ValueError(f"Invalid path '{path}': empty or traversal segments are not allowed")

        return path

    def _contents_url(self, path: str) -> str:
        if not path:
            return self.session.contents_url
        return f"{self.session.contents_url}/{quote(path, safe='/')}"

    def _sanitize_credentials(self, text: str) -> str:
        """Sanitize error messages to prevent credential leakage.

        Args:
            text: The error message or log text to sanitize

        Returns:
            str: Sanitized text with tokens masked

        Example:
            >>> client._sanitize_credentials("Authorization: Bearer ghp_abc123")
            'Authorization: ***REDACTED***'
        """
        if not text:
            return text

        sanitized = text

        # Authorization headers first, they contain the bearer token
        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )

        sanitized = re.sub(
            r'(Bearer|token)\s+[^\s\n\r]+',
            r'\1 ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )

        # GitHub token formats: ghp_, gho_, ghu_, ghs_, ghr_, github_pat_
        sanitized = re.sub(
            r'\b(gh[pousr]_[A-Za-z0-9]{16,}|github_pat_[A-Za-z0-9_]{20,})\b',
            '***REDACTED***',
            sanitized
        )

        # The configured token itself, whatever its format
        token = self.session.credentials.token
        if token and len(token) >= 8:
            sanitized = sanitized.replace(token, '***REDACTED***')

        return sanitized

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or ''
        if isinstance(data, dict):
            return str(data.get('message', ''))
        return ''

    def _translate_error(
        self,
        response: requests.Response,
        operation: str,
        path: str,
        revision_token: Optional[str] = None,
    ) -> Exception:
        """Translate an unsuccessful HTTP response to a typed exception.

        Args:
            response: The non-2xx response
            operation: Operation name ("list", "read", "write" or "delete")
            path: Repository path the operation targeted
            revision_token: Token sent with the request, if any

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        status_code = response.status_code
        message = self._sanitize_credentials(self._error_message(response))
        lowered = message.lower()

        if status_code == 401:
            return AuthFailureError(endpoint=self.session.credentials.api_url, reason=message or None)

        if status_code in (403, 429):
            remaining = response.headers.get('X-RateLimit-Remaining') if response.headers else None
            if status_code == 429 or remaining == '0' or 'rate limit' in lowered:
                logger.error(f"GitHub rate limit hit during {operation}({path})")
                return APIAccessError(
                    f"GitHub API rate limit exceeded during {operation}({path})",
                    status_code=status_code,
                )
            return AuthFailureError(endpoint=self.session.credentials.api_url, reason=message or None)

        if status_code == 404:
            return NotFoundError(path)

        if status_code == 409:
            return ConflictError(path, revision_token)

        if status_code == 422 and operation == 'write':
            # No sha sent: the path exists. A sha was sent: it did not match.
            if revision_token:
                return ConflictError(path, revision_token)
            return AlreadyExistsError(path)

        if status_code == 422 and operation == 'delete':
            return ConflictError(path, revision_token)

        logger.error(f"API operation failed: {operation}({path}) - HTTP {status_code} {message}")
        return APIAccessError(
            f"GitHub API failure during {operation}({path}): HTTP {status_code}",
            status_code=status_code,
        )

    def _request(
        self,
        method: str,
        url: str,
        operation: str,
        path: str,
        revision_token: Optional[str] = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Issue one HTTP request and translate failures.

        Raises:
            APIUnreachableError: On connection errors and timeouts
            APIAccessError: On any other transport failure
            RepositoryError: Subclass matching the HTTP status
        """
        try:
            response = self._get_http().request(method, url, timeout=self.timeout, **kwargs)
        except (Timeout, ConnectionError) as e:
            logger.error(
                f"GitHub unreachable during {operation}({path}): "
                f"{self._sanitize_credentials(str(e))}"
            )
            raise APIUnreachableError(endpoint=self.session.credentials.api_url) from e
        except RequestException as e:
            message = self._sanitize_credentials(str(e))
            logger.error(f"GitHub request failed during {operation}({path}): {message}")
            raise APIAccessError(f"GitHub request failed during {operation}({path}): {message}") from e

        if not 200 <= response.status_code < 300:
            raise self._translate_error(response, operation, path, revision_token)
        return response

    @staticmethod
    def _json(response: requests.Response, operation: str, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise APIAccessError(
                f"GitHub returned a non-JSON body during {operation}({path})",
                status_code=response.status_code,
            ) from e

    def list_entries(self, path: str = '') -> List[FileEntry]:
        """List the files directly inside a directory.

        Args:
            path: Directory path (empty string for the repository root)

        Returns:
            List of FileEntry for items of type "file" (subdirectories,
            symlinks and submodules are skipped)

        Raises:
            NotFoundError: If the directory doesn't exist on the branch
            AuthFailureError: If credentials are invalid
            InvalidContentError: If the path is a file, not a directory
            APIUnreachableError: If the API is unreachable
            APIAccessError: For any other API failure
        """
        path = self._validate_path(path, allow_root=True)
        logger.debug(f"Listing '{path or '/'}' on {self.session.reference.slug}@{self.branch}")

        response = self._request(
            'GET', self._contents_url(path), 'list', path,
            params={'ref': self.branch},
        )
        data = self._json(response, 'list', path)

        if not isinstance(data, list):
            raise InvalidContentError(path, "is a file, not a directory")

        entries = [
            FileEntry.from_path(item['path'])
            for item in data
            if item.get('type') == 'file' and item.get('path')
        ]
        logger.debug(f"  Found {len(entries)} files")
        return entries

    def read_content(self, path: str) -> RevisionedContent:
        """Read a file and the revision token it is currently at.

        Files larger than 1 MB come back from the Contents API without a
        body; those are fetched through the git blobs endpoint instead.

        Args:
            path: File path

        Returns:
            RevisionedContent with raw bytes and the blob SHA

        Raises:
            NotFoundError: If the file doesn't exist
            InvalidContentError: If the path is a directory or not a file
            AuthFailureError: If credentials are invalid
            APIUnreachableError: If the API is unreachable
            APIAccessError: For any other API failure
        """
        path = self._validate_path(path)
        logger.debug(f"Reading '{path}' @{self.branch}")

        response = self._request(
            'GET', self._contents_url(path), 'read', path,
            params={'ref': self.branch},
        )
        data = self._json(response, 'read', path)

        if isinstance(data, list):
            raise InvalidContentError(path, "is a directory, not a file")
        if data.get('type') != 'file':
            raise InvalidContentError(path, f"is a {data.get('type', 'unknown')}, not a file")

        sha = data['sha']
        if data.get('encoding') == 'base64' and data.get('content') is not None:
            content = self._decode(data['content'], path)
        else:
            content = self._read_blob(sha, path)

        logger.debug(f"  Read {len(content)} bytes at {sha[:12]}")
        return RevisionedContent(path=path, content=content, revision_token=sha)

    def _read_blob(self, sha: str, path: str) -> bytes:
        response = self._request('GET', f"{self.session.blobs_url}/{sha}", 'read', path)
        data = self._json(response, 'read', path)
        if data.get('encoding') != 'base64':
            raise APIAccessError(f"Unsupported blob encoding for {path}: {data.get('encoding')}")
        return self._decode(data.get('content', ''), path)

    @staticmethod
    def _decode(encoded: str, path: str) -> bytes:
        try:
            # GitHub wraps base64 bodies at 60 columns
            return base64.b64decode(encoded.replace('\n', ''), validate=True)
        except ValueError as e:
            raise InvalidContentError(path, "malformed base64 body") from e

    def write_content(
        self,
        path: str,
        content: bytes,
        message: str,
        revision_token: Optional[str] = None,
    ) -> str:
        """Create or update a file with a single commit.

        When revision_token is given, GitHub applies the write only if it
        still matches the stored blob; otherwise the path must not exist.

        Args:
            path: File path
            content: New file bytes (str is encoded as UTF-8)
            message: Commit message
            revision_token: Blob SHA last observed for the path, or None
                            for a path known not to exist

        Returns:
            str: The new revision token (blob SHA)

        Raises:
            ConflictError: If revision_token is stale
            AlreadyExistsError: If no token was given and the path exists
            AuthFailureError: If credentials are invalid
            APIUnreachableError: If the API is unreachable
            APIAccessError: For any other API failure
        """
        path = self._validate_path(path)
        if isinstance(content, str):
            content = content.encode('utf-8')

        payload: Dict[str, Any] = {
            'message': message,
            'content': base64.b64encode(content).decode('ascii'),
            'branch': self.branch,
        }
        if revision_token:
            payload['sha'] = revision_token

        logger.debug(
            f"Writing '{path}' ({len(content)} bytes) @{self.branch}"
            + (f" over {revision_token[:12]}" if revision_token else " as new file")
        )

        response = self._request(
            'PUT', self._contents_url(path), 'write', path,
            revision_token=revision_token, json=payload,
        )
        data = self._json(response, 'write', path)
        new_token = data['content']['sha']

        logger.info(f"Committed '{path}' -> {new_token[:12]}")
        return new_token

    def delete_content(self, path: str, revision_token: str, message: Optional[str] = None) -> None:
        """Delete a file with a single commit.

        Args:
            path: File path
            revision_token: Blob SHA last observed for the path
            message: Commit message (defaults to "Delete <name>")

        Raises:
            ConflictError: If revision_token is stale
            NotFoundError: If the file is already gone
            AuthFailureError: If credentials are invalid
            APIUnreachableError: If the API is unreachable
            APIAccessError: For any other API failure
        """
        path = self._validate_path(path)
        if not revision_token:
            raise ValueError("revision_token is required to delete a file")

        payload = {
            'message': message or f"Delete {path.rsplit('/', 1)[-1]}",
            'sha': revision_token,
            'branch': self.branch,
        }
        logger.debug(f"Deleting '{path}' at {revision_token[:12]}")

        self._request(
            'DELETE', self._contents_url(path), 'delete', path,
            revision_token=revision_token, json=payload,
        )
        logger.info(f"Deleted '{path}'")
