"""Auth gate backed by Firebase email/password sign-in.

Only signed-in operators may touch the repository. Sign-in goes through the
Firebase Identity Toolkit REST API; the resulting session is persisted by a
SessionStore, and an expired ID token is renewed from the stored refresh
token through the Secure Token API. The gate never talks to GitHub: repository requests carry
the repository token from src.github_client.auth.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import requests
from dotenv import load_dotenv
from requests.exceptions import ConnectionError, RequestException, Timeout

from src.github_client.errors import APIAccessError, APIUnreachableError, AuthFailureError
from .models import AuthSession
from .session_store import SessionStore

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1"

# Error codes Firebase returns for wrong email/password combinations
CREDENTIAL_ERRORS = (
    'EMAIL_NOT_FOUND',
    'INVALID_PASSWORD',
    'INVALID_LOGIN_CREDENTIALS',
    'INVALID_EMAIL',
    'USER_DISABLED',
    'MISSING_PASSWORD',
)

# Error codes Firebase returns when a refresh token can no longer be used
REFRESH_ERRORS = (
    'TOKEN_EXPIRED',
    'INVALID_REFRESH_TOKEN',
    'USER_DISABLED',
    'USER_NOT_FOUND',
    'INVALID_GRANT_TYPE',
    'MISSING_REFRESH_TOKEN',
)


class FirebaseAuthGate:
    """Email/password login against Firebase Authentication.

    Required environment variables (for login):
        FIREBASE_API_KEY: Web API key of the Firebase project

    Example:
        >>> gate = FirebaseAuthGate()
        >>> gate.login("owner@example.org", "secret")
        >>> gate.current_user().email
        'owner@example.org'
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        api_key: Optional[str] = None,
        http: Optional[requests.Session] = None,
        timeout: float = 30,
    ):
        """Initialize the gate.

        Args:
            store: Session persistence (defaults to .cms-sync/session.yaml)
            api_key: Firebase Web API key (defaults to FIREBASE_API_KEY)
            http: Optional requests Session
            timeout: Request timeout in seconds
        """
        load_dotenv()
        self.store = store or SessionStore()
        self._api_key = api_key
        self._http = http or requests.Session()
        self.timeout = timeout

    def _get_api_key(self, endpoint: str = IDENTITY_TOOLKIT_URL) -> str:
        api_key = self._api_key or os.getenv('FIREBASE_API_KEY')
        if not api_key:
            raise AuthFailureError(endpoint=endpoint, reason="FIREBASE_API_KEY is not set")
        return api_key

    def _post(self, url: str, endpoint: str, **kwargs) -> requests.Response:
        try:
            return self._http.post(
                url, params={'key': self._get_api_key(endpoint)}, timeout=self.timeout, **kwargs
            )
        except (Timeout, ConnectionError) as e:
            raise APIUnreachableError(endpoint=endpoint) from e
        except RequestException as e:
            raise APIAccessError(f"Firebase request failed: {e}") from e

    @staticmethod
    def _payload(response: requests.Response, required: Tuple[str, ...]) -> Dict[str, Any]:
        """Decode a success body, checking the fields we rely on.

        Raises:
            APIAccessError: If the body is not a JSON object or lacks a field
        """
        try:
            data = response.json()
        except ValueError as e:
            raise APIAccessError("Firebase returned a non-JSON body", status_code=response.status_code) from e
        if not isinstance(data, dict):
            raise APIAccessError("Firebase returned an unexpected body", status_code=response.status_code)
        missing = [name for name in required if not data.get(name)]
        if missing:
            raise APIAccessError(
                f"Firebase response is missing {', '.join(missing)}", status_code=response.status_code
            )
        return data

    @staticmethod
    def _expires_at(data: Dict[str, Any], field: str) -> datetime:
        try:
            seconds = int(data.get(field, 3600))
        except (TypeError, ValueError):
            seconds = 3600
        return datetime.now(timezone.utc) + timedelta(seconds=seconds)

    def login(self, email: str, password: str) -> AuthSession:
        """Sign in and persist the session.

        Returns:
            The new AuthSession

        Raises:
            AuthFailureError: If the credentials are rejected or the API key is missing
            APIUnreachableError: If Firebase is unreachable
            APIAccessError: For any other API failure
        """
        url = f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword"
        payload = {'email': email, 'password': password, 'returnSecureToken': True}
        response = self._post(url, IDENTITY_TOOLKIT_URL, json=payload)

        if response.status_code != 200:
            code = self._error_code(response)
            if response.status_code == 400 and code.startswith(CREDENTIAL_ERRORS):
                logger.info(f"Login rejected for {email}: {code}")
                raise AuthFailureError(endpoint=IDENTITY_TOOLKIT_URL, reason="invalid email or password")
            raise APIAccessError(
                f"Firebase sign-in failed: HTTP {response.status_code} {code}".rstrip(),
                status_code=response.status_code,
            )

        data = self._payload(response, ('localId', 'idToken'))
        session = AuthSession(
            email=data.get('email', email),
            user_id=data['localId'],
            id_token=data['idToken'],
            refresh_token=data.get('refreshToken', ''),
            expires_at=self._expires_at(data, 'expiresIn'),
        )
        self.store.save(session)
        logger.info(f"Signed in as {session.email}")
        return session

    def refresh(self, session: AuthSession) -> AuthSession:
        """Exchange the session's refresh token for a new ID token.

        The refreshed session replaces the persisted one.

        Raises:
            AuthFailureError: If the refresh token is rejected or missing
            APIUnreachableError: If Firebase is unreachable
            APIAccessError: For any other API failure
        """
        if not session.refresh_token:
            raise AuthFailureError(endpoint=SECURE_TOKEN_URL, reason="no refresh token")

        response = self._post(
            f"{SECURE_TOKEN_URL}/token",
            SECURE_TOKEN_URL,
            data={'grant_type': 'refresh_token', 'refresh_token': session.refresh_token},
        )

        if response.status_code != 200:
            code = self._error_code(response)
            if response.status_code in (400, 401, 403) and code.startswith(REFRESH_ERRORS):
                raise AuthFailureError(
                    endpoint=SECURE_TOKEN_URL, reason=f"session can no longer be refreshed ({code})"
                )
            raise APIAccessError(
                f"Firebase token refresh failed: HTTP {response.status_code} {code}".rstrip(),
                status_code=response.status_code,
            )

        data = self._payload(response, ('id_token',))
        refreshed = AuthSession(
            email=session.email,
            user_id=data.get('user_id', session.user_id),
            id_token=data['id_token'],
            refresh_token=data.get('refresh_token', session.refresh_token),
            expires_at=self._expires_at(data, 'expires_in'),
        )
        self.store.save(refreshed)
        logger.info(f"Refreshed session for {refreshed.email}")
        return refreshed

    @staticmethod
    def _error_code(response: requests.Response) -> str:
        try:
            return str(response.json().get('error', {}).get('message', ''))
        except (ValueError, AttributeError):
            return ''

    def current_user(self) -> Optional[AuthSession]:
        """The signed-in operator, or None if nobody is.

        An expired session is refreshed first; a session whose refresh
        token is rejected counts as signed out.

        Raises:
            APIUnreachableError, APIAccessError: If a needed refresh fails
                for reasons other than a rejected token
        """
        session = self.store.load()
        if session is None:
            return None
        if not session.is_expired():
            return session

        logger.info(f"Session for {session.email} has expired, refreshing")
        try:
            return self.refresh(session)
        except AuthFailureError as e:
            logger.info(f"Could not refresh session for {session.email}: {e}")
            return None

    def require_user(self) -> AuthSession:
        """Like current_user() but raises when nobody is signed in.

        Raises:
            AuthFailureError: If there is no valid session
        """
        session = self.current_user()
        if session is None:
            raise AuthFailureError(endpoint=IDENTITY_TOOLKIT_URL, reason="not signed in")
        return session

    def logout(self) -> None:
        """Forget the persisted session."""
        self.store.clear()
        logger.info("Signed out")
