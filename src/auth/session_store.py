"""Persisted auth session file.

The signed-in session is kept in .cms-sync/session.yaml so that separate
CLI invocations share a login. A missing or unreadable file means nobody
is signed in.

Session file structure:
    email: "owner@example.org"
    user_id: "abc123"
    id_token: "..."
    refresh_token: "..."
    expires_at: "2024-01-15T10:30:00+00:00"
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional

import yaml

from .models import AuthSession

logger = logging.getLogger(__name__)

DEFAULT_SESSION_PATH = os.path.join('.cms-sync', 'session.yaml')

REQUIRED_FIELDS = ('email', 'user_id', 'id_token', 'refresh_token', 'expires_at')


class SessionStore:
    """Loads, saves and clears the persisted AuthSession."""

    def __init__(self, session_path: str = DEFAULT_SESSION_PATH):
        self.session_path = session_path

    def load(self) -> Optional[AuthSession]:
        """Load the persisted session.

        Returns:
            AuthSession, or None if missing or corrupted
        """
        try:
            with open(self.session_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f.read())
        except FileNotFoundError:
            return None
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable session file {self.session_path}: {e}")
            return None

        if not isinstance(data, dict) or any(field not in data for field in REQUIRED_FIELDS):
            logger.warning(f"Ignoring malformed session file {self.session_path}")
            return None

        try:
            expires_at = datetime.fromisoformat(str(data['expires_at']))
        except ValueError:
            logger.warning(f"Ignoring session with invalid expiry in {self.session_path}")
            return None
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        return AuthSession(
            email=str(data['email']),
            user_id=str(data['user_id']),
            id_token=str(data['id_token']),
            refresh_token=str(data['refresh_token']),
            expires_at=expires_at,
        )

    def save(self, session: AuthSession) -> None:
        """Write the session file (owner-readable only)."""
        directory = os.path.dirname(self.session_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        data = {
            'email': session.email,
            'user_id': session.user_id,
            'id_token': session.id_token,
            'refresh_token': session.refresh_token,
            'expires_at': session.expires_at.isoformat(),
        }
        fd = os.open(self.session_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def clear(self) -> None:
        """Remove the session file; a no-op if it is already gone."""
        try:
            os.remove(self.session_path)
        except FileNotFoundError:
            pass
