"""Data models for the auth gate."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class AuthSession:
    """A signed-in operator.

    Attributes:
        email: Account email address
        user_id: Firebase user id (localId)
        id_token: Firebase ID token
        refresh_token: Firebase refresh token
        expires_at: When id_token stops being valid (UTC)
    """

    email: str
    user_id: str
    id_token: str
    refresh_token: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at
