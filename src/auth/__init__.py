"""Auth gate for the editing tools.

Key classes:
    FirebaseAuthGate: login / logout / current_user via Firebase REST
    SessionStore: Persists the signed-in session to YAML
    AuthSession: A signed-in operator
"""

from .models import AuthSession
from .session_store import SessionStore
from .firebase_gate import FirebaseAuthGate

__all__ = [
    "AuthSession",
    "SessionStore",
    "FirebaseAuthGate",
]
