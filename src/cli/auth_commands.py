"""Login commands: sign in, sign out and show the signed-in operator."""

import logging

from .base_command import BaseCommand
from .models import ExitCode

logger = logging.getLogger(__name__)


class AuthCommand(BaseCommand):
    """Base for commands that manage the local login session."""

    requires_login = False


class LoginCommand(AuthCommand):
    """Signs in with email and password and persists the session.

    Example:
        >>> LoginCommand(output_handler=output).run("owner@example.org", "secret")
    """

    def run(self, email: str, password: str) -> ExitCode:
        def action() -> None:
            with self.output_handler.spinner("Signing in..."):
                session = self._get_auth_gate().login(email, password)
            logger.debug(f"Session for {session.email} expires at {session.expires_at.isoformat()}")
            self.output_handler.success(f"Signed in as {session.email}")

        return self.execute(action)


class LogoutCommand(AuthCommand):
    """Forgets the persisted session. Safe to run when signed out."""

    def run(self) -> ExitCode:
        def action() -> None:
            self._get_auth_gate().logout()
            self.output_handler.success("Signed out")

        return self.execute(action)


class WhoamiCommand(AuthCommand):
    """Shows the signed-in operator; exits AUTH_ERROR when nobody is."""

    def run(self) -> ExitCode:
        def action() -> ExitCode:
            session = self._get_auth_gate().current_user()
            self.output_handler.print_user(session)
            return ExitCode.SUCCESS if session is not None else ExitCode.AUTH_ERROR

        return self.execute(action)
