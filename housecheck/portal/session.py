from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from ..schemas import AuthResponse, Identity
from .client import DataAccessClient
from .errors import AuthenticationError

logger = logging.getLogger(__name__)


class SessionProvider:
    """
    Single source of truth for who the caller is. Created once at the
    application root and handed to every view, which share its client.
    """

    def __init__(self, client: DataAccessClient, session_file: Optional[str | Path] = None):
        self.client = client
        self.session_file = Path(session_file).expanduser() if session_file else None
        self._identity: Optional[Identity] = None

    # ---------- Sign in / out ----------

    def sign_up(self, email: str, password: str) -> Identity:
        return self._start(self.client.sign_up(email, password))

    def sign_in(self, email: str, password: str) -> Identity:
        return self._start(self.client.sign_in(email, password))

    def sign_out(self) -> None:
        try:
            if self.client.has_token:
                self.client.sign_out()
        finally:
            self._clear()

    def expire(self) -> None:
        """Forget a token the backend stopped accepting (expired or revoked)."""
        logger.warning("Session rejected by the backend; signing out locally")
        self._clear()

    def _clear(self) -> None:
        self._identity = None
        self.client.set_token(None)
        if self.session_file and self.session_file.exists():
            self.session_file.unlink()

    def _start(self, auth: AuthResponse) -> Identity:
        self.client.set_token(auth.access_token)
        self._identity = auth.user
        if self.session_file:
            self.session_file.parent.mkdir(parents=True, exist_ok=True)
            self.session_file.write_text(json.dumps({"access_token": auth.access_token}))
        logger.info(f"Signed in as {auth.user.email}")
        return auth.user

    def restore(self) -> bool:
        """Load a previously saved token, if any."""
        if not self.session_file or not self.session_file.exists():
            return False
        try:
            token = json.loads(self.session_file.read_text()).get("access_token")
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.session_file}: {e}")
            return False
        self.client.set_token(token)
        return bool(token)

    # ---------- Identity ----------

    def current_identity(self) -> Optional[Identity]:
        if self._identity is None:
            self._identity = self.client.get_user()
        return self._identity

    def require_identity(self) -> Identity:
        """Gate for every data operation."""
        identity = self.current_identity()
        if identity is None:
            raise AuthenticationError("Please sign in to continue")
        return identity
