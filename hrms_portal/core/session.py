"""
Session controller

Owns the signed-in user and bearer token of one browser. Route handlers
receive a loaded controller as a dependency and only read from it; the
controller and the expiry watcher are the only writers of the persisted
token and user entries.
"""

import enum
import json
import logging
import time
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from hrms_portal.core.notifications import Notifier
from hrms_portal.core.state import BrowserStorage, TOKEN_KEY, USER_KEY
from hrms_portal.utils.token import TOKEN_EXPIRY_BUFFER_MS, is_token_expired

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."

ROLE_HOME_ROUTES = {
    "admin": "/admin",
    "employee": "/employee",
}

class SessionState(str, enum.Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"

class SessionUser(BaseModel):
    """User as returned by the backend at login"""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    name: str
    role: str
    email: Optional[str] = None

def is_login_view(path: Optional[str]) -> bool:
    return bool(path) and path.startswith(LOGIN_PATH)

def _is_under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")

class SessionController:
    """
    State machine over {LOADING, AUTHENTICATED, UNAUTHENTICATED}.

    Args:
        storage: The browser's persisted storage
        notifier: Toast queue of the same browser
        clock: Returns the current time in seconds since epoch
        buffer_ms: Expiry safety buffer passed to the token check
    """

    def __init__(
        self,
        storage: BrowserStorage,
        notifier: Notifier,
        clock: Callable[[], float] = time.time,
        buffer_ms: int = TOKEN_EXPIRY_BUFFER_MS
    ):
        self.storage = storage
        self.notifier = notifier
        self.clock = clock
        self.buffer_ms = buffer_ms
        self.state = SessionState.LOADING
        self.user: Optional[SessionUser] = None
        self.token: Optional[str] = None

    # ============ Queries ============

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    @property
    def role(self) -> Optional[str]:
        return self.user.role if self.is_authenticated else None

    def token_expired(self, token: Optional[str]) -> bool:
        return is_token_expired(token, now=self.clock(), buffer_ms=self.buffer_ms)

    def home_route(self) -> str:
        if not self.is_authenticated:
            return LOGIN_PATH
        return ROLE_HOME_ROUTES.get(self.user.role, LOGIN_PATH)

    def guard(self, path: str) -> Optional[str]:
        """
        Decide whether the current session may view a path.

        Returns:
            Redirect target, or None if the path may be rendered
        """
        home = self.home_route()

        if is_login_view(path):
            return home if home != LOGIN_PATH else None

        for role, prefix in ROLE_HOME_ROUTES.items():
            if _is_under(path, prefix):
                if self.role == role:
                    return None
                return home

        if path == "/":
            return home

        return None

    # ============ Transitions ============

    def load(self, current_path: Optional[str] = None) -> SessionState:
        """
        Read the persisted session and settle on a state.

        An expired token clears storage; the expiry toast is only queued
        outside the login view.
        """
        token = self.storage.get_item(TOKEN_KEY)
        raw_user = self.storage.get_item(USER_KEY)

        if not token:
            if raw_user:
                self._clear()
            self._become_unauthenticated()
            return self.state

        if self.token_expired(token):
            logger.info(f"Stored token expired: browser={self.storage.browser_id}")
            if not self.expire(current_path):
                self._clear()
                self._become_unauthenticated()
            return self.state

        user = self._parse_user(raw_user)
        if user is None:
            logger.warning(f"Discarding session without readable user: browser={self.storage.browser_id}")
            self._clear()
            self._become_unauthenticated()
            return self.state

        self.user = user
        self.token = token
        self.state = SessionState.AUTHENTICATED
        return self.state

    def login(self, user: SessionUser, token: str):
        self.storage.set_item(TOKEN_KEY, token)
        self.storage.set_item(USER_KEY, user.model_dump_json())
        self.user = user
        self.token = token
        self.state = SessionState.AUTHENTICATED
        logger.info(f"User logged in: id={user.id}, role={user.role}")

    def logout(self):
        if self.user:
            logger.info(f"User logged out: id={self.user.id}")
        self._clear()
        self._become_unauthenticated()

    def expire(self, current_path: Optional[str] = None) -> bool:
        """
        Run the logout side effects for an expired or rejected credential.

        Returns:
            True if the caller should navigate to the login view, False when
            already on it (nothing is done then)
        """
        if is_login_view(current_path):
            return False

        self._clear()
        self._become_unauthenticated()
        self.notifier.error(SESSION_EXPIRED_MESSAGE)
        logger.info(f"Session expired: browser={self.storage.browser_id}")
        return True

    def check_expiry(self, current_path: Optional[str] = None) -> bool:
        """
        Periodic re-validation of the persisted token.

        Returns:
            True if an expiry logout fired
        """
        token = self.storage.get_item(TOKEN_KEY)
        if token and self.token_expired(token):
            return self.expire(current_path)
        return False

    # ============ Helpers ============

    def _clear(self):
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)

    def _become_unauthenticated(self):
        self.user = None
        self.token = None
        self.state = SessionState.UNAUTHENTICATED

    @staticmethod
    def _parse_user(raw_user: Optional[str]) -> Optional[SessionUser]:
        if not raw_user:
            return None
        try:
            return SessionUser(**json.loads(raw_user))
        except (ValueError, TypeError, ValidationError):
            return None
