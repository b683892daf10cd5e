# storeadmin/session.py
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .client import AdminClient, RequestContext
from .errors import ApiError
from .models import User

logger = logging.getLogger(__name__)

TOKEN_KEY = "adminToken"


class TokenStore:
    """A single token persisted as {"adminToken": "..."} in a JSON file."""

    def __init__(self, path: Union[str, Path], key: str = TOKEN_KEY):
        self.path = Path(path)
        self.key = key

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable token file %s: %s", self.path, e)
            return None
        token = data.get(self.key) if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({self.key: token}), encoding="utf-8")

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


@dataclass(frozen=True)
class LoginResult:
    success: bool
    message: Optional[str] = None


class AuthSession:
    def __init__(self, client: AdminClient, store: TokenStore):
        self.client = client
        self.store = store
        self.token: Optional[str] = None
        self.user: Optional[User] = None
        # nothing protected may be shown until restore() or login() settles
        self.loading = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def context(self) -> RequestContext:
        return RequestContext(token=self.token)

    def restore(self) -> Optional[User]:
        """Cold start: pick up a persisted token and re-derive the user from the server."""
        try:
            self.token = self.store.load()
            if not self.token:
                return None
            return self.fetch_current_user()
        finally:
            self.loading = False

    def login(self, username: str, password: str) -> LoginResult:
        try:
            token, user = self.client.login(username, password)
        except ApiError as e:
            return LoginResult(False, e.user_message("Login failed"))
        finally:
            self.loading = False
        self.store.save(token)
        self.token = token
        self.user = user
        logger.info("logged in as %s", user.username)
        return LoginResult(True)

    def logout(self) -> None:
        self.store.clear()
        self.token = None
        self.user = None

    def fetch_current_user(self) -> Optional[User]:
        if not self.token:
            self.logout()
            return None
        try:
            self.user = self.client.me(self.context())
        except ApiError as e:
            logger.warning("session check failed, logging out: %s", e)
            self.logout()
            return None
        return self.user
