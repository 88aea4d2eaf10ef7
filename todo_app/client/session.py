"""
Session gate - decides whether a view may render for the cached identity.

The identity is cached on disk after login and trusted until logout; there
is no expiry. Views call `mount()` first and bail out when it returns None.
"""
import json
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import BaseModel, ValidationError

from todo_app.client.api_client import TodoApiClient
from todo_app.config import get_settings
from todo_app.utils.logger import get_logger

logger = get_logger(__name__)

LOGIN_PATH = "/auth/login"
HOME_PATH = "/home"


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class Identity(BaseModel):
    id: Union[int, str]
    username: str


class IdentityCache:
    """JSON file holding the logged-in user"""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or get_settings().SESSION_FILE).expanduser()

    def load(self) -> Optional[Identity]:
        if not self.path.exists():
            return None
        try:
            return Identity.model_validate(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable session cache {self.path}: {e}")
            return None

    def save(self, identity: Identity) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(identity.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionGate:
    def __init__(self, cache: IdentityCache, navigate: Optional[Callable[[str], None]] = None):
        self.cache = cache
        self._navigate = navigate
        self.state = SessionState.UNAUTHENTICATED
        self.identity: Optional[Identity] = None
        self.location: Optional[str] = None

    def _go(self, path: str) -> None:
        self.location = path
        if self._navigate is not None:
            self._navigate(path)

    def mount(self) -> Optional[Identity]:
        """Authenticate from the cache, or redirect to login"""
        identity = self.cache.load()
        if identity is None:
            self.state = SessionState.UNAUTHENTICATED
            self.identity = None
            self._go(LOGIN_PATH)
            return None
        self.state = SessionState.AUTHENTICATED
        self.identity = identity
        return identity

    async def login(self, client: TodoApiClient, username: str, password: str) -> Identity:
        """Verify credentials with the API; ApiError propagates on failure"""
        identity = Identity.model_validate(await client.login(username, password))
        self.cache.save(identity)
        self.state = SessionState.AUTHENTICATED
        self.identity = identity
        logger.info(f"Logged in as {identity.username}")
        self._go(HOME_PATH)
        return identity

    def logout(self) -> None:
        self.cache.clear()
        self.state = SessionState.UNAUTHENTICATED
        self.identity = None
        self._go(LOGIN_PATH)
