# client/session.py
import enum
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from client.agent import Agent
from client.errors import ApiError
from schemas.site import SiteOut
from schemas.user import AccountResponse

logger = logging.getLogger(__name__)

LANDING_PATH = "/"
APP_PATH = "/app"
SESSION_EXPIRED_NOTICE = "Session expired. Please log in again"


class AuthState(str, enum.Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    SESSION_EXPIRED = "session_expired"


class SessionStore:
    """Persists the account projection between runs as a JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[AccountResponse]:
        if not self.path.exists():
            return None
        try:
            return AccountResponse.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as e:
            # A corrupt file counts as no session
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None

    def save(self, account: AccountResponse) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(account.model_dump_json(by_alias=True), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class Session:
    """Authentication state of one client.

    Lifecycle: ``restore_session()`` hydrates from the store at startup;
    ``sign_out()`` or a rejected restore clears it again. Usable as a context
    manager that restores on enter and closes the HTTP client on exit.
    """

    def __init__(self, agent: Agent, store: SessionStore):
        self.agent = agent
        self.store = store
        self.state = AuthState.ANONYMOUS
        self.history: List[AuthState] = [self.state]
        self.user: Optional[AccountResponse] = None
        self.selected_site: Optional[SiteOut] = None
        self.location = LANDING_PATH
        self.notice: Optional[str] = None

    def __enter__(self):
        self.restore_session()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.agent.close()

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    def _transition(self, state: AuthState) -> None:
        logger.debug("Session %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _hydrate(self, account: AccountResponse) -> None:
        self.user = account
        self.agent.token = account.token
        self.selected_site = next((s for s in account.sites if s.id == account.default_site), None)

    def _authenticated(self, account: AccountResponse) -> AccountResponse:
        self._hydrate(account)
        self.store.save(account)
        self.notice = None
        self.location = APP_PATH
        self._transition(AuthState.AUTHENTICATED)
        return account

    def _clear(self) -> None:
        self.user = None
        self.selected_site = None
        self.agent.token = None
        self.store.clear()
        self.location = LANDING_PATH

    def login(self, email: str, password: str) -> AccountResponse:
        self._transition(AuthState.AUTHENTICATING)
        try:
            account = self.agent.login(email, password)
        except ApiError:
            self._transition(AuthState.ANONYMOUS)
            raise
        return self._authenticated(account)

    def register(self, email: str, password: str, first_name: Optional[str] = None,
                 surname: Optional[str] = None) -> AccountResponse:
        self.agent.register(email, password, first_name, surname)
        return self.login(email, password)

    def set_password(self, token: str, password: str) -> AccountResponse:
        self._transition(AuthState.AUTHENTICATING)
        try:
            account = self.agent.set_password(token, password)
        except ApiError:
            self._transition(AuthState.ANONYMOUS)
            raise
        return self._authenticated(account)

    def restore_session(self) -> bool:
        """Optimistically resume a stored session, then confirm it with the server.

        Returns True when the server accepted the stored token.
        """
        stored = self.store.load()
        if stored is None:
            return False

        self._hydrate(stored)
        self._transition(AuthState.AUTHENTICATED)
        try:
            account = self.agent.current_user()
        except ApiError as e:
            logger.warning("Stored session rejected: %r", e)
            self._transition(AuthState.SESSION_EXPIRED)
            self._clear()
            self.notice = SESSION_EXPIRED_NOTICE
            self._transition(AuthState.ANONYMOUS)
            return False

        self._authenticated(account)
        return True

    def sign_out(self) -> None:
        self._clear()
        self._transition(AuthState.ANONYMOUS)

    def select_site(self, site_id: int) -> SiteOut:
        if self.user is None:
            raise RuntimeError("Not signed in")
        site = next((s for s in self.user.sites if s.id == site_id), None)
        if site is None:
            raise ValueError(f"Not a member of site {site_id}")
        self.selected_site = site
        return site
