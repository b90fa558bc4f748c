from datetime import datetime, timedelta

import structlog
from pydantic import ValidationError as PydanticValidationError

from keyauth.core.modules.session.models import CachedUser, Session, SessionState, SessionToken
from keyauth.core.modules.session.storage import SESSION_TOKEN_KEY, USER_KEY, SessionStorage
from keyauth.utils import now

logger = structlog.get_logger(__name__)


class SessionManager:
    """Owns the session token and cached user of one client instance.

    State machine::

        ANONYMOUS --begin--> AUTHENTICATING --complete--> AUTHENTICATED
                             AUTHENTICATING --fail------> ANONYMOUS
        AUTHENTICATED --logout/invalidate---------------> ANONYMOUS
        AUTHENTICATED --expiresAt elapsed--> EXPIRED ---> ANONYMOUS

    At most one token is held; a new login overwrites the previous one.
    Storage is written only by complete/update_user/fail/logout/invalidate,
    each as a single set_many call.
    """

    def __init__(self, storage: SessionStorage, application_id: str = "") -> None:
        self._storage = storage
        self._application_id = application_id
        self._state = SessionState.ANONYMOUS
        self._previous_state = SessionState.ANONYMOUS
        self._session: Session | None = None
        self._user: CachedUser | None = None
        self._user_fetched_at: datetime | None = None
        self._restore()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def cached_user(self) -> CachedUser | None:
        """Possibly stale profile. Refresh before trusting privileged fields."""
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self.active_token() is not None

    def begin(self) -> None:
        """Enter AUTHENTICATING for a login or registration."""
        if self._state != SessionState.AUTHENTICATING:
            self._previous_state = self._state
        self._state = SessionState.AUTHENTICATING

    def abort(self) -> None:
        """Undo begin() after an abandoned request. Storage was never touched."""
        if self._state == SessionState.AUTHENTICATING:
            self._state = self._previous_state

    def complete(self, session: Session, user: CachedUser | None = None) -> None:
        """Store a validated session, replacing any previous one."""
        if user is not None and session.user_id is None:
            session = session.model_copy(update={"user_id": user.id})
        self._storage.set_many(
            {
                SESSION_TOKEN_KEY: session.token,
                USER_KEY: user.model_dump_json(by_alias=True) if user is not None else None,
            }
        )
        self._session = session
        self._user = user
        self._user_fetched_at = now() if user is not None else None
        self._state = SessionState.AUTHENTICATED
        logger.info("session_authenticated", application_id=session.application_id, user_id=session.user_id)

    def fail(self) -> None:
        """Login or registration was rejected."""
        self._clear()
        logger.info("session_authentication_failed")

    def logout(self) -> None:
        self._clear()
        logger.info("session_logged_out")

    def invalidate(self) -> None:
        """The API rejected the token (401/403)."""
        self._clear()
        logger.warning("session_invalidated")

    def active_token(self) -> SessionToken | None:
        """Token to attach to user-scoped calls, or None.

        An elapsed expiresAt forces a logout before any further call.
        """
        if self._state != SessionState.AUTHENTICATED or self._session is None:
            return None
        if self._session.is_expired():
            self._state = SessionState.EXPIRED
            logger.info("session_expired", expires_at=self._session.expires_at)
            self._clear()
            return None
        return self._session.token

    def owns(self, token: str) -> bool:
        return self._session is not None and self._session.token == token

    def update_user(self, user: CachedUser) -> None:
        """Refresh the cached profile of the current session."""
        if self._session is None:
            return
        self._storage.set_many({USER_KEY: user.model_dump_json(by_alias=True)})
        self._user = user
        self._user_fetched_at = now()
        if self._session.user_id is None:
            self._session = self._session.model_copy(update={"user_id": user.id})

    def is_user_stale(self, max_age: timedelta) -> bool:
        """True when the cached profile was never fetched in this process or is older than max_age."""
        if self._user is None or self._user_fetched_at is None:
            return True
        return now() - self._user_fetched_at >= max_age

    def _clear(self) -> None:
        self._storage.clear()
        self._session = None
        self._user = None
        self._user_fetched_at = None
        self._state = SessionState.ANONYMOUS

    def _restore(self) -> None:
        token = self._storage.get(SESSION_TOKEN_KEY)
        if not token:
            return
        self._session = Session(token=SessionToken(token), application_id=self._application_id)
        self._state = SessionState.AUTHENTICATED

        raw_user = self._storage.get(USER_KEY)
        if raw_user:
            try:
                self._user = CachedUser.model_validate_json(raw_user)
            except PydanticValidationError:
                logger.warning("cached_user_discarded")
                self._user = None
            else:
                self._session = self._session.model_copy(update={"user_id": self._user.id})
