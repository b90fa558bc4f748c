import json
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, Self

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from keyauth.config import Config
from keyauth.core.modules.session.models import AuthResult, CachedUser, Session
from keyauth.core.modules.session.service import SessionManager
from keyauth.core.modules.session.storage import open_session_storage
from keyauth.core.modules.transport.client import RawResponse, SignedRequestClient
from keyauth.errors import DecodeError, NetworkError, ServerError

logger = structlog.get_logger(__name__)

REGISTER_PATH = "/api/users/register"
LOGIN_PATH = "/api/users/login"
CURRENT_USER_PATH = "/api/users/me"
HEALTH_PATH = "/health"

DEFAULT_USER_MAX_AGE = timedelta(minutes=5)


class Envelope[T](BaseModel):
    """Uniform result of every facade operation."""

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "Envelope[T]":
        return cls(success=False, error=error)


class RegisterProfile(BaseModel):
    """Profile posted to the registration endpoint."""

    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    email: str = Field(..., min_length=1, description="Email address used to log in")
    password: str = Field(..., min_length=1, description="Password")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthFacade:
    """Public auth operations for one client instance.

    Composes a SignedRequestClient with an injected SessionManager. Transport,
    HTTP and decoding failures come back in the envelope's ``error`` field;
    only ConfigurationError (no secret key) propagates.
    """

    def __init__(
        self,
        client: SignedRequestClient,
        sessions: SessionManager,
        user_max_age: timedelta = DEFAULT_USER_MAX_AGE,
    ) -> None:
        self._client = client
        self._sessions = sessions
        self._user_max_age = user_max_age

    @classmethod
    def from_config(cls, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> Self:
        """Standalone facade for a trusted process that holds the secret itself.

        Session state survives restarts when ``session_store_path`` is set.
        """
        client = SignedRequestClient(
            config.application_credential(), config.api_url, timeout=config.request_timeout, transport=transport
        )
        sessions = SessionManager(open_session_storage(config.session_store_path), application_id=client.application_id)
        return cls(client, sessions, user_max_age=timedelta(seconds=config.user_max_age_seconds))

    @property
    def sessions(self) -> SessionManager:
        return self._sessions

    async def register(self, profile: RegisterProfile) -> Envelope[dict[str, Any]]:
        """Create a user for this application and start a session."""
        body = profile.model_dump_json(by_alias=True)
        return await self._authenticate(lambda: self._client.call("POST", REGISTER_PATH, body), follow_up=False)

    async def login(self, email: str, password: str) -> Envelope[dict[str, Any]]:
        """Log in, then attach the user's profile before completing the session."""
        body = json.dumps({"email": email, "password": password}, separators=(",", ":"))
        return await self._authenticate(lambda: self._client.call("POST", LOGIN_PATH, body), follow_up=True)

    async def get_current_user(self, session_token: str | None = None) -> Envelope[dict[str, Any]]:
        """Fetch the authoritative profile for a session token.

        Defaults to the managed session. A 401/403 for the managed token
        invalidates it.
        """
        token = session_token or self._sessions.active_token()
        if not token:
            return Envelope.failure("Not authenticated")

        try:
            envelope = _unwrap(await self._client.call("GET", CURRENT_USER_PATH, session_token=token))
        except ServerError as e:
            if e.invalidates_session and self._sessions.owns(token):
                self._sessions.invalidate()
            return Envelope.failure(str(e))
        except (NetworkError, DecodeError) as e:
            return Envelope.failure(str(e))

        if envelope.success and self._sessions.owns(token):
            user = _parse_user(envelope.data)
            if user is not None:
                self._sessions.update_user(user)
        return envelope

    async def current_user(self, max_age: timedelta | None = None) -> Envelope[dict[str, Any]]:
        """Cached profile while fresh, refreshed from the API otherwise."""
        if not self._sessions.is_authenticated:
            return Envelope.failure("Not authenticated")
        cached = self._sessions.cached_user
        if cached is not None and not self._sessions.is_user_stale(max_age or self._user_max_age):
            return Envelope(success=True, data=cached.profile())
        return await self.get_current_user()

    def logout(self) -> None:
        self._sessions.logout()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def check_connectivity(self) -> bool:
        """Unsigned liveness probe."""
        try:
            await self._client.probe(HEALTH_PATH)
        except (NetworkError, ServerError, DecodeError) as e:
            logger.info("connectivity_check_failed", error=str(e))
            return False
        return True

    async def _authenticate(
        self, send: Callable[[], Awaitable[RawResponse]], follow_up: bool
    ) -> Envelope[dict[str, Any]]:
        self._sessions.begin()
        try:
            envelope = await self._exchange(send, follow_up)
        except BaseException:
            # Cancelled, or ConfigurationError: nothing was stored
            self._sessions.abort()
            raise
        return envelope

    async def _exchange(self, send: Callable[[], Awaitable[RawResponse]], follow_up: bool) -> Envelope[dict[str, Any]]:
        try:
            envelope = _unwrap(await send())
        except (NetworkError, ServerError, DecodeError) as e:
            self._sessions.fail()
            return Envelope.failure(str(e))

        if not envelope.success:
            self._sessions.fail()
            return Envelope.failure(envelope.error or "Authentication failed")

        data = dict(envelope.data or {})
        try:
            result = AuthResult.model_validate(data)
        except PydanticValidationError:
            self._sessions.fail()
            return Envelope.failure("Response did not include a session token")

        user = _parse_user(data["user"]) if data.get("user") else None
        if follow_up:
            profile = await self._fetch_profile(result.session_token)
            if profile is None:
                self._sessions.fail()
                return Envelope.failure("Session token was rejected")
            if profile.success and profile.data is not None:
                data["user"] = profile.data
                user = _parse_user(profile.data)
            else:
                data["user"] = None

        session = Session(
            token=result.session_token,
            application_id=self._client.application_id,
            expires_at=result.expires_at,
        )
        self._sessions.complete(session, user)
        return Envelope(success=True, data=data)

    async def _fetch_profile(self, token: str) -> Envelope[dict[str, Any]] | None:
        """Profile for a fresh token; None when the API rejects the token."""
        try:
            return _unwrap(await self._client.call("GET", CURRENT_USER_PATH, session_token=token))
        except ServerError as e:
            if e.invalidates_session:
                return None
            logger.warning("profile_fetch_failed", status=e.status)
            return Envelope.failure(str(e))
        except (NetworkError, DecodeError) as e:
            logger.warning("profile_fetch_failed", error=str(e))
            return Envelope.failure(str(e))


def _unwrap(response: RawResponse) -> Envelope[dict[str, Any]]:
    try:
        return Envelope[dict[str, Any]].model_validate(response.payload)
    except PydanticValidationError as e:
        raise DecodeError("Response is not a valid envelope") from e


def _parse_user(data: object) -> CachedUser | None:
    try:
        return CachedUser.model_validate(data)
    except PydanticValidationError:
        logger.warning("user_payload_ignored")
        return None
