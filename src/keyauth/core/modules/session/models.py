"""Client-side session models."""

from datetime import datetime
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from keyauth.utils import now

SessionToken = NewType("SessionToken", str)


class SessionState(StrEnum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


class Session(BaseModel):
    """Session issued by the API and held by a SessionManager.

    ``expires_at`` is None for a token restored from storage.
    """

    token: SessionToken = Field(repr=False)
    application_id: str
    user_id: str | None = None
    issued_at: datetime = Field(default_factory=now)
    expires_at: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def is_expired(self, at: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (at or now()) >= self.expires_at


class CachedUser(BaseModel):
    """Denormalized profile copy. A hint only; the API's user record is authoritative."""

    id: str
    first_name: str = ""
    last_name: str = ""
    email: str
    created_at: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def profile(self) -> dict[str, object]:
        """Wire representation, as returned by GET /api/users/me."""
        return self.model_dump(mode="json", by_alias=True)


class AuthResult(BaseModel):
    """Data of a successful login or registration."""

    session_token: SessionToken = Field(..., min_length=1)
    expires_at: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
