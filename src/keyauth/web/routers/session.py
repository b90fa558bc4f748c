from typing import Any

from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from keyauth.app import Envelope, RegisterProfile
from keyauth.web.cookies import sync_session_cookie
from keyauth.web.deps import ConfigDep, FacadeDep
from keyauth.web.openapi import ErrorResponse

router = APIRouter(tags=["session"])


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., min_length=1, description="Email address")
    password: str = Field(..., min_length=1, description="Password")


def _public(envelope: Envelope[dict[str, Any]]) -> Envelope[dict[str, Any]]:
    """Drop the session token from the body; browsers get it as an httpOnly cookie only."""
    if envelope.data is None:
        return envelope
    data = {key: value for key, value in envelope.data.items() if key != "sessionToken"}
    return Envelope(success=envelope.success, data=data, error=envelope.error)


@router.post(
    "/session/register",
    summary="Register user",
    description="Create a user for this application and start a session.",
    operation_id="register",
    responses={
        200: {"description": "Envelope with the outcome; session cookie set on success"},
        500: {"model": ErrorResponse, "description": "Application keys not configured"},
    },
)
async def register(
    profile: RegisterProfile, facade: FacadeDep, config: ConfigDep, response: Response
) -> Envelope[dict[str, Any]]:
    envelope = await facade.register(profile)
    sync_session_cookie(response, facade.sessions, config)
    return _public(envelope)


@router.post(
    "/session/login",
    summary="Log in",
    description="Authenticate with email and password. The profile is attached on success.",
    operation_id="login",
    responses={
        200: {"description": "Envelope with the outcome; session cookie set on success"},
        500: {"model": ErrorResponse, "description": "Application keys not configured"},
    },
)
async def login(
    login_data: LoginRequest, facade: FacadeDep, config: ConfigDep, response: Response
) -> Envelope[dict[str, Any]]:
    envelope = await facade.login(login_data.email, login_data.password)
    sync_session_cookie(response, facade.sessions, config)
    return _public(envelope)


@router.post(
    "/session/logout",
    summary="End session",
    description="Forget the session and delete the session cookie.",
    operation_id="logout",
    status_code=204,
)
async def logout(facade: FacadeDep, config: ConfigDep, response: Response) -> None:
    facade.logout()
    sync_session_cookie(response, facade.sessions, config)
