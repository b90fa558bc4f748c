from typing import Any

from fastapi import APIRouter, Response

from keyauth.app import Envelope
from keyauth.errors import AuthenticationError
from keyauth.web.cookies import sync_session_cookie
from keyauth.web.deps import ConfigDep, FacadeDep
from keyauth.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


@router.get(
    "/session/me",
    summary="Get current user profile",
    description="Fetch the profile of the user behind the session cookie from the auth API.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Envelope with the current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated or session rejected"},
    },
)
async def get_profile(facade: FacadeDep, config: ConfigDep, response: Response) -> Envelope[dict[str, Any]]:
    if not facade.sessions.is_authenticated:
        raise AuthenticationError("Not authenticated")

    envelope = await facade.get_current_user()
    sync_session_cookie(response, facade.sessions, config)
    if not facade.sessions.is_authenticated:
        # Token rejected by the API; the cookie was deleted above
        response.status_code = 401
    return envelope
