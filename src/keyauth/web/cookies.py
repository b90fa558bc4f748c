from datetime import timedelta

from fastapi import Response

from keyauth.config import Config
from keyauth.core.modules.session.service import SessionManager
from keyauth.utils import now
from keyauth.web.deps import SESSION_COOKIE

DEFAULT_COOKIE_MAX_AGE = timedelta(hours=24)  # API sessions last 24 hours


def sync_session_cookie(response: Response, sessions: SessionManager, config: Config) -> None:
    """Mirror the session manager's token into the browser cookie, or delete it."""
    token = sessions.active_token()
    if token is None:
        response.delete_cookie(SESSION_COOKIE)
        return

    max_age = DEFAULT_COOKIE_MAX_AGE
    session = sessions.session
    if session is not None and session.expires_at is not None:
        max_age = max(session.expires_at - now(), timedelta(0))

    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=config.cookie_secure,
        max_age=int(max_age.total_seconds()),
    )
