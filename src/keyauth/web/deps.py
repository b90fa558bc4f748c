from datetime import timedelta
from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie

from keyauth.app import AuthFacade
from keyauth.config import Config
from keyauth.core.modules.session.service import SessionManager
from keyauth.core.modules.session.storage import SESSION_TOKEN_KEY, MemorySessionStorage
from keyauth.core.modules.transport.client import SignedRequestClient

SESSION_COOKIE = "session_token"

cookie_scheme = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)


async def get_config(request: Request) -> Config:
    return cast(Config, request.app.state.config)


async def get_client(request: Request) -> SignedRequestClient:
    return cast(SignedRequestClient, request.app.state.client)


async def get_facade(
    client: Annotated[SignedRequestClient, Depends(get_client)],
    config: Annotated[Config, Depends(get_config)],
    token_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> AuthFacade:
    """Facade for one browser session, seeded from its session cookie.

    The signing secret stays in this process; browsers only hold the cookie.
    """
    storage = MemorySessionStorage({SESSION_TOKEN_KEY: token_cookie} if token_cookie else None)
    sessions = SessionManager(storage, application_id=client.application_id)
    return AuthFacade(client, sessions, user_max_age=timedelta(seconds=config.user_max_age_seconds))


# Type aliases for dependencies
ConfigDep = Annotated[Config, Depends(get_config)]
ClientDep = Annotated[SignedRequestClient, Depends(get_client)]
FacadeDep = Annotated[AuthFacade, Depends(get_facade)]
