from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from keyauth.app import HEALTH_PATH
from keyauth.config import Config
from keyauth.core.modules.transport.client import SignedRequestClient
from keyauth.errors import ConfigurationError, UserError
from keyauth.web.error_handlers import configuration_error_handler, general_exception_handler, user_error_handler
from keyauth.web.openapi import set_custom_openapi
from keyauth.web.routers import profile_router, session_router


def create_fastapi_app(client: SignedRequestClient, config: Config) -> FastAPI:
    """Create and configure the backend-for-frontend FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Close the shared signed client on shutdown."""
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="keyauth session API",
        lifespan=lifespan,
        openapi_tags=[],
    )
    app.state.client = client
    app.state.config = config

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )

    @app.get(HEALTH_PATH)
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(session_router, prefix="/api")
    app.include_router(profile_router, prefix="/api")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
