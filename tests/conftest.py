"""Shared pytest fixtures."""

import json
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from keyauth.config import Config
from keyauth.core.modules.credential.models import ApplicationCredential
from keyauth.core.modules.credential.service import InMemoryCredentialStore
from keyauth.core.modules.session.service import SessionManager
from keyauth.core.modules.session.storage import MemorySessionStorage
from keyauth.core.modules.signature.models import HEADER_SESSION_TOKEN
from keyauth.core.modules.signature.verifier import RequestVerifier
from keyauth.core.modules.transport.client import SignedRequestClient

API_URL = "http://api.test"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def api_response():
    """Factory for API-style JSON envelope responses."""
    return _envelope


@pytest.fixture
def credential():
    """Application key pair used for signing in tests."""
    return ApplicationCredential(application_id="app-1", public_key="pk_test", secret_key="sk_test")


@pytest.fixture
def user_profile():
    """Profile as returned by GET /api/users/me."""
    return {
        "id": "user-1",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "a@b.com",
        "createdAt": "2024-01-01T00:00:00Z",
    }


@pytest.fixture
def storage():
    return MemorySessionStorage()


@pytest.fixture
def sessions(storage, credential):
    return SessionManager(storage, application_id=credential.application_id)


@pytest.fixture
def make_client(credential):
    """Build a SignedRequestClient whose network is the given handler."""

    def factory(handler: Handler, app_credential: ApplicationCredential | None = None) -> SignedRequestClient:
        return SignedRequestClient(app_credential or credential, API_URL, transport=httpx.MockTransport(handler))

    return factory


def _envelope(data: Any = None, error: str | None = None, status_code: int = 200) -> httpx.Response:
    """API-style JSON envelope response."""
    content: dict[str, Any] = {"success": error is None}
    if data is not None:
        content["data"] = data
    if error is not None:
        content["error"] = error
    return httpx.Response(status_code, json=content)


class ReferenceAPI:
    """In-process stand-in for the authentication API.

    Verifies every signed request with RequestVerifier and keeps users and
    sessions in memory.
    """

    def __init__(self, store: InMemoryCredentialStore) -> None:
        self.store = store
        self.verifier = RequestVerifier.from_config(store, Config(_env_file=None))
        self.users: dict[str, dict[str, Any]] = {}
        self.sessions: dict[str, str] = {}
        self.rejected: list[str] = []
        self.app = self._build()

    def _build(self) -> FastAPI:
        async def verify_signature(request: Request) -> None:
            if request.url.path == "/health":
                return
            body = (await request.body()).decode("utf-8")
            result = self.verifier.verify_request(request.method, request.url.path, request.headers, body)
            if not result.success:
                self.rejected.append(str(result.failure))
                raise HTTPException(status_code=401, detail="Invalid signature")

        app = FastAPI(dependencies=[Depends(verify_signature)])

        @app.get("/health")
        async def health() -> dict[str, str]:
            return {"status": "up"}

        @app.post("/api/users/register")
        async def register(request: Request) -> dict[str, Any]:
            payload = json.loads(await request.body())
            if payload["email"] in self.users:
                return {"success": False, "error": "User with this email already exists"}
            user = {
                "id": f"user-{len(self.users) + 1}",
                "firstName": payload["firstName"],
                "lastName": payload["lastName"],
                "email": payload["email"],
                "createdAt": "2024-01-01T00:00:00Z",
                "password": payload["password"],
            }
            self.users[payload["email"]] = user
            return {"success": True, "data": self._new_session(user)}

        @app.post("/api/users/login")
        async def login(request: Request) -> dict[str, Any]:
            payload = json.loads(await request.body())
            user = self.users.get(payload["email"])
            if user is None or user["password"] != payload["password"]:
                return {"success": False, "error": "Invalid credentials"}
            return {"success": True, "data": self._new_session(user)}

        @app.get("/api/users/me")
        async def me(request: Request) -> Any:
            email = self.sessions.get(request.headers.get(HEADER_SESSION_TOKEN, ""))
            if email is None:
                return JSONResponse(status_code=401, content={"success": False, "error": "Invalid session"})
            user = {key: value for key, value in self.users[email].items() if key != "password"}
            return {"success": True, "data": user}

        return app

    def _new_session(self, user: dict[str, Any]) -> dict[str, str]:
        token = secrets.token_urlsafe(32)
        self.sessions[token] = user["email"]
        expires_at = datetime.now(UTC) + timedelta(hours=24)
        return {"sessionToken": token, "expiresAt": expires_at.isoformat()}


@pytest.fixture
def reference_store():
    return InMemoryCredentialStore()


@pytest.fixture
def reference_api(reference_store):
    return ReferenceAPI(reference_store)


@pytest.fixture
def reference_client(reference_api, reference_store):
    """Signed client talking to the reference API in-process."""
    issued = reference_store.issue("app-ref")
    return SignedRequestClient(issued, API_URL, transport=httpx.ASGITransport(app=reference_api.app))
