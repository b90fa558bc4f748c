"""Signed HTTP client for the authentication API.

The client holds the application's secret key, so it must only run where
that key is out of reach of untrusted parties (a backend-for-frontend or
another server process), never in code shipped to browsers.
"""

import json
from types import TracebackType
from typing import Any, Self

import httpx
import structlog
from pydantic import BaseModel

from keyauth.core.modules.credential.models import ApplicationCredential
from keyauth.core.modules.signature.signer import sign_request
from keyauth.errors import DecodeError, NetworkError, ServerError
from keyauth.utils import now_ms

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class RawResponse(BaseModel):
    """Decoded 2xx response."""

    status_code: int
    payload: Any


class SignedRequestClient:
    """Builds, signs and sends requests on behalf of one application."""

    def __init__(
        self,
        credential: ApplicationCredential,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credential = credential
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @property
    def application_id(self) -> str:
        return self._credential.application_id

    async def call(
        self, method: str, path: str, body: str | None = None, session_token: str | None = None
    ) -> RawResponse:
        """Send a signed request.

        The timestamp is taken from the wall clock at send time. Freshness is
        checked by the API; a rejection is surfaced, never retried here.

        Raises:
            ConfigurationError: Secret key missing; nothing is sent.
            NetworkError: Transport failure, timeout or redirect loop.
            ServerError: Non-2xx response.
            DecodeError: Response body cannot be decoded or is not JSON.
        """
        signed = sign_request(
            self._credential.public_key, self._credential.secret_key, method, path, now_ms(), body
        )
        logger.debug("signed_request_sent", method=signed.method, path=signed.path, user_scoped=bool(session_token))
        return await self._send(
            signed.method,
            path,
            headers=signed.headers(session_token),
            content=signed.body.encode("utf-8") if signed.body else None,
        )

    async def probe(self, path: str) -> RawResponse:
        """Unsigned GET, for liveness checks only."""
        return await self._send("GET", path)

    async def _send(
        self, method: str, path: str, headers: dict[str, str] | None = None, content: bytes | None = None
    ) -> RawResponse:
        try:
            response = await self._http.request(method, path, headers=headers, content=content)
        except httpx.DecodingError as e:
            logger.warning("response_decoding_failed", method=method, path=path, error=str(e))
            raise DecodeError(f"Undecodable response from {path}: {e}") from e
        except httpx.RequestError as e:
            logger.warning("request_failed", method=method, path=path, error=str(e))
            raise NetworkError(f"Network error: {e}") from e

        if not response.is_success:
            logger.warning("server_error", method=method, path=path, status=response.status_code)
            raise ServerError(response.status_code, _error_message(response))

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Invalid JSON response from {path}") from e
        return RawResponse(status_code=response.status_code, payload=payload)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> str | None:
    """Error text carried by a non-2xx response body, if any."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return None
