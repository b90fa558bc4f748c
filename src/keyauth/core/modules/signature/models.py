"""Signed request models and wire header names."""

from enum import StrEnum

from pydantic import BaseModel

HEADER_PUBLIC_KEY = "X-Public-Key"
HEADER_TIMESTAMP = "X-Timestamp"
HEADER_SIGNATURE = "X-Signature"
HEADER_SESSION_TOKEN = "X-Session-Token"  # noqa: S105


class SignedRequest(BaseModel):
    """A request ready to send. Built per call, never persisted."""

    method: str
    path: str
    timestamp: str
    body: str
    signature: str
    public_key: str

    def headers(self, session_token: str | None = None) -> dict[str, str]:
        """Authentication headers for this request."""
        headers = {
            HEADER_PUBLIC_KEY: self.public_key,
            HEADER_TIMESTAMP: self.timestamp,
            HEADER_SIGNATURE: self.signature,
        }
        if session_token:
            headers[HEADER_SESSION_TOKEN] = session_token
        if self.body:
            headers["Content-Type"] = "application/json"
        return headers


class VerificationFailure(StrEnum):
    MISSING_HEADERS = "missing_headers"
    UNKNOWN_PUBLIC_KEY = "unknown_public_key"
    INVALID_TIMESTAMP = "invalid_timestamp"
    TIMESTAMP_OUT_OF_WINDOW = "timestamp_out_of_window"
    INVALID_SIGNATURE = "invalid_signature"


class VerificationResult(BaseModel):
    """Outcome of verifying an incoming signed request."""

    success: bool
    failure: VerificationFailure | None = None
    application_id: str | None = None

    @classmethod
    def ok(cls, application_id: str) -> "VerificationResult":
        return cls(success=True, application_id=application_id)

    @classmethod
    def fail(cls, failure: VerificationFailure) -> "VerificationResult":
        return cls(success=False, failure=failure)
