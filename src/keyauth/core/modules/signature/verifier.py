from collections.abc import Callable, Mapping
from typing import Self

import structlog

from keyauth.config import Config
from keyauth.core.modules.credential.service import CredentialStore
from keyauth.core.modules.signature.models import (
    HEADER_PUBLIC_KEY,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    VerificationFailure,
    VerificationResult,
)
from keyauth.core.modules.signature.signer import verify
from keyauth.utils import now_ms

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_SECONDS = 300


class RequestVerifier:
    """Verifies incoming signed requests against a credential store.

    Checks, in order: required headers, known public key, timestamp within
    the accepted window, HMAC signature.
    """

    def __init__(
        self,
        store: CredentialStore,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._window_ms = window_seconds * 1000
        self._clock = clock

    @classmethod
    def from_config(cls, store: CredentialStore, config: Config, clock: Callable[[], int] = now_ms) -> Self:
        """Verifier using the configured timestamp window."""
        return cls(store, window_seconds=config.signature_window_seconds, clock=clock)

    def verify_request(self, method: str, path: str, headers: Mapping[str, str], body: str = "") -> VerificationResult:
        public_key = headers.get(HEADER_PUBLIC_KEY)
        timestamp = headers.get(HEADER_TIMESTAMP)
        signature = headers.get(HEADER_SIGNATURE)
        if not public_key or not timestamp or not signature:
            return VerificationResult.fail(VerificationFailure.MISSING_HEADERS)

        credential = self._store.find_by_public_key(public_key)
        if credential is None:
            logger.warning("unknown_public_key", public_key=public_key)
            return VerificationResult.fail(VerificationFailure.UNKNOWN_PUBLIC_KEY)

        if not timestamp.isdigit():
            return VerificationResult.fail(VerificationFailure.INVALID_TIMESTAMP)
        if abs(self._clock() - int(timestamp)) > self._window_ms:
            logger.warning("timestamp_out_of_window", application_id=credential.application_id, timestamp=timestamp)
            return VerificationResult.fail(VerificationFailure.TIMESTAMP_OUT_OF_WINDOW)

        if not verify(credential.secret_key, method, path, timestamp, body, signature):
            logger.warning("invalid_signature", application_id=credential.application_id, method=method, path=path)
            return VerificationResult.fail(VerificationFailure.INVALID_SIGNATURE)

        return VerificationResult.ok(credential.application_id)
