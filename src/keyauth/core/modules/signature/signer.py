"""HMAC-SHA256 request signing.

Canonical payload is the raw concatenation, without delimiters, of:

    timestamp (decimal milliseconds) + METHOD + path + body

``path`` excludes host and query string; ``body`` is the exact request body
text, or the empty string for body-less requests.
"""

import hashlib
import hmac

from keyauth.core.modules.signature.models import SignedRequest
from keyauth.errors import ConfigurationError


def strip_query(path: str) -> str:
    return path.split("?", 1)[0]


def canonical_payload(method: str, path: str, timestamp: str | int, body: str | None = None) -> str:
    return f"{timestamp}{method.upper()}{strip_query(path)}{body or ''}"


def sign(secret_key: str | None, method: str, path: str, timestamp: str | int, body: str | None = None) -> str:
    """Return the lower-case hex HMAC-SHA256 signature of the canonical payload.

    Raises:
        ConfigurationError: If the secret key is missing. Callers must abort
            the request instead of sending it unsigned.
    """
    if not secret_key:
        raise ConfigurationError
    payload = canonical_payload(method, path, timestamp, body)
    return hmac.new(secret_key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def verify(
    secret_key: str | None,
    method: str,
    path: str,
    timestamp: str | int,
    body: str | None,
    candidate_signature: str | None,
) -> bool:
    """Check a candidate signature in constant time. Never raises."""
    if not isinstance(candidate_signature, str) or not candidate_signature:
        return False
    try:
        expected = sign(secret_key, method, path, timestamp, body)
    except (ConfigurationError, AttributeError, TypeError, UnicodeEncodeError):
        return False
    try:
        return hmac.compare_digest(expected.encode("ascii"), candidate_signature.encode("ascii"))
    except UnicodeEncodeError:
        return False


def sign_request(
    public_key: str, secret_key: str | None, method: str, path: str, timestamp: str | int, body: str | None = None
) -> SignedRequest:
    """Build a SignedRequest for the given call."""
    method = method.upper()
    signature = sign(secret_key, method, path, timestamp, body)
    return SignedRequest(
        method=method,
        path=strip_query(path),
        timestamp=str(timestamp),
        body=body or "",
        signature=signature,
        public_key=public_key,
    )
