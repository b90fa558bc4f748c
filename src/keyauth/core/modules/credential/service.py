import secrets
from abc import ABC, abstractmethod

import structlog

from keyauth.core.modules.credential.models import ApplicationCredential, ApplicationKeys
from keyauth.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

KEY_LENGTH = 32
PUBLIC_KEY_PREFIX = "pk_"
SECRET_KEY_PREFIX = "sk_"  # noqa: S105


def generate_key(prefix: str, length: int = KEY_LENGTH) -> str:
    """Random URL-safe key, e.g. ``pk_kcnjpOlaKkzB0JXeMbE_-T8EwNKKH5bF``."""
    return prefix + secrets.token_urlsafe(length)[:length]


class CredentialStore(ABC):
    """Lookup/issue contract for per-application key pairs."""

    @abstractmethod
    def issue(self, application_id: str) -> ApplicationCredential:
        """Create a key pair. The returned secret is not retrievable again."""

    @abstractmethod
    def get(self, application_id: str) -> ApplicationKeys:
        """Get the public view of an application's keys."""

    @abstractmethod
    def find_by_public_key(self, public_key: str) -> ApplicationCredential | None:
        """Resolve a public key to its credential, for request verification only."""

    @abstractmethod
    def reissue_secret(self, application_id: str) -> ApplicationCredential:
        """Replace the secret key, disclosing the new one once."""

    @abstractmethod
    def delete(self, application_id: str) -> None:
        """Destroy the application's credential."""


class InMemoryCredentialStore(CredentialStore):
    """Credential store kept in process memory."""

    def __init__(self) -> None:
        self._credentials: dict[str, ApplicationCredential] = {}
        self._by_public_key: dict[str, str] = {}

    def issue(self, application_id: str) -> ApplicationCredential:
        if not application_id:
            raise ValidationError("Application ID is required")
        if application_id in self._credentials:
            raise ValidationError(f"Application '{application_id}' already has credentials")

        credential = ApplicationCredential(
            application_id=application_id,
            public_key=generate_key(PUBLIC_KEY_PREFIX),
            secret_key=generate_key(SECRET_KEY_PREFIX),
        )
        self._credentials[application_id] = credential
        self._by_public_key[credential.public_key] = application_id
        logger.info("credential_issued", application_id=application_id, public_key=credential.public_key)
        return credential

    def get(self, application_id: str) -> ApplicationKeys:
        return self._get_credential(application_id).keys()

    def find_by_public_key(self, public_key: str) -> ApplicationCredential | None:
        application_id = self._by_public_key.get(public_key)
        if application_id is None:
            return None
        return self._credentials[application_id]

    def reissue_secret(self, application_id: str) -> ApplicationCredential:
        current = self._get_credential(application_id)
        credential = current.model_copy(update={"secret_key": generate_key(SECRET_KEY_PREFIX)})
        self._credentials[application_id] = credential
        logger.info("secret_reissued", application_id=application_id)
        return credential

    def delete(self, application_id: str) -> None:
        credential = self._get_credential(application_id)
        del self._by_public_key[credential.public_key]
        del self._credentials[application_id]
        logger.info("credential_deleted", application_id=application_id)

    def _get_credential(self, application_id: str) -> ApplicationCredential:
        if application_id not in self._credentials:
            raise NotFoundError(f"Application '{application_id}' not found")
        return self._credentials[application_id]
