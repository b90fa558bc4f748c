from pydantic_settings import BaseSettings

from keyauth.core.modules.credential.models import ApplicationCredential
from keyauth.errors import ConfigurationError


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    api_url: str = "http://localhost:8080"  # Base URL of the authentication API
    public_key: str = ""
    secret_key: str = ""  # Must only be set on the backend-for-frontend host, never shipped to browsers
    application_id: str = ""
    request_timeout: float = 10.0  # Seconds; expiry surfaces as NetworkError
    signature_window_seconds: int = 300  # Accepted clock skew for X-Timestamp on the verifying side
    user_max_age_seconds: int = 300  # Cached profile older than this is refreshed before use
    session_store_path: str | None = None  # JSON file for durable client state (memory only if unset)
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    cookie_secure: bool = True

    model_config = {
        "env_file": [".env"],
        "env_prefix": "KEYAUTH_",
        "extra": "ignore",
    }

    def application_credential(self) -> ApplicationCredential:
        """Key pair this process signs with."""
        if not self.public_key or not self.secret_key:
            raise ConfigurationError("KEYAUTH_PUBLIC_KEY and KEYAUTH_SECRET_KEY must be set")
        return ApplicationCredential(
            application_id=self.application_id, public_key=self.public_key, secret_key=self.secret_key
        )
