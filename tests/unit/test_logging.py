"""Tests for logging setup."""

from uvicorn.config import LOGGING_CONFIG

from keyauth.logging import redact_secrets
from keyauth.web.runner import uvicorn_log_config


class TestRedactSecrets:
    """Tests for the credential redaction processor."""

    def test_credential_fields_masked(self):
        """Test that secrets and tokens are replaced before rendering."""
        event = {"event": "login", "session_token": "tok1", "secret_key": "sk_test", "user_id": "user-1"}
        result = redact_secrets(None, "info", event)
        assert result == {"event": "login", "session_token": "***", "secret_key": "***", "user_id": "user-1"}

    def test_other_fields_untouched(self):
        """Test that events without credential fields pass through unchanged."""
        event = {"event": "session_invalidated", "application_id": "app-1"}
        assert redact_secrets(None, "warning", dict(event)) == event


class TestUvicornLogConfig:
    """Tests for the uvicorn logging configuration."""

    def test_formats_overridden_without_touching_defaults(self):
        """Test that custom formats do not leak into uvicorn's module-level config."""
        default_fmt = LOGGING_CONFIG["formatters"]["default"]["fmt"]
        config = uvicorn_log_config()
        assert config["formatters"]["default"]["fmt"] == "%(asctime)s - %(levelname)s - %(message)s"
        assert LOGGING_CONFIG["formatters"]["default"]["fmt"] == default_fmt
