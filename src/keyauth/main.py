"""Entry point for the keyauth backend-for-frontend server."""

from keyauth.config import Config
from keyauth.core.modules.transport.client import SignedRequestClient
from keyauth.logging import setup_logging
from keyauth.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    client = SignedRequestClient(config.application_credential(), config.api_url, timeout=config.request_timeout)
    run_server(client, config)


if __name__ == "__main__":
    main()
