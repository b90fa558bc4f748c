import copy
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from keyauth.config import Config
from keyauth.core.modules.transport.client import SignedRequestClient
from keyauth.web.server import create_fastapi_app


def uvicorn_log_config() -> dict[str, Any]:
    """Uvicorn's default logging config with shorter line formats."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    return log_config


def run_server(client: SignedRequestClient, config: Config) -> None:
    """Serve the backend-for-frontend until interrupted."""
    uvicorn.run(
        create_fastapi_app(client, config),
        host=config.host,
        port=config.port,
        log_config=uvicorn_log_config(),
        log_level="debug" if config.debug else "info",
        access_log=True,
    )
