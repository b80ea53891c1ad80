"""
Tic-tac-toe API server.

Run with `python -m src.main`, settings come from TICTACTOE_* environment variables (see src/core/config.py).
"""

import logging

import uvicorn

from src.api.routes import create_app
from src.core.config import Config, get_config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    logger.debug("debug is set")


def run(config: Config) -> None:
    app = create_app(config=config)

    tls: dict[str, str] = {}
    if config.tls_enabled:
        tls = {"ssl_certfile": config.cert_file, "ssl_keyfile": config.key_file}
    else:
        logger.warning("TLS disabled: no certificate or key configured")

    logger.info("starting server at %s:%d", config.host, config.port)
    # uvicorn handles SIGINT/SIGTERM, the app lifespan then drains the game storage
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_config=None,
        **tls,
    )
    logger.info("service shutdown")


def main() -> None:
    config = get_config()
    configure_logging(config.debug)
    run(config)


if __name__ == "__main__":
    main()
