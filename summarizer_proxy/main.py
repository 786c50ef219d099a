import logging
import sys

import uvicorn
from fastapi import FastAPI

from summarizer_proxy.api import create_app
from summarizer_proxy.config import Config, load_config
from summarizer_proxy.logging_config import configure_logging


logger = logging.getLogger(__name__)


def build_app(config: Config | None = None) -> FastAPI:
    """Load configuration, set up logging, and create the proxy app.

    Also serves as the uvicorn factory target:
    ``uvicorn summarizer_proxy.main:build_app --factory``. In that mode a
    configuration error is logged and re-raised, so uvicorn never binds.
    """

    if config is None:
        try:
            config = load_config()
        except ValueError as exc:
            logger.critical("Configuration error: %s", exc)
            raise
    configure_logging(config.log_level, config.log_timezone)

    if not config.has_api_key:
        logger.warning(
            "OPENAI_API_KEY not set; proxied routes will answer with a configuration error",
        )

    return create_app(config)


def main() -> None:
    """Entry point: refuse to bind when configuration is invalid."""

    try:
        config = load_config()
    except ValueError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)

    app = build_app(config)
    logger.info(
        "Proxy listening on http://localhost:%s",
        config.port,
        extra={"profile": config.profile, "host": config.host},
    )
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
