"""Entry point: ``wellness-api`` / ``python -m adapters.http``."""

import structlog
import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from adapters.http.app import create_app
from wellness.config import get_config
from wellness.observability import configure_logging

logger = structlog.get_logger(__name__)


def app_factory() -> FastAPI:
    """Factory used by uvicorn when auto-reload is on."""
    config = get_config()
    configure_logging(config.logging)
    return create_app(config)


def main() -> None:
    """Validate configuration and serve the API with uvicorn."""
    try:
        config = get_config()
    except ValidationError as e:
        configure_logging()
        logger.error("configuration_invalid", error=str(e), hint="set API_KEY, e.g. a random UUID")
        raise SystemExit(1) from e

    configure_logging(config.logging)
    logger.info(
        "wellness_api_starting",
        host=config.api.host,
        port=config.api.port,
        origin=config.api.allowed_origin,
        data_file=str(config.store.data_file),
    )
    if config.api.reload:
        uvicorn.run(
            "adapters.http.server:app_factory",
            factory=True,
            reload=True,
            host=config.api.host,
            port=config.api.port,
        )
    else:
        uvicorn.run(create_app(config), host=config.api.host, port=config.api.port)


if __name__ == "__main__":
    main()
