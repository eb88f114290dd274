"""FastAPI application for the agency CRM backend."""

import logging
import os

from fastapi import FastAPI

from agencyapp.api.routes import access, auth, clients, health, policies, subscription
from agencyapp.platform.errors import install_error_handling

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Build the application with error handling and all routers mounted."""
    configure_logging()

    app = FastAPI(title="Agency CRM API")

    install_error_handling(app)

    app.include_router(health.router)
    app.include_router(access.router)
    app.include_router(auth.router)
    app.include_router(subscription.router)
    app.include_router(clients.router)
    app.include_router(policies.router)

    logger.info("Application created")
    return app


app = create_app()
