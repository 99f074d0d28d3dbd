from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .api import register_routers
from .container import Container, container_from_settings
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .seed_data import seed

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    if container is None:
        container = container_from_settings(settings)
        if settings.SEED_ON_STARTUP:
            seed(container)

    app = FastAPI(
        title=f"{settings.APP_NAME} Order Fulfillment API",
        description="Coffee shop orders with all-or-nothing ingredient reservation.",
        version=settings.VERSION,
    )
    app.state.container = container

    register_routers(app)

    @app.get("/", tags=["Health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("%s API ready (storage: %s)", settings.APP_NAME, settings.STORAGE_BACKEND)
    return app
