from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.router import api_router
from .config import Settings, settings as default_settings
from .runtime import ScrummyRuntime

logger = logging.getLogger(__name__)


def configure_logging(app_settings: Settings) -> None:
    logging.basicConfig(level=app_settings.effective_log_level)
    logging.getLogger("scrummy").setLevel(app_settings.effective_log_level)


def create_app(
    app_settings: Settings | None = None,
    *,
    runtime: ScrummyRuntime | None = None,
) -> FastAPI:
    app_settings = app_settings or default_settings
    configure_logging(app_settings)

    app = FastAPI(title="Scrummy Backend", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = app_settings
    app.state.runtime = runtime or ScrummyRuntime(app_settings)
    app.include_router(api_router)

    logger.info(
        "Scrummy ready: %d point values, %d room words",
        len(app_settings.points),
        len(app_settings.words),
    )
    return app
