"""FastAPI application entry point."""

import os

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging

APP_FACTORY = "src.fortune_media.main:create_app"


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="Fortune Media")
    include_routers(app, cfg)
    return app


def run() -> None:
    """Serve the app with uvicorn; the factory defers config loading to server start."""
    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", 8000)),
    )


if __name__ == "__main__":
    run()
