import logging
from typing import Optional

from fastapi import FastAPI
from prometheus_client import REGISTRY, CollectorRegistry

from textfile_exporter.api.routes import router as api_router
from textfile_exporter.config import LOG_LEVEL
from textfile_exporter.metrics import register_exporter
from textfile_exporter.models.schema import CollectorSettings

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def create_app(settings: Optional[CollectorSettings] = None,
               registry: CollectorRegistry = REGISTRY) -> FastAPI:
    settings = settings or CollectorSettings()
    app = FastAPI(title="Textfile Exporter", version="1.0.0")
    app.state.settings = settings
    app.state.registry = registry
    register_exporter(settings, registry)
    app.include_router(api_router)
    return app


app = create_app()
