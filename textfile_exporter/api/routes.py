from fastapi import APIRouter, Request
from starlette.responses import PlainTextResponse

from textfile_exporter.metrics import CONTENT_TYPE_LATEST, get_metrics_text

router = APIRouter()

@router.get("/health")
def health(request: Request):
    return {"status": "ok", "textfile_directory": request.app.state.settings.directory}

@router.get("/metrics")
def metrics(request: Request):
    # sync handler: each scrape runs its own collection cycle in the threadpool
    data = get_metrics_text(request.app.state.registry)  # bytes
    return PlainTextResponse(data, media_type=CONTENT_TYPE_LATEST)

@router.get("/")
def root(request: Request):
    return {
        "app": "Textfile Exporter",
        "endpoints": {
            "GET /health": "health check",
            "GET /metrics": "Prometheus metrics, including every *.prom file in the textfile directory",
        },
        "textfile_directory": request.app.state.settings.directory,
    }
