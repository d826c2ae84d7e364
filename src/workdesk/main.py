import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from workdesk.api.context import router as context_router
from workdesk.api.documents import router as documents_router
from workdesk.logging_config import configure_logging
from workdesk.settings import get_settings
from workdesk.telemetry import emit_app_startup_event
from workdesk.vectorstore import ChunkVectorStore, VectorStoreUnavailableError, get_vector_store

_settings = get_settings()
configure_logging(_settings.log_dir, _settings.log_level)

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="GPTWorkDesk Document API")
app.include_router(documents_router)
app.include_router(context_router)


@app.on_event("startup")
async def _startup() -> None:
    emit_app_startup_event(get_settings())


def _get_vector_store_or_503() -> ChunkVectorStore:
    try:
        return get_vector_store()
    except VectorStoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness check used by container orchestrators."""
    return "ok"


@app.get("/readyz", response_class=PlainTextResponse)
def readiness_check(store: ChunkVectorStore = Depends(_get_vector_store_or_503)) -> str:
    """Report ready once the vector store answers."""

    try:
        store.count()
    except Exception as exc:
        LOGGER.warning("Vector store readiness check failed: %s", exc)
        raise HTTPException(status_code=503, detail=f"vector_store_unavailable: {exc}") from exc
    return "ok"
