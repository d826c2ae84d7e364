"""Centralised observability helpers for structured lifecycle logging."""

from __future__ import annotations

import logging
import os
import sys
import time
import traceback
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Iterator, Optional

from workdesk.settings import Settings

LOGGER = logging.getLogger("workdesk.telemetry")


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    session_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    extra: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if session_id:
        event["session_id"] = session_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    if extra:
        event.update(extra)
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_app_startup_event(settings: Settings) -> None:
    """Log the effective configuration once the application is up."""

    details = {"settings": asdict(settings), "python": sys.version.split()[0]}
    log_event(LOGGER, "app.startup", details=details, extra={"pid": os.getpid()})


def emit_ingest_event(
    step: str,
    *,
    file_name: str,
    document_id: str | None = None,
    session_id: str | None = None,
    file_type: str | None = None,
    size_bytes: int | None = None,
    duration_ms: float | None = None,
    language: str | None = None,
    pages: int | None = None,
    words: int | None = None,
    sections: int | None = None,
    chunks: int | None = None,
) -> None:
    details = {
        "file": file_name,
        "document_id": document_id,
        "file_type": file_type,
        "size_bytes": size_bytes,
        "language": language,
        "pages": pages,
        "words": words,
        "sections": sections,
        "chunks": chunks,
    }
    log_event(LOGGER, step, session_id=session_id, duration_ms=duration_ms, details=details)


def emit_context_event(
    step: str,
    *,
    session_id: str,
    document_count: int,
    document_id: str | None = None,
) -> None:
    details: dict[str, Any] = {"document_count": document_count}
    if document_id:
        details["document_id"] = document_id
    log_event(LOGGER, step, session_id=session_id, details=details)


def emit_embeddings_event(
    *, model: str, count: int, duration_ms: float, errors: list[str] | None = None
) -> None:
    details = {
        "model": model,
        "count": count,
        "duration_ms": round(duration_ms, 3),
        "errors": errors or [],
        "per_item_ms": round(duration_ms / count, 3) if count else None,
    }
    log_event(LOGGER, "embeddings.compute", details=details)


def emit_vectorstore_event(
    step: str,
    *,
    collection: str,
    count: int,
    error: BaseException | None = None,
) -> None:
    details = {"collection": collection, "count": count}
    level = "error" if error else "info"
    log_event(LOGGER, step, level=level, details=details, exc=error)


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    session_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        session_id=session_id,
        details=details,
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        end = time.perf_counter()
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            duration_ms=(end - start) * 1000.0,
            details=fields,
        )


__all__ = [
    "emit_app_startup_event",
    "emit_context_event",
    "emit_embeddings_event",
    "emit_exception",
    "emit_ingest_event",
    "emit_vectorstore_event",
    "log_event",
    "traced_duration",
]
