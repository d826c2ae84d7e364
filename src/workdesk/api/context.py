"""API router managing per-session document contexts."""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from workdesk.context import (
    ContextInjector,
    DocumentContext,
    SessionContext,
    SessionContextStore,
    extract_key_points,
    generate_summary,
)
from workdesk.services.documents import get_context_store
from workdesk.settings import get_settings

router = APIRouter(prefix="/sessions", tags=["context"])


class DocumentContextModel(BaseModel):
    """Document context as stored for a session.

    ``summary`` and ``key_points`` are derived from ``content`` when omitted.
    """

    id: str = Field(..., min_length=1)
    file_name: str
    content: str = ""
    summary: str | None = None
    key_points: list[str] | None = None
    uploaded_at: str | None = None


class SessionContextResponse(BaseModel):
    session_id: str
    documents: list[DocumentContextModel]


class SessionContextListItem(SessionContextResponse):
    created_at: str
    updated_at: str


class SaveContextRequest(BaseModel):
    documents: list[DocumentContextModel] = Field(default_factory=list)


class SummaryResponse(BaseModel):
    session_id: str
    summary: str


class InjectRequest(BaseModel):
    message: str


class InjectResponse(BaseModel):
    message: str


def get_context_injector(store: SessionContextStore = Depends(get_context_store)) -> ContextInjector:
    return ContextInjector(store, preview_chars=get_settings().context_preview_chars)


def _to_model(context: DocumentContext) -> DocumentContextModel:
    return DocumentContextModel(
        id=context.id,
        file_name=context.file_name,
        content=context.content,
        summary=context.summary,
        key_points=list(context.key_points),
        uploaded_at=context.uploaded_at,
    )


def _from_model(model: DocumentContextModel) -> DocumentContext:
    return DocumentContext(
        id=model.id,
        file_name=model.file_name,
        content=model.content,
        summary=model.summary if model.summary is not None else generate_summary(model.content),
        key_points=(
            list(model.key_points) if model.key_points is not None else extract_key_points(model.content)
        ),
        uploaded_at=model.uploaded_at or datetime.now(timezone.utc).isoformat(),
    )


def _session_view(session_id: str, store: SessionContextStore) -> SessionContextResponse:
    return SessionContextResponse(
        session_id=session_id,
        documents=[_to_model(context) for context in store.get(session_id)],
    )


def _list_item(session: SessionContext) -> SessionContextListItem:
    return SessionContextListItem(
        session_id=session.session_id,
        documents=[_to_model(context) for context in session.document_contexts],
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.get("/contexts", response_model=list[SessionContextListItem])
def list_session_contexts(
    store: SessionContextStore = Depends(get_context_store),
) -> list[SessionContextListItem]:
    """Return every tracked session with its documents."""

    return [_list_item(session) for session in store.list_all()]


@router.get("/{session_id}/context", response_model=SessionContextResponse)
def get_session_context(
    session_id: str,
    store: SessionContextStore = Depends(get_context_store),
) -> SessionContextResponse:
    return _session_view(session_id, store)


@router.put("/{session_id}/context", response_model=SessionContextResponse)
def save_session_context(
    session_id: str,
    request: SaveContextRequest,
    store: SessionContextStore = Depends(get_context_store),
) -> SessionContextResponse:
    """Replace the document contexts of a session."""

    store.save(session_id, [_from_model(model) for model in request.documents])
    return _session_view(session_id, store)


@router.delete("/{session_id}/context", response_model=SessionContextResponse)
def clear_session_context(
    session_id: str,
    store: SessionContextStore = Depends(get_context_store),
) -> SessionContextResponse:
    store.clear(session_id)
    return _session_view(session_id, store)


@router.delete("/{session_id}/context/{document_id}", response_model=SessionContextResponse)
def remove_document_context(
    session_id: str,
    document_id: str,
    store: SessionContextStore = Depends(get_context_store),
) -> SessionContextResponse:
    store.remove(session_id, document_id)
    return _session_view(session_id, store)


@router.get("/{session_id}/context/summary", response_model=SummaryResponse)
def get_context_summary(
    session_id: str,
    injector: ContextInjector = Depends(get_context_injector),
) -> SummaryResponse:
    """Render the document context block that would be injected for a session."""

    return SummaryResponse(session_id=session_id, summary=injector.build_summary(session_id))


@router.post("/{session_id}/context/inject", response_model=InjectResponse)
def inject_context(
    session_id: str,
    request: InjectRequest,
    injector: ContextInjector = Depends(get_context_injector),
) -> InjectResponse:
    """Append the session's document context to a chat message."""

    return InjectResponse(message=injector.inject_context(request.message, session_id))
