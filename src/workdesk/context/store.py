"""Per-session storage of document contexts."""
from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from workdesk.logging_config import CONTEXT_AUDIT_LOGGER
from workdesk.telemetry import emit_context_event

from .models import DocumentContext, SessionContext

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(CONTEXT_AUDIT_LOGGER)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dedupe(contexts: Iterable[DocumentContext]) -> List[DocumentContext]:
    unique: "OrderedDict[str, DocumentContext]" = OrderedDict()
    for context in contexts:
        unique.pop(context.id, None)
        unique[context.id] = context
    return list(unique.values())


class SessionContextStore(ABC):
    """Abstract interface for session context persistence."""

    @abstractmethod
    def save(self, session_id: str, contexts: Iterable[DocumentContext]) -> None:
        """Replace the document contexts of ``session_id``."""

    @abstractmethod
    def get(self, session_id: str) -> List[DocumentContext]:
        """Return the document contexts of ``session_id`` (empty when unknown)."""

    @abstractmethod
    def clear(self, session_id: str) -> None:
        """Empty the contexts of an existing session."""

    @abstractmethod
    def remove(self, session_id: str, document_id: str) -> None:
        """Drop one document from an existing session."""

    @abstractmethod
    def list_all(self) -> List[SessionContext]:
        """Return every tracked session."""

    def add(self, session_id: str, context: DocumentContext) -> None:
        """Append ``context`` to the session, replacing an entry with the same id."""

        contexts = [item for item in self.get(session_id) if item.id != context.id]
        contexts.append(context)
        self.save(session_id, contexts)


class InMemorySessionContextStore(SessionContextStore):
    """Thread-safe in-process store with optional idle expiry and capacity bound.

    ``ttl_seconds`` evicts sessions not updated within that many seconds, checked
    lazily on every call. ``max_sessions`` evicts the least recently updated
    sessions when a new session would exceed the bound. ``None`` disables either.
    """

    def __init__(
        self,
        *,
        ttl_seconds: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_sessions is not None and max_sessions <= 0:
            raise ValueError("max_sessions must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: "OrderedDict[str, SessionContext]" = OrderedDict()
        self._touched: Dict[str, float] = {}
        self._lock = threading.Lock()

    def save(self, session_id: str, contexts: Iterable[DocumentContext]) -> None:
        documents = _dedupe(contexts)
        with self._lock:
            self._evict_expired()
            existing = self._sessions.get(session_id)
            now = _now_iso()
            self._sessions[session_id] = SessionContext(
                session_id=session_id,
                document_contexts=documents,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self._touch(session_id)
            self._evict_over_capacity()
        self._record("context.save", session_id, len(documents))

    def add(self, session_id: str, context: DocumentContext) -> None:
        with self._lock:
            self._evict_expired()
            existing = self._sessions.get(session_id)
            documents = [item for item in existing.document_contexts] if existing else []
            for index, item in enumerate(documents):
                if item.id == context.id:
                    documents[index] = context
                    break
            else:
                documents.append(context)
            now = _now_iso()
            self._sessions[session_id] = SessionContext(
                session_id=session_id,
                document_contexts=documents,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self._touch(session_id)
            self._evict_over_capacity()
        self._record("context.add", session_id, len(documents), document_id=context.id)

    def get(self, session_id: str) -> List[DocumentContext]:
        with self._lock:
            self._evict_expired()
            session = self._sessions.get(session_id)
            return list(session.document_contexts) if session else []

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._evict_expired()
            session = self._sessions.get(session_id)
            if session is None:
                return
            session.document_contexts = []
            session.updated_at = _now_iso()
            self._touch(session_id)
        self._record("context.clear", session_id, 0)

    def remove(self, session_id: str, document_id: str) -> None:
        with self._lock:
            self._evict_expired()
            session = self._sessions.get(session_id)
            if session is None:
                return
            session.document_contexts = [
                item for item in session.document_contexts if item.id != document_id
            ]
            session.updated_at = _now_iso()
            self._touch(session_id)
            remaining = len(session.document_contexts)
        self._record("context.remove", session_id, remaining, document_id=document_id)

    def list_all(self) -> List[SessionContext]:
        with self._lock:
            self._evict_expired()
            return [
                replace(session, document_contexts=list(session.document_contexts))
                for session in self._sessions.values()
            ]

    def _touch(self, session_id: str) -> None:
        self._touched[session_id] = self._clock()
        self._sessions.move_to_end(session_id)

    def _drop(self, session_id: str, reason: str) -> None:
        self._sessions.pop(session_id, None)
        self._touched.pop(session_id, None)
        LOGGER.info("Evicted session context %s (%s)", session_id, reason)
        AUDIT_LOGGER.info({"event": "context.evict", "session_id": session_id, "reason": reason})

    def _evict_expired(self) -> None:
        if self.ttl_seconds is None:
            return
        deadline = self._clock() - self.ttl_seconds
        expired = [session_id for session_id, touched in self._touched.items() if touched < deadline]
        for session_id in expired:
            self._drop(session_id, "ttl")

    def _evict_over_capacity(self) -> None:
        if self.max_sessions is None:
            return
        while len(self._sessions) > self.max_sessions:
            oldest = next(iter(self._sessions))
            self._drop(oldest, "capacity")

    @staticmethod
    def _record(step: str, session_id: str, document_count: int, document_id: str | None = None) -> None:
        AUDIT_LOGGER.info(
            {
                "event": step,
                "session_id": session_id,
                "document_id": document_id,
                "document_count": document_count,
            }
        )
        emit_context_event(
            step,
            session_id=session_id,
            document_count=document_count,
            document_id=document_id,
        )


__all__ = ["InMemorySessionContextStore", "SessionContextStore"]
