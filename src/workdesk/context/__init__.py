"""Session document contexts and prompt injection."""
from __future__ import annotations

from .builder import create_document_context, extract_key_points, generate_summary
from .injector import ContextInjector
from .models import DocumentContext, SessionContext
from .store import InMemorySessionContextStore, SessionContextStore

__all__ = [
    "ContextInjector",
    "DocumentContext",
    "InMemorySessionContextStore",
    "SessionContext",
    "SessionContextStore",
    "create_document_context",
    "extract_key_points",
    "generate_summary",
]
