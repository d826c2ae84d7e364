"""Render session document contexts into chat prompts."""
from __future__ import annotations

import logging
from typing import List

from .models import DocumentContext
from .store import SessionContextStore

LOGGER = logging.getLogger(__name__)

CONTEXT_HEADER = "\n\n[DOCUMENT CONTEXT - Use this information to enhance your response:]\n"
CONTEXT_FOOTER = "\n[END DOCUMENT CONTEXT]\n"
CONTEXT_INSTRUCTION = "\n\nPlease use the document context above to enhance your response."
DEFAULT_PREVIEW_CHARS = 500


class ContextInjector:
    """Build the document context block for a session and append it to messages."""

    def __init__(self, store: SessionContextStore, *, preview_chars: int = DEFAULT_PREVIEW_CHARS) -> None:
        self.store = store
        self.preview_chars = preview_chars

    def build_summary(self, session_id: str) -> str:
        contexts = self.store.get(session_id)
        if not contexts:
            return ""
        parts: List[str] = [CONTEXT_HEADER]
        for index, context in enumerate(contexts, start=1):
            parts.append(self._render(index, context))
        parts.append(CONTEXT_FOOTER)
        return "".join(parts)

    def inject_context(self, message: str, session_id: str) -> str:
        summary = self.build_summary(session_id)
        if not summary:
            return message
        LOGGER.debug("Injecting %s chars of document context into session %s", len(summary), session_id)
        return f"{message}{summary}{CONTEXT_INSTRUCTION}"

    def _preview(self, content: str) -> str:
        if len(content) > self.preview_chars:
            return content[: self.preview_chars] + "..."
        return content

    def _render(self, index: int, context: DocumentContext) -> str:
        return (
            f"\nDocument {index}: {context.file_name}\n"
            f"Content Summary: {context.summary}\n"
            f"Key Information: {', '.join(context.key_points)}\n"
            f"Content Preview: {self._preview(context.content)}\n"
        )


__all__ = ["ContextInjector"]
