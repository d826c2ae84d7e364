"""Text normalisation utilities."""
from __future__ import annotations

import re

_NON_NEWLINE_WHITESPACE_RE = re.compile(r"[^\S\n]+")
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\n]")
_MULTIPLE_SPACES_RE = re.compile(r" {2,}")
_SPACE_AROUND_NEWLINE_RE = re.compile(r" *\n *")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")

_CODE_FENCE_RE = re.compile(r"```[\s\S]*?```")
_HEADER_RE = re.compile(r"^#{1,6}[ \t]+", re.MULTILINE)
_LIST_ITEM_RE = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
_NUMBERED_ITEM_RE = re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE)
_BLOCKQUOTE_RE = re.compile(r"^[ \t]*>[ \t]?", re.MULTILINE)
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_BOLD_RE = re.compile(r"(\*\*|__)(.+?)\1")
_ITALIC_RE = re.compile(r"\*(.+?)\*")
_INLINE_CODE_RE = re.compile(r"`([^`]*)`")
_MARKDOWN_NEWLINES_RE = re.compile(r"\n{2,}")


def normalize_text(text: str) -> str:
    """Normalise line endings and whitespace, keeping printable ASCII only.

    Non-ASCII characters are dropped before whitespace is collapsed so that
    the function is idempotent.
    """

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _NON_NEWLINE_WHITESPACE_RE.sub(" ", normalized)
    normalized = _NON_PRINTABLE_RE.sub("", normalized)
    normalized = _MULTIPLE_SPACES_RE.sub(" ", normalized)
    normalized = _SPACE_AROUND_NEWLINE_RE.sub("\n", normalized)
    normalized = _MULTIPLE_NEWLINES_RE.sub("\n\n", normalized)
    return normalized.strip()


def markdown_to_text(markdown: str) -> str:
    """Strip Markdown syntax, keeping the readable text."""

    text = _CODE_FENCE_RE.sub("", markdown)
    text = _HEADER_RE.sub("", text)
    text = _LIST_ITEM_RE.sub("", text)
    text = _NUMBERED_ITEM_RE.sub("", text)
    text = _BLOCKQUOTE_RE.sub("", text)
    text = _IMAGE_RE.sub(r"\1", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _BOLD_RE.sub(r"\2", text)
    text = _ITALIC_RE.sub(r"\1", text)
    text = _INLINE_CODE_RE.sub(r"\1", text)
    text = _MARKDOWN_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def count_words(text: str) -> int:
    """Return the number of whitespace-delimited tokens in ``text``."""

    return len([word for word in text.split() if word])
