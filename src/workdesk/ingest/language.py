"""Language detection helpers."""
from __future__ import annotations

import logging
import re
from typing import Sequence

LOGGER = logging.getLogger(__name__)

ENGLISH_STOP_WORDS: tuple[str, ...] = (
    "the",
    "and",
    "or",
    "but",
    "in",
    "on",
    "at",
    "to",
    "for",
    "of",
    "with",
    "by",
)


class LanguageDetector:
    """Best-effort language guess based on common English stop-words."""

    def __init__(
        self,
        *,
        sample_chars: int = 1000,
        threshold: int = 5,
        stop_words: Sequence[str] = ENGLISH_STOP_WORDS,
    ) -> None:
        self.sample_chars = sample_chars
        self.threshold = threshold
        self._pattern = re.compile(r"\b(?:" + "|".join(map(re.escape, stop_words)) + r")\b")

    def detect(self, text: str) -> str:
        sample = text[: self.sample_chars].lower()
        matches = len(self._pattern.findall(sample))
        language = "en" if matches > self.threshold else "unknown"
        LOGGER.debug("Detected language %s from %s stop-word matches", language, matches)
        return language
