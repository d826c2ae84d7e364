"""Heuristic section splitting for extracted document text."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Sequence

from .models import Section

LOGGER = logging.getLogger(__name__)

# Applied in order; the index doubles as the final tie-break.
SECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^#{1,3}[ \t]+(.+)$", re.MULTILINE),
    re.compile(r"^([A-Z][A-Z \t]{2,})[ \t]*$", re.MULTILINE),
    re.compile(r"^(\d+\.?[ \t]+[A-Z].+)$", re.MULTILINE),
    re.compile(r"^([A-Z][a-z \t]{5,}):?[ \t]*$", re.MULTILINE),
)

MIN_BODY_CHARS = 10


@dataclass(slots=True)
class _Candidate:
    section: Section
    family: int


def _candidates_for(pattern: re.Pattern[str], family: int, content: str) -> List[_Candidate]:
    matches = list(pattern.finditer(content))
    candidates: List[_Candidate] = []
    for index, match in enumerate(matches):
        title = match.group(1).strip()
        start = match.start()
        end = matches[index + 1].start() if index + 1 < len(matches) else len(content)
        if end - start <= len(title) + MIN_BODY_CHARS:
            continue
        candidates.append(
            _Candidate(
                section=Section(
                    title=title,
                    content=content[start:end].strip(),
                    start_index=start,
                    end_index=end,
                ),
                family=family,
            )
        )
    return candidates


def split_sections(
    content: str, patterns: Sequence[re.Pattern[str]] = SECTION_PATTERNS
) -> List[Section]:
    """Segment ``content`` into titled, non-overlapping sections.

    Every pattern family proposes candidates spanning from one match to the
    next match of the same family. Candidates are ordered by start offset, then
    by longer title, then by family order, and kept greedily when they do not
    overlap the previously kept section.
    """

    if not content:
        return []

    candidates: List[_Candidate] = []
    for family, pattern in enumerate(patterns):
        candidates.extend(_candidates_for(pattern, family, content))

    candidates.sort(
        key=lambda item: (item.section.start_index, -len(item.section.title), item.family)
    )

    sections: List[Section] = []
    for candidate in candidates:
        if sections and candidate.section.start_index < sections[-1].end_index:
            continue
        sections.append(candidate.section)

    LOGGER.debug("Split content into %s sections from %s candidates", len(sections), len(candidates))
    return sections
