"""Heuristic extraction of contact first names from a chat message.

The patterns are case-insensitive, so lowercase words after a cue ("for her")
are candidates too; the stoplist comparison is case-sensitive. Both quirks are
kept because contact lookups tolerate the false positives.
"""
from __future__ import annotations

import re
from typing import List

NAME_PATTERNS = (
    re.compile(r"(?:get|for|give)\s+([A-Z][a-z]+)", re.IGNORECASE),
    re.compile(r"([A-Z][a-z]+)\s+for", re.IGNORECASE),
    re.compile(r"([A-Z][a-z]+)'s\s+birthday", re.IGNORECASE),
)

STOPWORDS = frozenset({"Get", "For", "The", "What", "Should"})


def extract_candidate_names(message: str) -> List[str]:
    """Return possible contact names in ``message``, deduplicated in first-seen order."""

    names: List[str] = []
    for pattern in NAME_PATTERNS:
        for match in pattern.finditer(message):
            name = match.group(1).strip()
            if len(name) > 1 and name not in STOPWORDS:
                names.append(name)
    return list(dict.fromkeys(names))


__all__ = ["NAME_PATTERNS", "STOPWORDS", "extract_candidate_names"]
