"""Keyword classifier: free text → normalized tokens + category matches.

Tokens are lower-cased, split on whitespace and punctuation, and anything of two
characters or fewer is dropped. Categories from the lexicon are tested by set
intersection in priority order; description themes are tested by substring
containment since their keywords are stems ("enchant", "mystic").
Nothing here raises: empty or None input classifies to nothing.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from story_weaver.lexicon import Lexicon, resolve
from story_weaver.models import Classification

logger = logging.getLogger(__name__)

_SPLIT_RE = re.compile(r"[\s,.;:!?\"()]+")

MIN_TOKEN_LENGTH = 3


def tokenize(text: str | None) -> list[str]:
    """Ordered keyword tokens, duplicates kept."""
    if not text or not isinstance(text, str):
        return []
    return [w for w in _SPLIT_RE.split(text.lower()) if len(w) >= MIN_TOKEN_LENGTH]


def mentions(text: str, stems: Iterable[str]) -> list[str]:
    """Stems contained anywhere in text (case-insensitive)."""
    lowered = text.lower()
    return [stem for stem in stems if stem in lowered]


def classify(text: str | None, lexicon: Lexicon | None = None) -> Classification:
    lex = resolve(lexicon)
    words = tokenize(text)
    tokens = frozenset(words)
    raw = text.lower() if isinstance(text, str) else ""

    matches: dict[str, dict[str, list[str]]] = {}
    if tokens:
        for category, entries in lex.categories.items():
            hits = {name: sorted(tokens.intersection(kws)) for name, kws in entries}
            hits = {name: kws for name, kws in hits.items() if kws}
            if hits:
                matches[category] = hits

        themes = {name: found for name, stems in lex.themes if (found := mentions(raw, stems))}
        if themes:
            matches["theme"] = themes

        franchise = _match_franchise(raw, lex)
        if franchise is not None:
            matches["franchise"] = {franchise[0]: franchise[1]}

    return Classification(text=raw, words=words, tokens=tokens, matches=matches)


def find_franchise(text: str | None, lexicon: Lexicon | None = None) -> str | None:
    """Name of the franchise the text refers to, or None."""
    if not text or not isinstance(text, str):
        return None
    found = _match_franchise(text.lower(), resolve(lexicon))
    return found[0] if found else None


def _match_franchise(lowered: str, lex: Lexicon) -> tuple[str, list[str]] | None:
    records = lex.franchises["franchises"]
    # Full name first, then the conjunction aliases ("star" + "wars")
    for record in records:
        if record["name"] in lowered:
            return record["name"], [record["name"]]
    for record in records:
        for group in record.get("aliases", []):
            if all(word in lowered for word in group):
                logger.debug("Franchise %r matched by alias %s", record["name"], group)
                return record["name"], list(group)
    return None
