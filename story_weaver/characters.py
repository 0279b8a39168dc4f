"""Character synthesis from keywords or a free-text description."""

from __future__ import annotations

import logging
import random
import re
from typing import Any

from story_weaver.classifier import classify
from story_weaver.lexicon import Lexicon, resolve
from story_weaver.models import Character, Classification
from story_weaver.templates import keyword_context, render, render_with_keywords
from story_weaver.traits import derive_attributes

logger = logging.getLogger(__name__)

# "named Kira Vale" / "called Hex"; the name itself must be capitalized
_NAME_RE = (
    re.compile(r"\b[Nn]amed\s+([A-Z][a-z]+(?:\s[A-Z][a-z]+)?)"),
    re.compile(r"\b[Cc]alled\s+([A-Z][a-z]+(?:\s[A-Z][a-z]+)?)"),
)

DESCRIPTION_MODE_WORDS = 6


def _compose_name(names: dict[str, Any], rng: random.Random) -> str:
    first = rng.choice(names["first"])
    if not names.get("suffix"):
        return first
    return f"{first}{names.get('separator', ' ')}{rng.choice(names['suffix'])}"


def _avatar(lex: Lexicon, photos: list[str], rng: random.Random) -> str:
    return render(lex.archetypes["avatar_url"], {"photo": rng.choice(photos)})


# ── keyword mode ─────────────────────────────────────────


def character_from_keywords(
    keywords: str | None,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> Character:
    """Build a character from a short keyword string.

    An archetype bundle (ninja, wizard, robot, ...) supplies the name, the
    description fragments, the opening line and the avatar. Without one the
    type-indexed generic pools are used and their templates take the first
    three keywords. The background always comes from the type pool.
    """
    lex = resolve(lexicon)
    rng = rng or random.Random()
    found = classify(keywords, lex)
    attrs = derive_attributes(found, lex, rng)

    pool = lex.type_pool(attrs.type)
    bundle = lex.bundle(attrs.archetype)
    variant = bundle["variants"][attrs.variant] if bundle and attrs.variant is not None else None
    words = found.words

    if bundle:
        name = _compose_name(bundle["names"], rng)
        moods = bundle.get("moods") or pool["moods"]
    else:
        name = _compose_name(pool["names"], rng)
        moods = pool["moods"]
    mood = attrs.mood if attrs.mood != "neutral" else rng.choice(moods)

    if bundle:
        description = _bundle_description(bundle, variant, rng)
        lines = (variant or {}).get("opening_lines") or bundle["opening_lines"]
        opening_line = rng.choice(lines)
        avatar = _avatar(lex, bundle["avatars"], rng)
    else:
        description = render_with_keywords(pool["description"], words)
        openings = pool["opening_lines"]
        opening_line = render(rng.choice(openings["lines"]), keyword_context(words, openings["defaults"]))
        avatar = _avatar(lex, pool["avatars"], rng)

    logger.debug("Keyword character %r (type=%s, archetype=%s)", name, attrs.type, attrs.archetype)
    return Character(
        name=name,
        description=description,
        type=attrs.type,
        mood=mood,
        opening_line=opening_line,
        voice_style=attrs.voice_style,
        personality=attrs.personality,
        talkativeness=attrs.talkativeness,
        thinking_speed=attrs.thinking_speed,
        background=render_with_keywords(pool["background"], words),
        catchphrases=[],
        avatar=avatar,
        archetype=attrs.archetype,
    )


def _bundle_description(bundle: dict[str, Any], variant: dict[str, Any] | None, rng: random.Random) -> str:
    base = bundle["description"]
    entry = (variant or {}).get("description") or base
    pools = {**base.get("pools", {}), **entry.get("pools", {})}
    return render(entry["text"], {slot: rng.choice(options) for slot, options in pools.items()})


# ── description mode ─────────────────────────────────────


def _themed_pick(section: dict[str, Any], themes: list[str], rng: random.Random) -> str | None:
    for theme, options in section.get("themed", []):
        if theme in themes:
            return rng.choice(options)
    return None


def _name_from_description(text: str, found: Classification, lex: Lexicon, rng: random.Random) -> str:
    for pattern in _NAME_RE:
        match = pattern.search(text)
        if match:
            return match.group(1)
    names = lex.descriptions["names"]
    for pool in names["pools"]:
        if not found.tokens.isdisjoint(pool["keywords"]):
            return _compose_name(pool, rng)
    return rng.choice(names["default"])


def _enhance(description: str, themes: list[str], lex: Lexicon, rng: random.Random) -> str:
    table = lex.descriptions

    physical = _themed_pick(table["physical"], themes, rng)
    if physical is None:
        physical = f"{rng.choice(table['physical']['general'])}, with {rng.choice(table['physical']['features'])}"
    background = _themed_pick(table["background"], themes, rng) or rng.choice(table["background"]["general"])
    motivation = _themed_pick(table["motivation"], themes, rng) or rng.choice(table["motivation"]["general"])

    specialized = ""
    for theme, (first, second) in table["specialized"]["themed"]:
        if theme in themes:
            specialized = f"{rng.choice(first)}. {rng.choice(second)}."
            break

    quirk = rng.choice(table["quirks"])
    relationships = rng.choice(table["relationships"])
    goals = rng.choice(table["goals"])
    flaw = rng.choice(table["flaws"])

    text = (
        f"{description} {physical}. {background}. {motivation}. {specialized} {quirk}. "
        f"{relationships}. {goals}. Despite their strengths, they {flaw}."
    )
    text = re.sub(r"\.\s+\.", ".", text)
    return re.sub(r"\s\s+", " ", text)


def _description_opening(text: str, character_type: str, mood: str, lex: Lexicon) -> str:
    table = lex.descriptions
    lowered = text.lower()
    for override in table["opening_overrides"]:
        if any(stem in lowered for stem in override["stems"]):
            return override["line"]
    lines = table["opening_lines"].get(character_type) or table["opening_lines"]["modern"]
    return lines.get(mood) or lines["default"]


def character_from_description(
    description: str | None,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> Character | None:
    """Expand a prose description into a full character.

    Returns None for blank input. The description is extended with themed
    fragments (appearance, background, motivation, speciality, quirk,
    relationships, goals and a flaw), picked by the themes it mentions.
    """
    if not description or not description.strip():
        return None
    lex = resolve(lexicon)
    rng = rng or random.Random()
    text = description.strip()
    found = classify(text, lex)
    attrs = derive_attributes(found, lex, rng)
    themes = found.matched("theme")

    name = _name_from_description(text, found, lex, rng)
    enhanced = _enhance(text, themes, lex, rng)
    logger.debug("Description character %r (themes=%s)", name, themes)

    return Character(
        name=name,
        description=enhanced,
        type=attrs.type,
        mood=attrs.mood,
        opening_line=_description_opening(text, attrs.type, attrs.mood, lex),
        voice_style=attrs.voice_style,
        personality=attrs.personality,
        talkativeness=attrs.talkativeness,
        thinking_speed=attrs.thinking_speed,
        background=enhanced,
        catchphrases=[],
        avatar="",
        archetype=attrs.archetype,
    )


def synthesize_character(
    text: str | None,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> Character | None:
    """Pick keyword or description mode by input length."""
    if not text or not text.strip():
        return None
    if len(text.split()) > DESCRIPTION_MODE_WORDS:
        return character_from_description(text, lexicon, rng)
    return character_from_keywords(text, lexicon, rng)
