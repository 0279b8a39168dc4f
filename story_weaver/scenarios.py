"""Scenario synthesis: typed settings, diverse casts and franchise scenarios.

Keyword scenarios are typed by the first matching scenario category (combat
outranks everything, casual is the fallback), titled from per-type Handlebars
templates and given a gradient background from the type's palette. The quick
flow produces three scenarios at once: franchise-themed when the keywords name
a known franchise, otherwise one per keyword variation (action, mystery,
character), with a setting variation swapped in when the types collide.
"""

from __future__ import annotations

import logging
import random
from typing import Any

from story_weaver.characters import character_from_keywords
from story_weaver.classifier import classify, find_franchise
from story_weaver.lexicon import Lexicon, resolve
from story_weaver.models import Character, Classification, Scenario
from story_weaver.templates import render, render_with_keywords

logger = logging.getLogger(__name__)

QUICK_VARIATIONS = ("action", "mystery", "character")
FALLBACK_VARIATION = "setting"
SETTING_FIELDS = ("location", "threat", "goal")


def _draw(pool: list[str], used: set[str], rng: random.Random) -> str:
    """Pick without replacement while the pool lasts, then with replacement."""
    fresh = [item for item in pool if item not in used]
    choice = rng.choice(fresh or pool)
    used.add(choice)
    return choice


def scenario_type(classification: Classification | str | None, lexicon: Lexicon | None = None) -> str:
    lex = resolve(lexicon)
    if not isinstance(classification, Classification):
        classification = classify(classification, lex)
    return classification.first("scenario_type") or lex.scenarios["default_type"]


# ── setting ──────────────────────────────────────────────


def _setting(found: Classification, kind: str, lex: Lexicon) -> dict[str, str]:
    settings = lex.scenarios["settings"]
    for special in settings["special"]:
        needs_all = special.get("all", [])
        needs_any = special.get("any", [])
        if all(word in found.tokens for word in needs_all) and (
            not needs_any or not found.tokens.isdisjoint(needs_any)
        ):
            logger.debug("Special setting matched: %s", special["location"])
            return {key: special[key] for key in (*SETTING_FIELDS, "mood")}

    by_type = settings["by_type"]
    entry = by_type.get(kind) or by_type[lex.scenarios["default_type"]]
    setting = {"mood": entry["mood"]}
    for index, field in enumerate(SETTING_FIELDS):
        template, fallback = entry[field]
        word = found.word(index)
        setting[field] = render(template, {f"k{index + 1}": word}) if word else fallback
    return setting


def _background(kind: str, lex: Lexicon, rng: random.Random) -> str:
    table = lex.scenarios
    palette = table["palettes"].get(kind) or table["palettes"][table["default_palette"]]
    start, end = rng.choice(palette)
    return render(table["gradient"], {"from": start, "to": end})


# ── cast ─────────────────────────────────────────────────


def _type_words(kind: str, cast: dict[str, Any], rng: random.Random) -> list[str]:
    """Type words from one category: a biased pick for the scenario type, else any."""
    categories = cast["character_types"]
    bias = cast["type_bias"].get(kind)
    if bias and rng.random() < bias["chance"]:
        return categories[rng.choice(bias["categories"])]
    return categories[rng.choice(list(categories))]


def synthesize_cast(
    keywords: str | None,
    count: int = 3,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> list[Character]:
    """Generate a cast whose labels, type words and traits do not repeat.

    Each member is built from ``"{label} {type word} {trait} {keywords}"``
    through the keyword path, and keeps its label as ``role``.
    """
    if count <= 0:
        return []
    lex = resolve(lexicon)
    rng = rng or random.Random()
    keywords = keywords or ""
    kind = scenario_type(keywords, lex)
    cast = lex.scenarios["cast"]
    labels = cast["archetypes"].get(kind) or cast["archetypes"][lex.scenarios["default_type"]]

    used_labels: set[str] = set()
    used_types: set[str] = set()
    used_traits: set[str] = set()
    members = []
    for _ in range(count):
        label = _draw(labels, used_labels, rng)
        type_word = _draw(_type_words(kind, cast, rng), used_types, rng)
        trait = _draw(cast["traits"], used_traits, rng)
        character = character_from_keywords(f"{label} {type_word} {trait} {keywords}".strip(), lex, rng)
        members.append(character.model_copy(update={"role": label}))
    return members


# ── keyword scenarios ────────────────────────────────────


def synthesize_scenario(
    keywords: str | None,
    cast_size: int = 3,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> Scenario:
    lex = resolve(lexicon)
    rng = rng or random.Random()
    found = classify(keywords, lex)
    kind = scenario_type(found, lex)
    templates = lex.scenarios["templates"].get(kind) or lex.scenarios["templates"][lex.scenarios["default_type"]]

    scenario = Scenario(
        title=render_with_keywords(templates["title"], found.words),
        description=render_with_keywords(templates["description"], found.words),
        prompt=render_with_keywords(templates["prompt"], found.words),
        type=kind,
        background=_background(kind, lex, rng),
        **_setting(found, kind, lex),
        characters=synthesize_cast(keywords, max(cast_size, 1), lex, rng),
    )
    logger.debug("Scenario %r (type=%s)", scenario.title, kind)
    return scenario


# ── franchises ───────────────────────────────────────────


def detect_franchise(keywords: str | None, lexicon: Lexicon | None = None) -> dict[str, Any] | None:
    lex = resolve(lexicon)
    record = lex.franchise(find_franchise(keywords, lex))
    if record:
        logger.info("Detected franchise: %s", record["name"])
    return record


def _franchise_cast(record: dict[str, Any], count: int, lex: Lexicon, rng: random.Random) -> list[Character]:
    traits = lex.scenarios["cast"]["traits"]
    used_labels: set[str] = set()
    used_traits: set[str] = set()
    members = []
    for _ in range(max(count, 1)):
        label = _draw(record["characters"], used_labels, rng)
        trait = _draw(traits, used_traits, rng)
        text = f"{label} {trait} {record['name']} {record['universe']}"
        members.append(character_from_keywords(text, lex, rng).model_copy(update={"role": label}))
    return members


def franchise_scenarios(
    franchise: dict[str, Any] | str,
    cast_size: int = 3,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> list[Scenario]:
    """Three scenarios in a franchise, one per focus (action, mystery, character)."""
    lex = resolve(lexicon)
    rng = rng or random.Random()
    record = lex.franchise(franchise) if isinstance(franchise, str) else franchise
    if record is None:
        return []
    table = lex.franchises

    scenarios = []
    for index, focus in enumerate(table["focuses"]):
        nouns = {
            "setting": rng.choice(record["settings"]),
            "conflict": rng.choice(record["conflicts"]),
            "character": rng.choice(record["characters"]),
            "item": rng.choice(record["items"]),
            "theme": rng.choice(record["themes"]),
            "universe": record["universe"],
        }
        photos = record.get("backgrounds") or []
        background = (
            render(table["background_url"], {"photo": photos[index]})
            if index < len(photos)
            else table["fallback_background"]
        )
        scenarios.append(Scenario(
            title=render(focus["title"], nouns),
            description=render(focus["description"], nouns),
            prompt=render(focus["prompt"], nouns),
            type=focus["type"],
            background=background,
            franchise=record["name"],
            focus=focus["name"],
            location=nouns["setting"],
            characters=_franchise_cast(record, cast_size, lex, rng),
        ))
    return scenarios


def quick_scenarios(
    keywords: str | None,
    cast_size: int = 3,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> list[Scenario]:
    """Three scenarios for a keyword string, franchise-aware."""
    lex = resolve(lexicon)
    rng = rng or random.Random()
    record = detect_franchise(keywords, lex)
    if record:
        return franchise_scenarios(record, cast_size, lex, rng)

    def variation(name: str) -> Scenario:
        used: set[str] = set()
        pool = lex.scenarios["variations"][name]
        extra = [_draw(pool, used, rng) for _ in range(2)]
        text = " ".join(part for part in (keywords or "", *extra) if part)
        return synthesize_scenario(text, cast_size, lex, rng).model_copy(update={"focus": name})

    scenarios = [variation(name) for name in QUICK_VARIATIONS]
    if len({s.type for s in scenarios}) < len(scenarios):
        logger.debug("Quick scenarios share a type; regenerating the last with %r", FALLBACK_VARIATION)
        scenarios[-1] = variation(FALLBACK_VARIATION)
    return scenarios
