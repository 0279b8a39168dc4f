"""Trait & attribute derivation.

Attributes come from an ordered list of rules. Each rule is a pure
function ``(classification, rng) -> partial | None`` and the partials are
merged later-overrides-earlier:

  1. baseline           personality 5, talkativeness 5, speed 1.0
  2. character type     first match in type_order
  3. archetype bundle   samples the whole trait vector (plus variants)
  4. adjustments        one rule per table entry
  5. modifiers          set / add / cap, one rule per table entry
  6. mood, talkativeness, thinking speed, voice

A partial may carry ``personality`` (values to set), ``personality_add``
(deltas) and ``personality_cap`` (upper bounds); every other key replaces the
merged value outright. Clamping happens once, in DerivedAttributes.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from typing import Any

from story_weaver.classifier import classify
from story_weaver.lexicon import Lexicon, resolve
from story_weaver.models import Classification, DerivedAttributes

logger = logging.getLogger(__name__)

Partial = dict[str, Any]
Rule = Callable[[Classification, random.Random], "Partial | None"]

BASELINE_TRAIT = 5


def _hits(tokens: frozenset[str], keywords: Iterable[str]) -> bool:
    return not tokens.isdisjoint(keywords)


def _first_named(tokens: frozenset[str], entries: list[list[Any]]) -> str | None:
    for name, keywords in entries:
        if _hits(tokens, keywords):
            return name
    return None


def _sample(bounds: Any, rng: random.Random) -> int:
    """Trait bounds are either a fixed int or an inclusive [low, high] range."""
    if isinstance(bounds, list):
        low, high = bounds
        return rng.randint(low, high)
    return int(bounds)


# ── rule factories ───────────────────────────────────────


def _baseline_rule(table: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial:
        return {
            "type": table["default_type"],
            "mood": table["default_mood"],
            "personality": {trait: table["baseline"] for trait in table["core_traits"]},
            "talkativeness": table["talkativeness"]["baseline"],
            "thinking_speed": table["thinking_speed"]["baseline"],
        }

    return rule


def _type_rule(table: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        name = _first_named(found.tokens, table["type_order"])
        return {"type": name} if name else None

    return rule


def _archetype_rule(bundles: list[dict[str, Any]]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        for bundle in bundles:
            if not _hits(found.tokens, bundle["keywords"]):
                continue
            personality = {trait: _sample(bounds, rng) for trait, bounds in bundle["personality"].items()}
            partial: Partial = {"archetype": bundle["name"], "personality": personality}
            if bundle.get("type"):
                partial["type"] = bundle["type"]
            for index, variant in enumerate(bundle.get("variants", [])):
                if _hits(found.tokens, variant["when"]):
                    personality.update(
                        {trait: _sample(bounds, rng) for trait, bounds in variant.get("personality", {}).items()}
                    )
                    partial["variant"] = index
                    break
            logger.debug("Archetype %s matched (variant=%s)", bundle["name"], partial.get("variant"))
            return partial
        return None

    return rule


def _adjustment_rule(entry: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        if not _hits(found.tokens, entry["keywords"]):
            return None
        return {"personality": dict(entry["set"])}

    return rule


def _modifier_rule(entry: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        if not _hits(found.tokens, entry["keywords"]):
            return None
        partial: Partial = {}
        if "set" in entry:
            partial["personality"] = dict(entry["set"])
        if "add" in entry:
            partial["personality_add"] = dict(entry["add"])
        if "cap" in entry:
            partial["personality_cap"] = dict(entry["cap"])
        return partial

    return rule


def _mood_rule(table: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        mood = _first_named(found.tokens, table["moods"])
        return {"mood": mood} if mood else None

    return rule


def _talkativeness_rule(table: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        for entry in table["talkativeness"]["rules"]:
            if _hits(found.tokens, entry["keywords"]):
                return {"talkativeness": entry["value"]}
        return None

    return rule


def _speed_rule(table: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        speed = table["thinking_speed"]
        for entry in speed["rules"]:
            if _hits(found.tokens, entry["keywords"]):
                return {"thinking_speed": speed["baseline"] * entry["factor"]}
        return None

    return rule


def _voice_rule(table: dict[str, Any]) -> Rule:
    def rule(found: Classification, rng: random.Random) -> Partial | None:
        for entry in table["voices"]:
            if _hits(found.tokens, entry["keywords"]):
                return {"voice_style": entry["style"]}
        return None

    return rule


def build_rules(lexicon: Lexicon | None = None) -> list[Rule]:
    """The ordered derivation rules for a lexicon."""
    lex = resolve(lexicon)
    table = lex.traits
    rules: list[Rule] = [
        _baseline_rule(table),
        _type_rule(table),
        _archetype_rule(lex.archetypes["archetypes"]),
    ]
    rules.extend(_adjustment_rule(entry) for entry in table["adjustments"])
    rules.extend(_modifier_rule(entry) for entry in table["modifiers"])
    rules.extend([
        _mood_rule(table),
        _talkativeness_rule(table),
        _speed_rule(table),
        _voice_rule(table),
    ])
    return rules


# ── merging ──────────────────────────────────────────────


def merge_partials(partials: Iterable[Partial | None]) -> Partial:
    """Fold partials in order; later values override earlier ones.

    Deltas and caps apply to the personality merged so far, with an unset
    trait counting as the baseline.
    """
    merged: Partial = {"personality": {}}
    for partial in partials:
        if not partial:
            continue
        personality = merged["personality"]
        for key, value in partial.items():
            if key == "personality":
                personality.update(value)
            elif key == "personality_add":
                for trait, delta in value.items():
                    personality[trait] = personality.get(trait, BASELINE_TRAIT) + delta
            elif key == "personality_cap":
                for trait, cap in value.items():
                    personality[trait] = min(personality.get(trait, BASELINE_TRAIT), cap)
            else:
                merged[key] = value
    return merged


def derive_attributes(
    classification: Classification | str | None,
    lexicon: Lexicon | None = None,
    rng: random.Random | None = None,
) -> DerivedAttributes:
    """Run every rule over a classification and return clamped attributes."""
    lex = resolve(lexicon)
    rng = rng or random.Random()
    if not isinstance(classification, Classification):
        classification = classify(classification, lex)

    merged = merge_partials(rule(classification, rng) for rule in build_rules(lex))
    if not merged.get("voice_style"):
        defaults = lex.traits["voice_defaults"]
        merged["voice_style"] = defaults.get(merged.get("type"), defaults["default"])
    return DerivedAttributes.model_validate(merged)
