"""Loadable keyword tables, name pools and template fragments.

Every table the synthesizers consult lives in a JSON file under a presets
directory (``story_weaver/presets`` by default):

  traits        type order, moods, trait adjustments/modifiers, voices
  archetypes    archetype bundles and type-indexed generic pools
  descriptions  long-form description themes and fragment pools
  scenarios     scenario types, templates, palettes, settings, cast pools
  franchises    franchise lexicons and the three quick-scenario focuses
  story_arcs    known scenarios, phase tables, goals, contexts
  instructions  writing-style rules and phase/tension notes

A Lexicon is read-only once loaded; callers pass it explicitly and the
packaged set is cached behind default_lexicon().
"""

from __future__ import annotations

import json
import logging
from functools import cached_property
from pathlib import Path
from typing import Any

from story_weaver.models import KnownScenario

logger = logging.getLogger(__name__)

PRESETS_DIR = Path(__file__).parent / "presets"

TABLES = ("traits", "archetypes", "descriptions", "scenarios", "franchises", "story_arcs", "instructions")

_default: Lexicon | None = None


class LexiconError(Exception):
    """Raised when a preset table is missing or malformed."""


class Lexicon:
    def __init__(self, tables: dict[str, dict[str, Any]], source: Path | None = None) -> None:
        missing = [name for name in TABLES if name not in tables]
        if missing:
            raise LexiconError(f"Missing preset tables: {', '.join(missing)}")
        self.tables = tables
        self.source = source

    @classmethod
    def load(cls, presets_dir: Path | str | None = None) -> Lexicon:
        """Read every preset table from a directory."""
        directory = Path(presets_dir) if presets_dir else PRESETS_DIR
        tables: dict[str, dict[str, Any]] = {}
        for name in TABLES:
            path = directory / f"{name}.json"
            if not path.is_file():
                raise LexiconError(f"Preset file not found: {path}")
            try:
                tables[name] = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise LexiconError(f"Preset file {path} is not valid JSON: {e}") from e
        logger.debug("Loaded %d preset tables from %s", len(tables), directory)
        return cls(tables, source=directory)

    def replace(self, name: str, table: dict[str, Any]) -> Lexicon:
        """Copy of this lexicon with one table swapped out."""
        if name not in TABLES:
            raise LexiconError(f"Unknown preset table: {name}")
        return Lexicon({**self.tables, name: table}, source=self.source)

    # ── raw tables ──────────────────────────────────────────

    @property
    def traits(self) -> dict[str, Any]:
        return self.tables["traits"]

    @property
    def archetypes(self) -> dict[str, Any]:
        return self.tables["archetypes"]

    @property
    def descriptions(self) -> dict[str, Any]:
        return self.tables["descriptions"]

    @property
    def scenarios(self) -> dict[str, Any]:
        return self.tables["scenarios"]

    @property
    def franchises(self) -> dict[str, Any]:
        return self.tables["franchises"]

    @property
    def story_arcs(self) -> dict[str, Any]:
        return self.tables["story_arcs"]

    @property
    def instructions(self) -> dict[str, Any]:
        return self.tables["instructions"]

    # ── derived views ───────────────────────────────────────

    def bundle(self, name: str | None) -> dict[str, Any] | None:
        """Archetype bundle by name."""
        for bundle in self.archetypes["archetypes"]:
            if bundle["name"] == name:
                return bundle
        return None

    def type_pool(self, character_type: str) -> dict[str, Any]:
        """Generic name/description pools for a type (modern when it has none)."""
        pools = self.archetypes["types"]
        return pools.get(character_type) or pools["modern"]

    def franchise(self, name: str | None) -> dict[str, Any] | None:
        for record in self.franchises["franchises"]:
            if record["name"] == name:
                return record
        return None

    @cached_property
    def known_scenarios(self) -> list[KnownScenario]:
        return [KnownScenario.model_validate(r) for r in self.story_arcs["known_scenarios"]]

    @cached_property
    def categories(self) -> dict[str, list[tuple[str, list[str]]]]:
        """Token categories in priority order: {category: [(name, keywords), ...]}."""
        traits = self.traits
        trait_words: dict[str, list[str]] = {}
        for rule in traits["adjustments"] + traits["modifiers"]:
            for trait in rule.get("set", {}):
                bucket = trait_words.setdefault(trait, [])
                bucket.extend(k for k in rule["keywords"] if k not in bucket)
        return {
            "character_type": [(name, kws) for name, kws in traits["type_order"]],
            "scenario_type": [(name, kws) for name, kws in self.scenarios["type_order"]],
            "archetype": [(b["name"], b["keywords"]) for b in self.archetypes["archetypes"]],
            "mood": [(name, kws) for name, kws in traits["moods"]],
            "trait": list(trait_words.items()),
            "voice": [(v["keywords"][0], v["keywords"]) for v in traits["voices"]],
        }

    @cached_property
    def themes(self) -> list[tuple[str, list[str]]]:
        """Description themes, matched by substring containment."""
        return list(self.descriptions["themes"].items())


def default_lexicon() -> Lexicon:
    """The packaged presets, loaded once."""
    global _default
    if _default is None:
        _default = Lexicon.load()
    return _default


def resolve(lexicon: Lexicon | None) -> Lexicon:
    return lexicon if lexicon is not None else default_lexicon()
