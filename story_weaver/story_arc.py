"""Story arc state machine.

An arc tracks one conversation through the phases

    introduction → discovery → conflict → planning → climax → resolution

Each call to advance() looks at the last few chat turns, and when they mention
a keyword registered for the current phase the arc moves to that entry's next
phase (never backwards). Known scenarios carry their own transition table;
everything else uses the generic one. Goals and context are refreshed from
per-theme tables on every call, independently of the phase move.

Arcs are immutable from the caller's point of view: every operation returns
a new StoryArc.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Any

from story_weaver.classifier import mentions
from story_weaver.lexicon import Lexicon, resolve
from story_weaver.models import ChatTurn, KnownScenario, PhaseTransition, StoryArc

logger = logging.getLogger(__name__)

NARRATOR = "Narrator"
DEFAULT_WINDOW = 5


# ── known scenarios ──────────────────────────────────────


def find_scenario(
    title: str | None = None,
    theme: str | None = None,
    lexicon: Lexicon | None = None,
) -> KnownScenario | None:
    """Look up a known scenario: exact title, partial title, then theme."""
    known = resolve(lexicon).known_scenarios
    if not title and not theme:
        logger.warning("Scenario lookup without a title or theme")
        return None

    if title:
        for scenario in known:
            if scenario.title == title:
                return scenario
        query = title.lower()
        for scenario in known:
            if query in scenario.title.lower():
                logger.info("Partial title match: %r → %r", title, scenario.title)
                return scenario
    if theme:
        for scenario in known:
            if scenario.theme == theme:
                logger.info("Theme match: %r → %r", theme, scenario.title)
                return scenario
    return None


# ── phase tables ─────────────────────────────────────────


class PhaseTable:
    """Keyword-triggered transitions, one entry per phase."""

    def __init__(self, transitions: dict[str, PhaseTransition]) -> None:
        self.transitions = transitions

    def has_entry(self, phase: str) -> bool:
        return phase in self.transitions

    def next_phase(self, phase: str, text: str) -> str | None:
        """Phase to move to when text mentions one of the phase's keywords."""
        entry = self.transitions.get(phase)
        if entry is None or not mentions(text, entry.keywords):
            return None
        return entry.next


class ScenarioPhaseTable(PhaseTable):
    def __init__(self, scenario: KnownScenario) -> None:
        super().__init__(scenario.transitions)
        self.scenario = scenario


class GenericPhaseTable(PhaseTable):
    def __init__(self, lexicon: Lexicon | None = None) -> None:
        table = resolve(lexicon).story_arcs["generic_transitions"]
        super().__init__({phase: PhaseTransition.model_validate(t) for phase, t in table.items()})


def phase_table_for(arc: StoryArc, lexicon: Lexicon | None = None) -> PhaseTable:
    lex = resolve(lexicon)
    scenario = find_scenario(arc.title, arc.theme, lex)
    if scenario is not None:
        table = ScenarioPhaseTable(scenario)
        if table.has_entry(arc.current_phase):
            return table
    return GenericPhaseTable(lex)


# ── initialization ───────────────────────────────────────


def detect_theme(text: str | None, lexicon: Lexicon | None = None) -> str:
    table = resolve(lexicon).story_arcs
    if text:
        for theme, stems in table["theme_detection"]:
            if mentions(text, stems):
                return theme
    return table["defaults"]["theme"]


def initialize(
    title: str | None = None,
    prompt: str | None = None,
    theme: str | None = None,
    lexicon: Lexicon | None = None,
) -> StoryArc:
    """Create the arc for a new conversation."""
    lex = resolve(lexicon)
    table = lex.story_arcs
    title = title or table["defaults"]["title"]
    prompt = prompt or table["defaults"]["prompt"]
    theme = theme or detect_theme(prompt, lex)

    scenario = find_scenario(title, theme, lex)
    if scenario is not None:
        logger.info("Story arc %r seeded from known scenario %r", title, scenario.title)
        return StoryArc(
            title=title,
            theme=scenario.theme,
            current_phase=scenario.initial_phase,
            current_tension=scenario.initial_tension,
            current_goal=scenario.initial_goal,
            key_characters=scenario.key_characters,
            key_locations=scenario.key_locations,
            plot_points=scenario.plot_points,
            current_context=scenario.initial_context,
        )

    defaults = table["theme_defaults"].get(theme)
    if defaults is not None:
        return StoryArc(
            title=title,
            theme=theme,
            current_phase=defaults["phase"],
            current_tension=defaults["tension"],
            current_context=defaults["context"],
        )

    return StoryArc(title=title, theme=theme, current_context=prompt)


# ── advancing ────────────────────────────────────────────


def _body(message: Any) -> str:
    if isinstance(message, ChatTurn):
        return message.message
    if isinstance(message, dict):
        return ChatTurn.model_validate(message).message
    return "" if message is None else str(message)


def _phase_rank(phase: str, lex: Lexicon) -> int:
    return lex.story_arcs["phase_order"].index(phase)


def _goal_for(theme: str, text: str, lex: Lexicon) -> str | None:
    for rule in lex.story_arcs["goals"].get(theme, []):
        if mentions(text, rule["keywords"]):
            return rule["goal"]
    return None


def _context_for(arc: StoryArc, phase: str, text: str, lex: Lexicon) -> str | None:
    scenario = find_scenario(arc.title, arc.theme, lex)
    if scenario is not None and phase in scenario.phase_contexts:
        return scenario.phase_contexts[phase]
    for entry in lex.story_arcs["contexts"].get(arc.theme, {}).get(phase, []):
        if not entry.get("keywords") or mentions(text, entry["keywords"]):
            return entry["text"]
    return None


def advance(
    arc: StoryArc | dict | None,
    messages: Sequence[ChatTurn | dict | str] | None,
    window: int = DEFAULT_WINDOW,
    lexicon: Lexicon | None = None,
) -> StoryArc | None:
    """Return the arc after reading the latest chat turns."""
    if arc is None:
        return None
    if not isinstance(arc, StoryArc):
        arc = StoryArc.model_validate(arc)
    if not messages or window <= 0:
        return arc.model_copy(deep=True)

    lex = resolve(lexicon)
    text = " ".join(_body(m) for m in messages[-window:]).lower()
    phase = arc.current_phase
    update: dict[str, Any] = {"previous_context": arc.current_context}

    target = phase_table_for(arc, lex).next_phase(phase, text)
    if target is not None and _phase_rank(target, lex) > _phase_rank(phase, lex):
        logger.debug("Story arc %r: %s → %s", arc.title, phase, target)
        update["current_phase"] = target
        update["current_tension"] = lex.story_arcs["tension_by_phase"].get(target, arc.current_tension)

    goal = _goal_for(arc.theme, text, lex)
    if goal:
        update["current_goal"] = goal

    context = _context_for(arc, phase, text, lex)
    if context:
        update["current_context"] = context

    return arc.model_copy(update=update, deep=True)


# ── scenario extras ──────────────────────────────────────


def environmental_event(
    arc: StoryArc,
    severity: str = "minor",
    rng: random.Random | None = None,
    lexicon: Lexicon | None = None,
) -> str | None:
    scenario = find_scenario(arc.title, arc.theme, lexicon)
    events = scenario.environmental_events.get(severity) if scenario else None
    if not events:
        return None
    return (rng or random.Random()).choice(events)


def quick_actions(arc: StoryArc, lexicon: Lexicon | None = None) -> list[str]:
    scenario = find_scenario(arc.title, arc.theme, lexicon)
    return list(scenario.quick_actions) if scenario else []


def opening_turns(arc: StoryArc, lexicon: Lexicon | None = None) -> list[ChatTurn]:
    """The scripted narration and first lines of a known scenario."""
    scenario = find_scenario(arc.title, arc.theme, lexicon)
    if scenario is None:
        return []
    turns = []
    if scenario.initial_narration:
        turns.append(ChatTurn(speaker=NARRATOR, message=scenario.initial_narration))
    turns.extend(turn.model_copy() for turn in scenario.initial_messages)
    return turns
