"""Writing instructions: how a character should phrase its next reply."""

from __future__ import annotations

import logging
from typing import Any

from story_weaver.lexicon import Lexicon, resolve
from story_weaver.models import Character, StoryArc, WritingInstructions
from story_weaver.templates import render

logger = logging.getLogger(__name__)


def _writing_style(character: Character, table: dict[str, Any]) -> tuple[str, str]:
    for rule in table["styles"]:
        if character.personality.value(rule["trait"]) > rule["above"]:
            return rule["style"], rule["reminder"]
    return "balanced", ""


def _response_length(character: Character, table: dict[str, Any]) -> str:
    if character.talkativeness > table["length"]["long_above"]:
        return "long"
    if character.talkativeness < table["length"]["brief_below"]:
        return "brief"
    return "medium"


def _in_known_scenario(arc: StoryArc, lex: Lexicon) -> bool:
    """Whether the arc title names a known scenario, exactly or in part."""
    query = arc.title.lower()
    return any(
        scenario.title == arc.title or (query and query in scenario.title.lower())
        for scenario in lex.known_scenarios
    )


def instruct(
    arc: StoryArc | dict | None,
    character: Character | dict | None,
    lexicon: Lexicon | None = None,
) -> WritingInstructions:
    """Build the per-turn directive for one character in one arc.

    Missing input gives the neutral defaults (balanced, medium, no notes).
    """
    if arc is None or character is None:
        return WritingInstructions()
    if not isinstance(arc, StoryArc):
        arc = StoryArc.model_validate(arc)
    if not isinstance(character, Character):
        character = Character.model_validate(character)

    lex = resolve(lexicon)
    table = lex.instructions
    style, style_reminder = _writing_style(character, table)

    reminders = [render(table["character_reminder"], {"name": character.name, "description": character.description})]
    if style_reminder:
        reminders.append(style_reminder)
    if character.type in table["type_reminders"]:
        reminders.append(table["type_reminders"][character.type])
    if character.voice_style:
        reminders.append(render(table["voice_reminder"], {"voice_style": character.voice_style}))

    phase_notes = table["phase_notes"].get(arc.current_phase, {})
    notes = [phase_notes.get(arc.theme) or phase_notes.get("general", "")]
    tension_note = table["tension_notes"].get(arc.current_tension)
    if tension_note:
        notes.append(tension_note)
    if _in_known_scenario(arc, lex):
        notes.append(render(table["scenario_reminder"], {"title": arc.title}))
        if arc.current_goal:
            notes.append(render(table["goal_reminder"], {"goal": arc.current_goal}))

    logger.debug("Instructions for %r: style=%s phase=%s", character.name, style, arc.current_phase)
    return WritingInstructions(
        story_arc=arc.current_context,
        writing_style=style,
        response_length=_response_length(character, table),
        character_reminders=" ".join(reminders),
        general_notes=" ".join(note for note in notes if note),
    )
