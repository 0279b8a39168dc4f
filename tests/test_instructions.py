"""Tests for per-turn writing instructions."""

from story_weaver.instructions import instruct
from story_weaver.models import Character, StoryArc, WritingInstructions
from story_weaver.story_arc import initialize


def _character(**fields) -> Character:
    fields.setdefault("name", "Jester")
    fields.setdefault("description", "a court fool with a sharp tongue.")
    return Character(**fields)


def _arc(**fields) -> StoryArc:
    fields.setdefault("title", "Chat Room")
    return StoryArc(**fields)


# ── defaults ──────────────────────────────────────────────


def test_missing_inputs_give_defaults(lexicon):
    empty = WritingInstructions()
    assert instruct(None, _character(), lexicon) == empty
    assert instruct(_arc(), None, lexicon) == empty
    assert empty.writing_style == "balanced"
    assert empty.response_length == "medium"
    assert empty.story_arc == ""


# ── writing style ─────────────────────────────────────────


def test_humor_nine_is_witty(lexicon):
    result = instruct(_arc(), _character(personality={"humor": 9}), lexicon)
    assert result.writing_style == "witty"
    assert result.character_reminders.startswith("Remember that Jester is a court fool with a sharp tongue.")
    assert "Uses humor, sarcasm, and witty remarks." in result.character_reminders


def test_first_style_rule_wins(lexicon):
    character = _character(personality={"humor": 9, "analytical": 8})
    assert instruct(_arc(), character, lexicon).writing_style == "analytical"


def test_confidence_threshold_is_strict(lexicon):
    assert instruct(_arc(), _character(personality={"confidence": 8}), lexicon).writing_style == "balanced"
    assert instruct(_arc(), _character(personality={"confidence": 9}), lexicon).writing_style == "assertive"


def test_balanced_has_no_style_clause(lexicon):
    result = instruct(_arc(), _character(), lexicon)
    assert result.writing_style == "balanced"
    assert result.character_reminders == "Remember that Jester is a court fool with a sharp tongue."


# ── response length ───────────────────────────────────────


def test_response_length(lexicon):
    lengths = {t: instruct(_arc(), _character(talkativeness=t), lexicon).response_length for t in (3, 4, 7, 8)}
    assert lengths == {3: "brief", 4: "medium", 7: "medium", 8: "long"}


# ── reminders ─────────────────────────────────────────────


def test_type_and_voice_reminders(lexicon):
    character = _character(type="fantasy", voice_style="gravelly")
    reminders = instruct(_arc(), character, lexicon).character_reminders
    assert "Uses magical or mystical terminology." in reminders
    assert reminders.endswith("Speaks in a gravelly manner.")


def test_modern_type_has_no_type_clause(lexicon):
    reminders = instruct(_arc(), _character(type="modern", personality={"emotional": 9}), lexicon).character_reminders
    assert reminders.endswith("may react strongly to situations.")


# ── notes ─────────────────────────────────────────────────


def test_general_notes_for_plain_arc(lexicon):
    result = instruct(_arc(), _character(), lexicon)
    expected = lexicon.instructions["phase_notes"]["introduction"]["general"]
    assert result.general_notes == expected


def test_theme_without_notes_uses_general(lexicon):
    arc = _arc(theme="mystery", current_phase="discovery")
    expected = lexicon.instructions["phase_notes"]["discovery"]["general"]
    assert instruct(arc, _character(), lexicon).general_notes == expected


def test_known_scenario_notes(lexicon):
    arc = initialize("Avengers: Alien Invasion", None, "superhero", lexicon)
    result = instruct(arc, _character(), lexicon)
    notes = result.general_notes
    assert notes.startswith("Focus on protecting civilians")
    assert "Maintain a sense of urgency in your responses." in notes
    assert 'Remember that you are in the "Avengers: Alien Invasion" scenario.' in notes
    assert notes.endswith("Your current goal is to Defend New York City from the alien invasion.")
    assert result.story_arc == arc.current_context


def test_very_high_tension_note(lexicon):
    arc = _arc(current_phase="climax", current_tension="very high")
    notes = instruct(arc, _character(), lexicon).general_notes
    assert notes.endswith("Convey extreme urgency and high stakes in every response.")


def test_partial_title_scenario_reminder(lexicon):
    arc = _arc(title="space station", theme="scifi")
    notes = instruct(arc, _character(), lexicon).general_notes
    assert 'Remember that you are in the "space station" scenario.' in notes
    assert "Space Station Omega" not in notes
    assert "Your current goal" not in notes


# ── input shapes ──────────────────────────────────────────


def test_accepts_dicts(lexicon):
    arc = _arc(current_phase="conflict").model_dump(by_alias=True)
    character = {"name": "Bolt", "description": "a fast courier.", "personality": {"humor": 10}, "talkativeness": 9}
    result = instruct(arc, character, lexicon)
    assert result.writing_style == "witty"
    assert result.response_length == "long"


def test_transport_shape(lexicon):
    dumped = instruct(_arc(), _character(), lexicon).model_dump(by_alias=True)
    assert set(dumped) == {"storyArc", "writingStyle", "responseLength", "characterReminders", "generalNotes"}
