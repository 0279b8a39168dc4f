"""Tests for save-file documents."""

import json

import pytest

from story_weaver.characters import character_from_keywords
from story_weaver.models import ChatTurn
from story_weaver.save_file import SaveFileError, arc_from_save, dump_save, load_save, new_save
from story_weaver.story_arc import advance, initialize

ORIGINAL_SAVE = {
    "room_name": "Avengers: Alien Invasion",
    "characters": [
        {
            "name": "Thor",
            "description": "God of thunder.",
            "type": "superhero",
            "openingLine": "I am Thor!",
            "voiceStyle": "Booming",
            "personality": {"confidence": 10, "humor": 6},
            "talkativeness": 7,
            "thinkingSpeed": 1.2,
            "color": "#3355ff",
        }
    ],
    "chat_history": [{"sender": "Thor", "text": "*raises Mjolnir*", "isAction": True}],
    "background": "",
    "theme": "superhero",
    "opening_prompt": "Aliens attack New York",
    "created_at": "2024-05-01T10:00:00Z",
    "updated_at": "2024-05-01T10:05:00Z",
    "story_arc": {
        "title": "Avengers: Alien Invasion",
        "theme": "superhero",
        "currentPhase": "planning",
        "currentTension": "high",
        "currentGoal": "Discover the enemy's weakness",
        "keyCharacters": ["Iron Man", "Thor"],
        "keyLocations": [],
        "plotPoints": [],
        "currentContext": "Regrouping.",
        "previousContext": "",
    },
    "version": "1.2.0",
}


# ── new_save / dump_save / load_save ──────────────────────


def test_new_save_stamps_times(lexicon, rng):
    save = new_save("Tavern", [character_from_keywords("wizard", lexicon, rng)], "Hello", "fantasy")
    assert save.created_at
    assert save.created_at == save.updated_at
    assert save.version == "1.2.0"
    assert save.story_arc is None


def test_dump_then_load_keeps_everything(lexicon, rng):
    arc = initialize("Avengers: Alien Invasion", None, "superhero", lexicon)
    save = new_save(
        "Avengers: Alien Invasion",
        [character_from_keywords("robot", lexicon, rng)],
        chat_history=[ChatTurn(speaker="Hulk", message="SMASH", is_action=True)],
        story_arc=arc,
    )
    text = dump_save(save)
    raw = json.loads(text)
    assert raw["story_arc"]["currentPhase"] == "conflict"
    assert "voiceStyle" in raw["characters"][0]
    assert raw["chat_history"][0]["isAction"] is True
    assert load_save(text) == save


def test_load_original_shape():
    save = load_save(json.dumps(ORIGINAL_SAVE))
    thor = save.characters[0]
    assert thor.opening_line == "I am Thor!"
    assert thor.voice_style == "Booming"
    assert thor.thinking_speed == 1.2
    assert thor.model_dump()["color"] == "#3355ff"
    assert save.chat_history[0].speaker == "Thor"
    assert save.story_arc.current_phase == "planning"


def test_loaded_arc_needs_no_normalisation(lexicon):
    save = load_save(json.dumps(ORIGINAL_SAVE))
    updated = advance(save.story_arc, ["Launch the final attack on the mothership"], lexicon=lexicon)
    assert updated.current_phase == "climax"


def test_load_rejects_bad_json():
    with pytest.raises(SaveFileError, match="not valid JSON"):
        load_save("{oops")


def test_load_rejects_non_object():
    with pytest.raises(SaveFileError, match="JSON object"):
        load_save("[1, 2]")


def test_load_rejects_invalid_document():
    with pytest.raises(SaveFileError, match="Invalid save file"):
        load_save(json.dumps({"characters": "nobody"}))


# ── arc_from_save ─────────────────────────────────────────


def test_arc_from_save_uses_stored_arc():
    save = load_save(json.dumps(ORIGINAL_SAVE))
    assert arc_from_save(save) is save.story_arc


def test_arc_from_save_initializes_when_missing(lexicon):
    save = new_save("Avengers: Alien Invasion", theme="superhero")
    arc = arc_from_save(save, lexicon)
    assert arc.current_phase == "conflict"
    assert arc.key_characters == ["Iron Man", "Captain America", "Thor", "Hulk"]
