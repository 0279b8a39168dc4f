"""MCP tool tests using the FastMCP in-process test client."""

import json
import random

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

import main
import story_weaver.mcp_server as mcp_server
from story_weaver.lexicon import PRESETS_DIR
from story_weaver.story_arc import DEFAULT_WINDOW


@pytest.fixture(autouse=True)
def seeded_rng():
    """Give each test its own seeded generator and the packaged presets."""
    mcp_server.set_rng(random.Random(7))
    yield
    mcp_server.set_lexicon(None)
    mcp_server.set_history_window(DEFAULT_WINDOW)


async def _call(tool: str, arguments: dict) -> dict:
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        result = await client.call_tool(tool, arguments)
    assert not result.isError
    return json.loads(result.content[0].text)


def test_set_rng_replaces_generator():
    rng = random.Random(1)
    mcp_server.set_rng(rng)
    assert mcp_server.get_rng() is rng


async def test_tools_are_registered():
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        listed = await client.list_tools()
    names = {tool.name for tool in listed.tools}
    assert names == {
        "generate_character",
        "generate_character_from_description",
        "generate_scenario",
        "quick_scenarios",
        "start_story_arc",
        "advance_story_arc",
        "writing_instructions",
        "environmental_event",
    }


async def test_generate_character():
    data = await _call("generate_character", {"keywords": "ninja angry"})
    character = data["character"]
    assert character["archetype"] == "ninja"
    assert character["mood"] == "angry"
    assert "voiceStyle" in character


async def test_generate_character_from_blank_description():
    data = await _call("generate_character_from_description", {"description": "   "})
    assert data["character"] is None


async def test_generate_scenario():
    data = await _call("generate_scenario", {"keywords": "ninja dojo", "cast_size": 2})
    assert data["scenario"]["title"] == "Battle of Ninja"
    assert len(data["scenario"]["characters"]) == 2


async def test_quick_scenarios_franchise():
    data = await _call("quick_scenarios", {"keywords": "star wars battle"})
    assert len(data["scenarios"]) == 3
    assert {s["franchise"] for s in data["scenarios"]} == {"star wars"}


async def test_story_arc_round_trip():
    started = await _call("start_story_arc", {"title": "Avengers: Alien Invasion", "theme": "superhero"})
    arc = started["storyArc"]
    assert arc["currentPhase"] == "conflict"
    assert started["openingTurns"][0]["speaker"] == "Narrator"
    assert "Attack alien" in started["quickActions"]

    advanced = await _call("advance_story_arc", {
        "arc": arc,
        "messages": [{"speaker": "Iron Man", "message": "Found their weakness"}],
    })
    assert advanced["storyArc"]["currentPhase"] == "planning"


async def test_writing_instructions():
    data = await _call("writing_instructions", {
        "arc": {"title": "Chat Room"},
        "character": {"name": "Jester", "description": "a fool.", "personality": {"humor": 9}},
    })
    assert data["instructions"]["writingStyle"] == "witty"


async def test_environmental_event():
    data = await _call("environmental_event", {"arc": {"title": "Space Station Omega"}, "severity": "minor"})
    assert data["event"]
    none = await _call("environmental_event", {"arc": {"title": "Chat Room"}})
    assert none["event"] is None


# ── configured lexicon and history window ─────────────────


async def test_set_lexicon_is_used_by_tools(lexicon):
    styles = [{"trait": "humor", "above": 7, "style": "slapstick", "reminder": ""}]
    mcp_server.set_lexicon(lexicon.replace("instructions", {**lexicon.instructions, "styles": styles}))
    data = await _call("writing_instructions", {
        "arc": {"title": "Chat Room"},
        "character": {"name": "Jester", "description": "a fool.", "personality": {"humor": 9}},
    })
    assert data["instructions"]["writingStyle"] == "slapstick"


async def test_history_window_limits_advance():
    started = await _call("start_story_arc", {"title": "Avengers: Alien Invasion", "theme": "superhero"})
    messages = [
        {"speaker": "Iron Man", "message": "Found their weakness"},
        {"speaker": "Thor", "message": "Onward"},
    ]
    mcp_server.set_history_window(1)
    narrow = await _call("advance_story_arc", {"arc": started["storyArc"], "messages": messages})
    assert narrow["storyArc"]["currentPhase"] == "conflict"

    mcp_server.set_history_window(DEFAULT_WINDOW)
    wide = await _call("advance_story_arc", {"arc": started["storyArc"], "messages": messages})
    assert wide["storyArc"]["currentPhase"] == "planning"


def test_cli_mcp_command_configures_server(monkeypatch):
    monkeypatch.setattr(mcp_server.mcp, "run", lambda *args, **kwargs: None)
    monkeypatch.setenv("STORY_WEAVER_HISTORY_WINDOW", "2")
    assert main.main(["--presets-dir", str(PRESETS_DIR), "mcp"]) == 0
    assert mcp_server.get_lexicon() is not None
    assert mcp_server.get_lexicon().source == PRESETS_DIR
    assert mcp_server.get_history_window() == 2
