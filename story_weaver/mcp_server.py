"""FastMCP server exposing the synthesizers and the story arc as MCP tools.

Tools:
  - generate_character(keywords)                 keyword-mode character
  - generate_character_from_description(text)    prose-mode character
  - generate_scenario(keywords, cast_size)       one typed scenario with cast
  - quick_scenarios(keywords, cast_size)         three scenarios, franchise-aware
  - start_story_arc(title, prompt, theme)        new arc plus opening turns
  - advance_story_arc(arc, messages)             arc after recent chat turns
  - writing_instructions(arc, character)         per-turn directive
  - environmental_event(arc, severity)           ambient event line

Every tool returns a dict in the camelCase transport shape. The random
generator, the lexicon and the history window are module state replaced via
set_rng(), set_lexicon() and set_history_window(), or taken from the config
when run as __main__.

Usage:
    python -m story_weaver.mcp_server
"""

import random

from mcp.server.fastmcp import FastMCP

from story_weaver import characters, instructions, scenarios, story_arc
from story_weaver.lexicon import Lexicon
from story_weaver.models import StoryArc
from story_weaver.story_arc import DEFAULT_WINDOW

mcp = FastMCP("story-weaver")

_rng: random.Random = random.Random()
_lexicon: Lexicon | None = None
_history_window: int = DEFAULT_WINDOW


def set_rng(rng: random.Random) -> None:
    """Replace the active random generator (used in tests)."""
    global _rng
    _rng = rng


def get_rng() -> random.Random:
    return _rng


def set_lexicon(lexicon: Lexicon | None) -> None:
    """Replace the active lexicon; None means the packaged presets."""
    global _lexicon
    _lexicon = lexicon


def get_lexicon() -> Lexicon | None:
    return _lexicon


def set_history_window(window: int) -> None:
    """How many recent chat turns advance_story_arc reads."""
    global _history_window
    _history_window = window


def get_history_window() -> int:
    return _history_window


@mcp.tool()
def generate_character(keywords: str) -> dict:
    """Create a character from a few keywords (e.g. "ninja angry")."""
    character = characters.character_from_keywords(keywords, _lexicon, _rng)
    return {"character": character.model_dump(by_alias=True)}


@mcp.tool()
def generate_character_from_description(description: str) -> dict:
    """Create a character from a prose description. character is null for blank input."""
    character = characters.character_from_description(description, _lexicon, _rng)
    return {"character": character.model_dump(by_alias=True) if character else None}


@mcp.tool()
def generate_scenario(keywords: str, cast_size: int = 3) -> dict:
    """Create one scenario with a generated cast."""
    scenario = scenarios.synthesize_scenario(keywords, cast_size, _lexicon, _rng)
    return {"scenario": scenario.model_dump(by_alias=True)}


@mcp.tool()
def quick_scenarios(keywords: str, cast_size: int = 3) -> dict:
    """Create three scenarios at once; franchise names give franchise scenarios."""
    results = scenarios.quick_scenarios(keywords, cast_size, _lexicon, _rng)
    return {"scenarios": [s.model_dump(by_alias=True) for s in results]}


@mcp.tool()
def start_story_arc(title: str = "", prompt: str = "", theme: str = "") -> dict:
    """Begin a story arc. Known scenario titles also return their opening turns."""
    arc = story_arc.initialize(title or None, prompt or None, theme or None, _lexicon)
    return {
        "storyArc": arc.model_dump(by_alias=True),
        "openingTurns": [t.model_dump(by_alias=True) for t in story_arc.opening_turns(arc, _lexicon)],
        "quickActions": story_arc.quick_actions(arc, _lexicon),
    }


@mcp.tool()
def advance_story_arc(arc: dict, messages: list[dict]) -> dict:
    """Move an arc forward after the latest chat turns."""
    updated = story_arc.advance(StoryArc.model_validate(arc), messages, _history_window, _lexicon)
    return {"storyArc": updated.model_dump(by_alias=True)}


@mcp.tool()
def writing_instructions(arc: dict, character: dict) -> dict:
    """How the given character should phrase its next reply."""
    result = instructions.instruct(arc, character, _lexicon)
    return {"instructions": result.model_dump(by_alias=True)}


@mcp.tool()
def environmental_event(arc: dict, severity: str = "minor") -> dict:
    """An ambient event line for known scenarios; event is null otherwise."""
    event = story_arc.environmental_event(StoryArc.model_validate(arc), severity, _rng, _lexicon)
    return {"event": event}


if __name__ == "__main__":
    from story_weaver.config import get_config, make_rng

    config = get_config()
    set_rng(make_rng(config["seed"]))
    if config["presets_dir"]:
        set_lexicon(Lexicon.load(config["presets_dir"]))
    set_history_window(config["history_window"])
    mcp.run()
