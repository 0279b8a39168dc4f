"""Scripted demo session for development/testing."""

import random

from story_weaver import story_arc
from story_weaver.characters import character_from_keywords
from story_weaver.lexicon import Lexicon
from story_weaver.models import ChatTurn, SaveFile
from story_weaver.save_file import new_save

DEMO_TITLE = "Avengers: Alien Invasion"
DEMO_THEME = "superhero"
DEMO_PROMPT = "Alien ships pour out of a portal above Manhattan. The Avengers assemble to defend the city."

DEMO_HEROES = [
    {"name": "Iron Man", "keywords": "superhero genius sarcastic confident technical"},
    {"name": "Captain America", "keywords": "superhero brave serious formal"},
    {"name": "Thor", "keywords": "superhero bold dramatic eloquent"},
    {"name": "Hulk", "keywords": "superhero angry blunt quiet"},
]

# Each batch is fed to advance() before the next one is appended
DEMO_SCRIPT = [
    [
        {"speaker": "Iron Man", "message": "Civilians trapped on 42nd street, I'm going in for the rescue."},
        {"speaker": "Thor", "message": "*calls down lightning on the nearest alien skiff*", "is_action": True},
    ],
    [
        {"speaker": "Captain America", "message": "They keep coming. We need a plan before they overwhelm us."},
        {"speaker": "Iron Man", "message": "Their ships all sync to the mothership. That's the weakness."},
    ],
    [
        {"speaker": "Captain America", "message": "Everyone ready? This is the final push. Hit the mothership."},
    ],
]


def create_demo_session(rng: random.Random | None = None, lexicon: Lexicon | None = None) -> SaveFile:
    """Build a save file that plays the demo script through the story arc."""
    rng = rng or random.Random()
    cast = [
        character_from_keywords(hero["keywords"], lexicon, rng).model_copy(update={"name": hero["name"]})
        for hero in DEMO_HEROES
    ]

    arc = story_arc.initialize(DEMO_TITLE, DEMO_PROMPT, DEMO_THEME, lexicon)
    history = story_arc.opening_turns(arc, lexicon)
    for batch in DEMO_SCRIPT:
        history.extend(ChatTurn.model_validate(turn) for turn in batch)
        arc = story_arc.advance(arc, history, lexicon=lexicon)

    return new_save(
        DEMO_TITLE,
        characters=cast,
        opening_prompt=DEMO_PROMPT,
        theme=DEMO_THEME,
        chat_history=history,
        story_arc=arc,
    )
