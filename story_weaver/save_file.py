"""Save-file documents: a chat room with its characters, history and arc."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from story_weaver.lexicon import Lexicon
from story_weaver.models import Character, ChatTurn, SaveFile, StoryArc
from story_weaver.story_arc import initialize

logger = logging.getLogger(__name__)


class SaveFileError(Exception):
    """Raised when a save document cannot be parsed or validated."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_save(
    room_name: str,
    characters: list[Character] | None = None,
    opening_prompt: str = "",
    theme: str = "",
    background: str = "",
    chat_history: list[ChatTurn] | None = None,
    story_arc: StoryArc | None = None,
) -> SaveFile:
    now = _now()
    return SaveFile(
        room_name=room_name,
        characters=characters or [],
        chat_history=chat_history or [],
        background=background,
        theme=theme,
        opening_prompt=opening_prompt,
        created_at=now,
        updated_at=now,
        story_arc=story_arc,
    )


def dump_save(save: SaveFile) -> str:
    """Serialize with the field names the chat client writes."""
    return save.model_dump_json(by_alias=True, indent=2)


def load_save(text: str | bytes) -> SaveFile:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SaveFileError(f"Save file is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SaveFileError("Save file must be a JSON object")
    try:
        save = SaveFile.model_validate(data)
    except ValidationError as e:
        raise SaveFileError(f"Invalid save file: {e}") from e
    logger.debug("Loaded save %r (%d characters)", save.room_name, len(save.characters))
    return save


def arc_from_save(save: SaveFile, lexicon: Lexicon | None = None) -> StoryArc:
    """The stored arc, or a fresh one for saves written before arcs existed."""
    if save.story_arc is not None:
        return save.story_arc
    return initialize(save.room_name, save.opening_prompt or None, save.theme or None, lexicon)
