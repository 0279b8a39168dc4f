"""Core domain models.

Every synthesizer and the story arc state machine return these types.
Pydantic validates and clamps at each boundary, so a record loaded from a
save file is usable without further normalisation.
"""

from __future__ import annotations

from typing import Any, Literal, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

CharacterType = Literal[
    "fantasy",
    "scifi",
    "historical",
    "modern",
    "superhero",
    "adventure",
    "romance",
    "combat",
]

ScenarioType = Literal[
    "fantasy",
    "scifi",
    "historical",
    "modern",
    "superhero",
    "adventure",
    "romance",
    "combat",
    "mystery",
    "horror",
    "casual",
]

Phase = Literal["introduction", "discovery", "conflict", "planning", "climax", "resolution"]

Tension = Literal["medium", "building", "high", "very high", "falling"]

WritingStyle = Literal["balanced", "analytical", "witty", "emotional", "philosophical", "assertive"]

ResponseLength = Literal["brief", "medium", "long"]

CORE_TRAITS = ("analytical", "emotional", "philosophical", "humor", "confidence")
OPTIONAL_TRAITS = ("creativity", "sociability")

CHARACTER_TYPES: tuple[str, ...] = get_args(CharacterType)
SCENARIO_TYPES: tuple[str, ...] = get_args(ScenarioType)

PLACEHOLDER_NAME = "Unnamed Character"


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _to_int(value: Any, default: int) -> int:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return default


class Personality(BaseModel):
    """Seven-trait vector on a 1–10 scale. creativity/sociability are optional."""

    analytical: int = 5
    emotional: int = 5
    philosophical: int = 5
    humor: int = 5
    confidence: int = 5
    creativity: int | None = None
    sociability: int | None = None

    @field_validator(*CORE_TRAITS, mode="before")
    @classmethod
    def _clamp_core(cls, value: Any) -> int:
        return int(clamp(_to_int(value, 5), 1, 10))

    @field_validator(*OPTIONAL_TRAITS, mode="before")
    @classmethod
    def _clamp_optional(cls, value: Any) -> int | None:
        if value is None:
            return None
        return int(clamp(_to_int(value, 5), 1, 10))

    def value(self, trait: str) -> int:
        """Trait value, treating an unset optional trait as the baseline 5."""
        current = getattr(self, trait, None)
        return 5 if current is None else current


class Character(BaseModel):
    """A synthesized (or loaded) character record."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = PLACEHOLDER_NAME
    description: str = ""
    type: CharacterType = "modern"
    mood: str = "neutral"
    opening_line: str = Field(
        default="",
        alias="opening_line",
        validation_alias=AliasChoices("opening_line", "openingLine"),
    )
    voice_style: str = Field(
        default="",
        alias="voiceStyle",
        validation_alias=AliasChoices("voiceStyle", "voice_style"),
    )
    personality: Personality = Field(default_factory=Personality)
    talkativeness: int = 5
    thinking_speed: float = Field(
        default=1.0,
        alias="thinkingSpeed",
        validation_alias=AliasChoices("thinkingSpeed", "thinking_speed"),
    )
    background: str = ""
    catchphrases: list[str] = Field(default_factory=list)
    avatar: str = ""
    archetype: str | None = None
    role: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_never_empty(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return PLACEHOLDER_NAME
        return str(value).strip()

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value: Any) -> str:
        return value if value in CHARACTER_TYPES else "modern"

    @field_validator("mood", mode="before")
    @classmethod
    def _mood_label(cls, value: Any) -> str:
        return str(value) if value else "neutral"

    @field_validator("personality", mode="before")
    @classmethod
    def _personality_mapping(cls, value: Any) -> Any:
        if isinstance(value, (dict, Personality)):
            return value
        return {}

    @field_validator("talkativeness", mode="before")
    @classmethod
    def _clamp_talkativeness(cls, value: Any) -> int:
        return int(clamp(_to_int(value, 5), 1, 10))

    @field_validator("thinking_speed", mode="before")
    @classmethod
    def _clamp_speed(cls, value: Any) -> float:
        try:
            speed = float(value)
        except (TypeError, ValueError):
            speed = 1.0
        return clamp(speed, 0.5, 2.0)

    @field_validator("catchphrases", mode="before")
    @classmethod
    def _catchphrase_list(cls, value: Any) -> list:
        return value if isinstance(value, list) else []


class Scenario(BaseModel):
    """A narrative setting together with its cast."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str
    description: str = ""
    prompt: str = ""
    type: ScenarioType = "casual"
    background: str = ""
    franchise: str | None = None
    focus: str | None = None
    location: str = ""
    threat: str = ""
    goal: str = ""
    mood: str = ""
    characters: list[Character] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value: Any) -> str:
        return value if value in SCENARIO_TYPES else "casual"


def _unique(values: Any) -> list[str]:
    if not values:
        return []
    seen: list[str] = []
    for item in values:
        if item not in seen:
            seen.append(item)
    return seen


class StoryArc(BaseModel):
    """Narrative progress for one conversation (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = "Chat Room"
    theme: str = "general"
    current_phase: Phase = "introduction"
    current_tension: Tension = "medium"
    current_goal: str = ""
    key_characters: list[str] = Field(default_factory=list)
    key_locations: list[str] = Field(default_factory=list)
    plot_points: list[str] = Field(default_factory=list)
    current_context: str = ""
    previous_context: str = ""

    @field_validator("key_characters", "key_locations", mode="before")
    @classmethod
    def _as_set(cls, value: Any) -> list[str]:
        return _unique(value)

    @field_validator("plot_points", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> list[str]:
        return list(value) if value else []


class WritingInstructions(BaseModel):
    """Per-turn directive for an external response generator."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    story_arc: str = ""
    writing_style: WritingStyle = "balanced"
    response_length: ResponseLength = "medium"
    character_reminders: str = ""
    general_notes: str = ""


class ChatTurn(BaseModel):
    """One chat entry: who spoke and what they said."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    speaker: str = Field(default="", validation_alias=AliasChoices("speaker", "sender"))
    message: str = Field(default="", validation_alias=AliasChoices("message", "text", "content"))
    is_action: bool = Field(
        default=False,
        alias="isAction",
        validation_alias=AliasChoices("isAction", "is_action"),
    )


class PhaseTransition(BaseModel):
    keywords: list[str] = Field(default_factory=list)
    next: Phase


class KnownScenario(BaseModel):
    """A scripted scenario that seeds and steers a story arc."""

    title: str
    theme: str
    initial_phase: Phase = "introduction"
    initial_goal: str = ""
    initial_tension: Tension = "medium"
    key_characters: list[str] = Field(default_factory=list)
    key_locations: list[str] = Field(default_factory=list)
    plot_points: list[str] = Field(default_factory=list)
    initial_context: str = ""
    initial_narration: str = ""
    initial_messages: list[ChatTurn] = Field(default_factory=list)
    transitions: dict[str, PhaseTransition] = Field(default_factory=dict)
    phase_contexts: dict[str, str] = Field(default_factory=dict)
    environmental_events: dict[str, list[str]] = Field(default_factory=dict)
    quick_actions: list[str] = Field(default_factory=list)


class Classification(BaseModel):
    """Keyword classifier output."""

    text: str = ""
    words: list[str] = Field(default_factory=list)
    tokens: frozenset[str] = frozenset()
    matches: dict[str, dict[str, list[str]]] = Field(default_factory=dict)

    def first(self, category: str) -> str | None:
        """Highest-priority matched name in a category, or None."""
        names = self.matches.get(category) or {}
        return next(iter(names), None)

    def matched(self, category: str) -> list[str]:
        return list(self.matches.get(category) or {})

    def has(self, category: str, name: str) -> bool:
        return name in (self.matches.get(category) or {})

    def word(self, index: int) -> str | None:
        return self.words[index] if index < len(self.words) else None


class DerivedAttributes(BaseModel):
    """Deriver output, already clamped."""

    type: CharacterType = "modern"
    mood: str = "neutral"
    personality: Personality = Field(default_factory=Personality)
    talkativeness: int = 5
    thinking_speed: float = 1.0
    voice_style: str = ""
    archetype: str | None = None
    variant: int | None = None

    @field_validator("talkativeness", mode="before")
    @classmethod
    def _clamp_talkativeness(cls, value: Any) -> int:
        return int(clamp(_to_int(value, 5), 1, 10))

    @field_validator("thinking_speed", mode="before")
    @classmethod
    def _clamp_speed(cls, value: Any) -> float:
        return clamp(float(value), 0.5, 2.0)


class SaveFile(BaseModel):
    """The persisted chat document."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    room_name: str = "Chat Room"
    characters: list[Character] = Field(default_factory=list)
    chat_history: list[ChatTurn] = Field(default_factory=list)
    background: str = ""
    theme: str = ""
    opening_prompt: str = ""
    created_at: str = ""
    updated_at: str = ""
    story_arc: StoryArc | None = None
    version: str = "1.2.0"
