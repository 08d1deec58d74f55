"""Schema for per-session word memory.

The record is stored as a single JSON blob, so field names are serialized in
camelCase (``sessionId``, ``wordStats`` ...). Python code uses the snake_case
attribute names.
"""

from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Maximum length of recent_goals / recent_utterances.
MAX_RECENT_ITEMS = 20

# Joins the two words of a combination key. Tokens are split on it as well,
# so it never occurs inside a word.
PAIR_DELIMITER = "+"

MasteryLevel = Literal["emerging", "developing", "mastered"]

# Sort priority for forecast entries.
LEVEL_ORDER: Dict[str, int] = {"emerging": 0, "developing": 1, "mastered": 2}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_word(word: str) -> str:
    """Lower-case and trim a word. Returns '' for blank input."""
    return word.strip().lower()


def pair_key(first: str, second: str) -> str:
    """Key for the ordered two-word combination *first* → *second*."""
    return f"{first}{PAIR_DELIMITER}{second}"


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserProfile(_Model):
    age_range: Optional[str] = None
    literacy_level: Optional[str] = None
    language: Optional[str] = None


DEFAULT_USER_PROFILE = UserProfile(
    age_range="3-7",
    literacy_level="early-communicator",
    language="en",
)


class ProgramContext(_Model):
    """Goals and target words extracted from an education program document."""

    raw_text: Optional[str] = None
    extracted_goals: Optional[List[str]] = None
    target_words: Optional[List[str]] = None


class WordStats(_Model):
    count: int = Field(ge=1)
    last_used_at: datetime


class CombinationStats(_Model):
    count: int = Field(ge=1)


class MasteryForecast(_Model):
    word: str
    level: MasteryLevel
    projected_mastery_date: Optional[date] = None


class SessionMemoryRecord(_Model):
    """Everything remembered about one session."""

    session_id: str = Field(min_length=1, frozen=True)
    user_profile: Optional[UserProfile] = None
    program_context: Optional[ProgramContext] = None
    recent_goals: List[str] = Field(default_factory=list)
    recent_utterances: List[str] = Field(default_factory=list)
    preferred_words: Dict[str, float] = Field(default_factory=dict)
    word_stats: Dict[str, WordStats] = Field(default_factory=dict)
    combination_stats: Dict[str, CombinationStats] = Field(default_factory=dict)
    mastery_forecast: List[MasteryForecast] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def empty(cls, session_id: str) -> "SessionMemoryRecord":
        """A fresh record with empty collections and matching timestamps."""
        now = utcnow()
        return cls(
            session_id=session_id,
            user_profile=DEFAULT_USER_PROFILE.model_copy(),
            created_at=now,
            updated_at=now,
        )

    def to_json_dict(self) -> dict:
        """JSON-safe dict using the stored (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)


class MemoryUpdate(_Model):
    """Partial update accepted from collaborators.

    Each provided field is merged by the rule in :func:`apply_update`;
    omitted fields leave the record untouched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    recent_goals: Optional[List[str]] = None
    recent_utterances: Optional[List[str]] = None
    preferred_words: Optional[Dict[str, float]] = None
    program_context: Optional[ProgramContext] = None

    @field_validator("preferred_words")
    @classmethod
    def _normalize_keys(cls, value):
        if value is None:
            return value
        normalized = {}
        for word, score in value.items():
            key = normalize_word(word)
            if not key:
                raise ValueError("preferred word must not be blank")
            normalized[key] = score
        return normalized


def _prepend_capped(new_items: List[str], existing: List[str]) -> List[str]:
    return (list(new_items) + list(existing))[:MAX_RECENT_ITEMS]


def apply_update(record: SessionMemoryRecord, update: MemoryUpdate) -> SessionMemoryRecord:
    """Merge *update* into *record* in place and return it.

    * recent_goals, recent_utterances: prepend and cap at MAX_RECENT_ITEMS
    * preferred_words: shallow merge key by key
    * program_context: shallow merge field by field
    """
    if update.recent_goals is not None:
        record.recent_goals = _prepend_capped(update.recent_goals, record.recent_goals)
    if update.recent_utterances is not None:
        record.recent_utterances = _prepend_capped(
            update.recent_utterances, record.recent_utterances
        )
    if update.preferred_words is not None:
        record.preferred_words = {**record.preferred_words, **update.preferred_words}
    if update.program_context is not None:
        current = record.program_context or ProgramContext()
        provided = update.program_context.model_dump(exclude_unset=True)
        record.program_context = current.model_copy(update=provided)
    return record
