"""Data models for fixprompt — all inputs/outputs are Pydantic v2 validated.

Wire names are camelCase (``previousPrompts``, ``keyDetails``...) because the
browser extension speaks JSON that way; Python code uses snake_case fields and
every model accepts either spelling.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================
# Enums
# ============================================================

class Domain(str, enum.Enum):
    """Built-in subject domains. Classifier and catalog keys are plain strings,
    so unknown domain names are accepted wherever a domain is looked up."""
    TECHNICAL = "technical"
    CREATIVE = "creative"
    BUSINESS = "business"
    FINANCE = "finance"
    ACADEMIC = "academic"
    CAREER = "career"
    HR = "hr"
    PERSONAL = "personal"
    FITNESS = "fitness"
    HEALTH = "health"
    RELATIONSHIPS = "relationships"
    HOBBIES = "hobbies"
    MENTAL_HEALTH = "mental_health"
    PERSONAL_DEVELOPMENT = "personal_development"
    EDUCATION = "education"
    GENERAL = "general"


class Platform(str, enum.Enum):
    CHATGPT = "chatgpt"
    CLAUDE = "claude"


class ContextMode(str, enum.Enum):
    """Which context directive block an improvement request gets."""
    REFINEMENT = "refinement"
    FOLLOW_UP = "follow_up"
    STANDARD = "standard"
    NONE = "none"


# ============================================================
# Classification
# ============================================================

class DomainProfile(BaseModel):
    """Keyword set + weight for one domain. Immutable."""
    model_config = ConfigDict(frozen=True)

    domain: str
    keywords: tuple[str, ...] = ()
    weight: float = 1.0

    @field_validator("weight")
    @classmethod
    def _positive_weight(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("weight must be > 0")
        return v

    @field_validator("keywords")
    @classmethod
    def _lowercase_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(k.lower() for k in v)


class ClassificationResult(BaseModel):
    domain: str = Domain.GENERAL.value
    confidence: float = 0.0
    scores: dict[str, float] = Field(default_factory=dict)


# ============================================================
# Clarification questions
# ============================================================

class AnswerOption(BaseModel):
    label: str
    value: str


class Question(BaseModel):
    id: str
    text: str
    answers: list[AnswerOption] = Field(default_factory=list)

    @field_validator("answers", mode="before")
    @classmethod
    def _none_answers(cls, v: Any) -> Any:
        return [] if v is None else v


# ============================================================
# Conversation context
# ============================================================

class PreviousPrompt(BaseModel):
    model_config = ConfigDict(extra="allow")

    original: str = ""
    domain: str | None = None


class HistoryMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "user"
    content: str = ""


class ConversationContext(BaseModel):
    """Accumulated state of one conversation, as sent by the extension.

    ``previous_prompts`` is ``None`` when the client did not send the list at
    all, which is distinct from an empty list.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    conversation_topic: str | None = Field(default=None, alias="conversationTopic")
    key_details: list[str] = Field(default_factory=list, alias="keyDetails")
    previous_prompts: list[PreviousPrompt] | None = Field(default=None, alias="previousPrompts")
    questions_asked: list[str] = Field(default_factory=list, alias="questionsAsked")
    conversation_history: list[HistoryMessage] | None = Field(default=None, alias="conversationHistory")
    saved_at: str | None = Field(default=None, alias="savedAt")

    @field_validator("key_details", "questions_asked", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def prompt_count(self) -> int:
        return len(self.previous_prompts or [])


# ============================================================
# Scoring
# ============================================================

class ScoreResult(BaseModel):
    before: int
    after: int
    improvement: int

    @classmethod
    def from_scores(cls, before: int, after: int) -> "ScoreResult":
        return cls(before=before, after=after, improvement=after - before)


# ============================================================
# Gateway config
# ============================================================

class GatewayConfig(BaseModel):
    """Configuration for the completion gateway (any LiteLLM model string)."""
    model: str = "gpt-4-turbo"
    max_retries: int = 1
    timeout: int = 30
    max_tokens: int = 1000
    temperature: float = 0.3
    top_p: float = 0.9
    min_response_chars: int = 5


# ============================================================
# Improvement result
# ============================================================

class ContextUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt_count: int = Field(default=0, alias="promptCount")
    conversation_topic: str = Field(default="unknown", alias="conversationTopic")


class ImprovementResult(BaseModel):
    """Output of ``PromptImprover.improve`` — serialized by alias for the wire."""
    model_config = ConfigDict(populate_by_name=True)

    improved: str
    score: ScoreResult
    questions: list[Question] = Field(default_factory=list)
    context_aware: bool = Field(default=False, alias="contextAware")
    is_refinement: bool = Field(default=False, alias="isRefinement")
    context_used: ContextUsage | None = Field(default=None, alias="contextUsed")
    refinement_applied: bool | None = Field(default=None, alias="refinementApplied")
    mode: ContextMode = ContextMode.NONE
    timestamp: int = 0
