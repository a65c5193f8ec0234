"""fixprompt — backend for the FixMyPrompt browser extension.

Classifies a prompt into a domain, offers clarifying questions, keeps
per-conversation context and rewrites prompts through an LLM.

Usage:
    from fixprompt import PromptImprover

    improver = PromptImprover()
    result = await improver.improve("Fix my code", platform="chatgpt", domain="technical")
    print(result.improved)
"""

__version__ = "0.1.0"

from fixprompt.core import PromptImprover
from fixprompt.classifier import KeywordDomainClassifier
from fixprompt.questions import DomainQuestionCatalog
from fixprompt.scorer import PromptQualityScorer
from fixprompt.prompt_registry import PromptRegistry
from fixprompt.instructions import InstructionAssembler
from fixprompt.gateway import CompletionGateway
from fixprompt.context import ContextAccumulator, ContextStore, InMemoryContextStore
from fixprompt.models import (
    ClassificationResult,
    ContextMode,
    ConversationContext,
    Domain,
    GatewayConfig,
    ImprovementResult,
    Platform,
    Question,
    ScoreResult,
)
from fixprompt.errors import FixPromptError, InvalidInputError, NotFoundError

# Logging
from fixprompt.logging_setup import setup_logging

__all__ = [
    "PromptImprover",
    "KeywordDomainClassifier",
    "DomainQuestionCatalog",
    "PromptQualityScorer",
    "PromptRegistry",
    "InstructionAssembler",
    "CompletionGateway",
    "ContextAccumulator",
    "ContextStore",
    "InMemoryContextStore",
    "ClassificationResult",
    "ContextMode",
    "ConversationContext",
    "Domain",
    "GatewayConfig",
    "ImprovementResult",
    "Platform",
    "Question",
    "ScoreResult",
    "FixPromptError",
    "InvalidInputError",
    "NotFoundError",
    "setup_logging",
]
