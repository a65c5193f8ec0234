"""PromptImprover — the request pipeline behind every endpoint.

    validate -> classify | questions | context store
    validate -> assemble instruction -> gateway -> score before/after -> filter questions

Only ``improve`` performs I/O (the gateway call); everything else is a
synchronous, pure computation over the static tables plus the context store.

Usage:
    improver = PromptImprover()
    result = await improver.improve("Fix my code", platform="chatgpt", domain="technical")
    print(result.improved, result.score.after)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from nfo.decorators import log_call
from pydantic import ValidationError

from fixprompt.classifier import KeywordDomainClassifier
from fixprompt.context.accumulator import ContextAccumulator, is_refinement
from fixprompt.context.store import ContextStore, InMemoryContextStore
from fixprompt.errors import InvalidInputError, NotFoundError
from fixprompt.gateway import CompletionGateway
from fixprompt.instructions import InstructionAssembler
from fixprompt.models import (
    ClassificationResult,
    ContextUsage,
    ConversationContext,
    ImprovementResult,
    Platform,
    Question,
    ScoreResult,
)
from fixprompt.prompt_registry import PromptRegistry
from fixprompt.questions import DomainQuestionCatalog
from fixprompt.scorer import PromptQualityScorer

logger = logging.getLogger("fixprompt.core")

INVALID_PROMPT = "Invalid prompt: must be a non-empty string"


def require_prompt(prompt: Any) -> str:
    if not isinstance(prompt, str) or not prompt.strip():
        raise InvalidInputError(INVALID_PROMPT)
    return prompt


def parse_platform(platform: Any) -> Platform:
    try:
        return Platform(platform)
    except ValueError:
        raise InvalidInputError("Invalid platform: must be 'chatgpt' or 'claude'") from None


def parse_context(context: Any) -> ConversationContext | None:
    if context is None or isinstance(context, ConversationContext):
        return context
    if not isinstance(context, Mapping):
        raise InvalidInputError("Invalid context: must be an object")
    try:
        return ConversationContext.model_validate(dict(context))
    except ValidationError as e:
        raise InvalidInputError(f"Invalid context: {e.error_count()} malformed field(s)") from None


class PromptImprover:
    """Wires classifier, catalog, accumulator, assembler, scorer, store and gateway."""

    def __init__(
        self,
        classifier: KeywordDomainClassifier | None = None,
        catalog: DomainQuestionCatalog | None = None,
        registry: PromptRegistry | None = None,
        scorer: PromptQualityScorer | None = None,
        store: ContextStore | None = None,
        gateway: CompletionGateway | None = None,
    ):
        self.classifier = classifier or KeywordDomainClassifier()
        self.catalog = catalog or DomainQuestionCatalog()
        self.registry = registry or PromptRegistry()
        self.accumulator = ContextAccumulator(catalog=self.catalog, registry=self.registry)
        self.assembler = InstructionAssembler(accumulator=self.accumulator, registry=self.registry)
        self.scorer = scorer or PromptQualityScorer()
        self.store = store if store is not None else InMemoryContextStore()
        self.gateway = gateway or CompletionGateway()

    # ------------------------------------------------------------------
    # classification / questions
    # ------------------------------------------------------------------

    def classify(self, prompt: Any) -> ClassificationResult:
        return self.classifier.classify(require_prompt(prompt))

    def generate_questions(self, prompt: Any, domain: Any) -> list[Question]:
        require_prompt(prompt)
        if not domain:
            raise InvalidInputError("Domain is required")
        if not isinstance(domain, str):
            raise InvalidInputError("Invalid domain: must be a string")
        return self.catalog.questions_for(domain)

    # ------------------------------------------------------------------
    # conversation context
    # ------------------------------------------------------------------

    @staticmethod
    def _require_conversation_id(conversation_id: Any) -> str:
        if not conversation_id:
            raise InvalidInputError("conversationId is required")
        if not isinstance(conversation_id, str):
            raise InvalidInputError("Invalid conversationId: must be a string")
        return conversation_id

    def save_context(self, conversation_id: Any, context: Any) -> dict[str, Any]:
        conversation_id = self._require_conversation_id(conversation_id)
        if not context:
            raise InvalidInputError("context is required")
        if not isinstance(context, Mapping):
            raise InvalidInputError("Invalid context: must be an object")
        return self.store.save(conversation_id, dict(context))

    def get_context(self, conversation_id: Any) -> dict[str, Any]:
        conversation_id = self._require_conversation_id(conversation_id)
        context = self.store.get(conversation_id)
        if context is None:
            raise NotFoundError("Context not found", found=False)
        return context

    def delete_context(self, conversation_id: Any) -> bool:
        return self.store.delete(self._require_conversation_id(conversation_id))

    # ------------------------------------------------------------------
    # improvement
    # ------------------------------------------------------------------

    def _resolve_context(self, context: Any, conversation_id: Any) -> ConversationContext | None:
        if context is not None:
            return parse_context(context)
        if conversation_id:
            stored = self.store.get(self._require_conversation_id(conversation_id))
            return parse_context(stored) if stored is not None else None
        return None

    @log_call
    async def improve(
        self,
        prompt: Any,
        platform: Any,
        domain: Any = None,
        context: Any = None,
        refinement_answers: Any = None,
        conversation_id: Any = None,
    ) -> ImprovementResult:
        """Rewrite ``prompt`` through the completion gateway and score the result.

        Validation happens before any gateway call: an invalid prompt, platform,
        domain, context or refinement answers never reach the provider.
        """
        if not isinstance(prompt, str):
            raise InvalidInputError(INVALID_PROMPT)
        if not prompt.strip():
            raise InvalidInputError("Prompt cannot be empty")
        parse_platform(platform)
        if domain is not None and not isinstance(domain, str):
            raise InvalidInputError("Invalid domain: must be a string")
        if refinement_answers is not None and not isinstance(refinement_answers, Mapping):
            raise InvalidInputError("Invalid refinementAnswers: must be an object")

        ctx = self._resolve_context(context, conversation_id)
        domain = domain or None
        mode = self.accumulator.select_mode(ctx, refinement_answers)

        logger.info(
            f"Improve request: prompt_len={len(prompt)} platform={platform} "
            f"domain={domain or '-'} context_prompts={ctx.prompt_count if ctx else 0} mode={mode.value}"
        )

        system_instruction = self.assembler.assemble(domain, ctx, refinement_answers)
        user_message = self.accumulator.build_user_message(prompt, ctx)
        improved = await self.gateway.complete(system_instruction, user_message)

        score = ScoreResult.from_scores(self.scorer.score(prompt), self.scorer.score(improved))
        questions = self.accumulator.filter_questions(domain, ctx)
        refinement = is_refinement(refinement_answers)

        result = ImprovementResult(
            improved=improved,
            score=score,
            questions=questions,
            context_aware=ctx is not None and ctx.prompt_count > 0,
            is_refinement=refinement,
            mode=mode,
            timestamp=int(time.time() * 1000),
        )
        if ctx is not None and ctx.previous_prompts is not None:
            result.context_used = ContextUsage(
                prompt_count=len(ctx.previous_prompts),
                conversation_topic=ctx.conversation_topic or "unknown",
            )
        if refinement:
            result.refinement_applied = True

        logger.info(
            f"Improved: {len(prompt)} -> {len(improved)} chars, score {score.before} -> {score.after}, "
            f"{len(questions)} questions"
        )
        return result
