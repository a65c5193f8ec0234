"""ContextAccumulator — turns conversation history into instruction directives and question filters.

Mode selection is a priority-ordered rule table; the first matching rule wins:

    1. refinement   refinement answers with at least one entry
    2. follow_up    context with more than one previous prompt
    3. standard     any other context
    (none)          no context and no refinement answers -> empty block

The follow_up block is a complete instruction on its own; InstructionAssembler
returns it unchanged instead of wrapping it.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from fixprompt.models import ContextMode, ConversationContext, Question
from fixprompt.prompt_registry import PromptRegistry
from fixprompt.questions import DomainQuestionCatalog

logger = logging.getLogger("fixprompt.context.accumulator")

RECENT_PROMPTS = 3

RefinementAnswers = Mapping[str, Any]


def is_refinement(refinement_answers: RefinementAnswers | None) -> bool:
    return refinement_answers is not None and len(refinement_answers) >= 1


def is_follow_up(context: ConversationContext | None) -> bool:
    return context is not None and context.previous_prompts is not None and len(context.previous_prompts) > 1


MODE_RULES: tuple[tuple[ContextMode, Callable[[ConversationContext | None, RefinementAnswers | None], bool]], ...] = (
    (ContextMode.REFINEMENT, lambda context, answers: is_refinement(answers)),
    (ContextMode.FOLLOW_UP, lambda context, answers: is_follow_up(context)),
    (ContextMode.STANDARD, lambda context, answers: context is not None),
)


class ContextAccumulator:
    """Merges conversation context into directive text and question lists.

    Usage:
        accumulator = ContextAccumulator()
        mode = accumulator.select_mode(context, {"q1": "bug"})     # ContextMode.REFINEMENT
        block = accumulator.build_instructions("technical", context, {"q1": "bug"})
        questions = accumulator.filter_questions("technical", context)
    """

    def __init__(
        self,
        catalog: DomainQuestionCatalog | None = None,
        registry: PromptRegistry | None = None,
    ):
        self.catalog = catalog or DomainQuestionCatalog()
        self.registry = registry or PromptRegistry()

    @staticmethod
    def select_mode(
        context: ConversationContext | None,
        refinement_answers: RefinementAnswers | None = None,
    ) -> ContextMode:
        for mode, applies in MODE_RULES:
            if applies(context, refinement_answers):
                return mode
        return ContextMode.NONE

    def build_instructions(
        self,
        domain: str | None,
        context: ConversationContext | None,
        refinement_answers: RefinementAnswers | None = None,
    ) -> str:
        mode = self.select_mode(context, refinement_answers)
        logger.debug(f"Context mode: {mode.value} (prompts={context.prompt_count if context else 0})")

        if mode is ContextMode.REFINEMENT:
            return self.registry.get(
                "refinement",
                previous_prompts=self._recent(context),
                answers=self._resolve_answers(domain, refinement_answers or {}),
            )
        if mode is ContextMode.FOLLOW_UP:
            return self.registry.get(
                "follow_up",
                topic=context.conversation_topic,
                previous_prompts=context.previous_prompts,
            )
        if mode is ContextMode.STANDARD:
            return self.registry.get(
                "standard_context",
                topic=context.conversation_topic,
                key_details=context.key_details,
                previous_prompts=self._recent(context),
                questions_asked=context.questions_asked,
            )
        return ""

    def filter_questions(self, domain: str | None, context: ConversationContext | None) -> list[Question]:
        """Catalog questions minus those already asked; never empties a non-empty list."""
        questions = self.catalog.questions_for(domain)
        if context is None or not context.questions_asked:
            return questions

        asked = set(context.questions_asked)
        remaining = [q for q in questions if q.text not in asked]
        return remaining if remaining else questions

    def build_user_message(self, prompt: str, context: ConversationContext | None) -> str:
        return self.registry.get(
            "user_message",
            prompt=prompt,
            topic=context.conversation_topic if context else None,
            previous_prompts=(context.previous_prompts or []) if context else [],
        )

    @staticmethod
    def _recent(context: ConversationContext | None) -> list:
        if context is None or not context.previous_prompts:
            return []
        return context.previous_prompts[-RECENT_PROMPTS:]

    def _resolve_answers(self, domain: str | None, answers: RefinementAnswers) -> list[tuple[str, str]]:
        resolved = []
        for question_id, value in answers.items():
            hit = self.catalog.answer_label(domain, question_id, str(value))
            resolved.append(hit if hit else (question_id, str(value)))
        return resolved
