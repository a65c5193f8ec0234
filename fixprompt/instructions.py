"""InstructionAssembler — builds the system instruction sent to the completion gateway.

    system template
      + domain guidance   (exact domain match; most domains have none)
      + context directives (ContextAccumulator)

Follow-up requests short-circuit: the follow-up block is returned as the whole
instruction and the domain guidance is not included.
"""

from __future__ import annotations

import logging

from fixprompt.context.accumulator import ContextAccumulator, RefinementAnswers
from fixprompt.models import ContextMode, ConversationContext
from fixprompt.prompt_registry import PromptRegistry

logger = logging.getLogger("fixprompt.instructions")


class InstructionAssembler:
    def __init__(
        self,
        accumulator: ContextAccumulator | None = None,
        registry: PromptRegistry | None = None,
    ):
        self.registry = registry or (accumulator.registry if accumulator else PromptRegistry())
        self.accumulator = accumulator or ContextAccumulator(registry=self.registry)

    def assemble(
        self,
        domain: str | None,
        context: ConversationContext | None,
        refinement_answers: RefinementAnswers | None = None,
    ) -> str:
        directives = self.accumulator.build_instructions(domain, context, refinement_answers)

        if self.accumulator.select_mode(context, refinement_answers) is ContextMode.FOLLOW_UP:
            logger.debug("Follow-up mode: returning consolidated instruction without domain guidance")
            return directives

        return self.registry.get(
            "system",
            domain_guidance=self.registry.guidance(domain),
            context_directives=directives,
        )
