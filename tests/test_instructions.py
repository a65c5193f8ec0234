"""Tests for InstructionAssembler — system template, domain guidance, follow-up short-circuit."""

from __future__ import annotations

import pytest

from fixprompt.context.accumulator import ContextAccumulator
from fixprompt.instructions import InstructionAssembler
from fixprompt.models import ConversationContext
from fixprompt.prompt_registry import PromptRegistry


@pytest.fixture
def assembler() -> InstructionAssembler:
    return InstructionAssembler()


class TestAssemble:
    def test_technical_guidance(self, assembler):
        text = assembler.assemble("technical", None)
        assert text.startswith("You are a senior prompt engineer")
        assert "### Domain-Specific Guidance (Technical)" in text
        assert "Conversational Context" not in text

    def test_domain_without_guidance(self, assembler):
        text = assembler.assemble("fitness", None)
        assert "Domain-Specific Guidance" not in text
        assert "## PLATFORM-AWARE HEURISTICS" in text

    def test_no_domain(self, assembler):
        assert "Domain-Specific Guidance" not in assembler.assemble(None, None)

    def test_standard_context_appended(self, assembler):
        ctx = ConversationContext.model_validate({
            "conversationTopic": "Budgeting",
            "previousPrompts": [{"original": "How do I save money?"}],
        })
        text = assembler.assemble("finance", ctx)
        assert "### Domain-Specific Guidance (Finance)" in text
        assert "The user is working on: **Budgeting**" in text
        assert text.index("Domain-Specific Guidance") < text.index("Conversational Context")

    def test_refinement_keeps_guidance(self, assembler, two_prompt_context):
        ctx = ConversationContext.model_validate(two_prompt_context)
        text = assembler.assemble("technical", ctx, {"q2": "bug"})
        assert "### Domain-Specific Guidance (Technical)" in text
        assert "Refinement Request" in text

    def test_follow_up_short_circuits(self, assembler, two_prompt_context):
        ctx = ConversationContext.model_validate(two_prompt_context)
        text = assembler.assemble("technical", ctx)
        assert text == assembler.accumulator.build_instructions("technical", ctx)
        assert text.startswith("You are a senior prompt improvement specialist.")
        assert "Domain-Specific Guidance" not in text

    def test_shares_registry_with_accumulator(self):
        registry = PromptRegistry()
        assembler = InstructionAssembler(accumulator=ContextAccumulator(registry=registry))
        assert assembler.registry is registry


class TestRegistry:
    def test_bundled_templates_valid(self):
        assert PromptRegistry().validate() == []

    def test_guidance_lookup(self):
        registry = PromptRegistry()
        assert registry.guidance("business").startswith("### Domain-Specific Guidance (Business)")
        assert registry.guidance("hobbies") == ""
        assert registry.guidance(None) == ""
        assert registry.list_guidance() == sorted(
            ["technical", "creative", "business", "academic", "career", "personal", "finance"]
        )

    def test_unknown_prompt(self):
        from fixprompt.prompt_registry import PromptNotFoundError

        with pytest.raises(PromptNotFoundError):
            PromptRegistry().get("nope")

    def test_register_overrides(self):
        registry = PromptRegistry()
        registry.register("system", "Rewrite.{% if domain_guidance %} {{ domain_guidance }}{% endif %}")
        registry.register_guidance("hobbies", "Keep it fun.")
        assert InstructionAssembler(registry=registry).assemble("hobbies", None) == "Rewrite. Keep it fun."

    def test_missing_file(self, tmp_path):
        registry = PromptRegistry(tmp_path / "missing.yaml")
        assert registry.list_prompts() == []
        assert registry.validate()
