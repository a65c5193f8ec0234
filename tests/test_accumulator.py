"""Tests for ContextAccumulator — mode priority, directive blocks, question filtering."""

from __future__ import annotations

import pytest

from fixprompt.context.accumulator import MODE_RULES, ContextAccumulator, is_follow_up, is_refinement
from fixprompt.models import ContextMode, ConversationContext


@pytest.fixture
def accumulator() -> ContextAccumulator:
    return ContextAccumulator()


def _context(**fields) -> ConversationContext:
    return ConversationContext.model_validate(fields)


def _prompts(*texts: str) -> list[dict]:
    return [{"original": t, "domain": "technical"} for t in texts]


class TestModeSelection:
    def test_rule_order(self):
        assert [mode for mode, _ in MODE_RULES] == [
            ContextMode.REFINEMENT, ContextMode.FOLLOW_UP, ContextMode.STANDARD,
        ]

    def test_refinement_beats_follow_up(self, accumulator):
        ctx = _context(previousPrompts=_prompts("one", "two"))
        assert accumulator.select_mode(ctx, {"q1": "a"}) is ContextMode.REFINEMENT

    def test_follow_up(self, accumulator):
        ctx = _context(previousPrompts=_prompts("one", "two"))
        assert accumulator.select_mode(ctx) is ContextMode.FOLLOW_UP

    def test_single_previous_prompt_is_standard(self, accumulator):
        ctx = _context(previousPrompts=_prompts("one"))
        assert accumulator.select_mode(ctx) is ContextMode.STANDARD

    def test_context_without_prompts_is_standard(self, accumulator):
        assert accumulator.select_mode(_context(conversationTopic="x")) is ContextMode.STANDARD

    def test_empty_answers_are_not_refinement(self, accumulator):
        assert accumulator.select_mode(None, {}) is ContextMode.NONE
        assert not is_refinement({})
        assert not is_refinement(None)

    def test_refinement_without_context(self, accumulator):
        assert accumulator.select_mode(None, {"q1": "a"}) is ContextMode.REFINEMENT

    def test_nothing(self, accumulator):
        assert accumulator.select_mode(None) is ContextMode.NONE
        assert not is_follow_up(None)


class TestBuildInstructions:
    def test_none_is_empty(self, accumulator):
        assert accumulator.build_instructions("technical", None) == ""

    def test_refinement_resolves_answers(self, accumulator):
        ctx = _context(previousPrompts=_prompts("one", "two"))
        block = accumulator.build_instructions("technical", ctx, {"q2": "bug", "q9": "zzz"})
        assert "Refinement Request" in block
        assert "- What is your primary goal?: Fix a bug" in block
        assert "- q9: zzz" in block
        assert '1. Original: "one"' in block

    def test_refinement_lists_last_three_prompts(self, accumulator):
        ctx = _context(previousPrompts=_prompts("alpha", "bravo", "charlie", "delta", "echo"))
        block = accumulator.build_instructions("technical", ctx, {"q1": "python"})
        assert "alpha" not in block
        assert "bravo" not in block
        assert '1. Original: "charlie"' in block
        assert '3. Original: "echo"' in block

    def test_refinement_without_context_has_no_prompt_list(self, accumulator):
        block = accumulator.build_instructions("technical", None, {"q1": "python"})
        assert "Previous prompts" not in block
        assert "Python" in block

    def test_follow_up_lists_every_prompt(self, accumulator):
        ctx = _context(
            conversationTopic="Sorting",
            previousPrompts=_prompts("alpha", "bravo", "charlie", "delta") + [{"original": "echo"}],
        )
        block = accumulator.build_instructions("technical", ctx)
        assert block.startswith("You are a senior prompt improvement specialist.")
        assert "Topic: Sorting" in block
        assert '1. "alpha" (domain: technical)' in block
        assert '5. "echo" (domain: unknown)' in block

    def test_follow_up_default_topic(self, accumulator):
        ctx = _context(previousPrompts=_prompts("one", "two"))
        assert "Topic: various topics" in accumulator.build_instructions(None, ctx)

    def test_standard_block(self, accumulator):
        ctx = _context(
            conversationTopic="Python",
            keyDetails=["lists", "sorting"],
            previousPrompts=_prompts("one"),
            questionsAsked=["Q A", "Q B"],
        )
        block = accumulator.build_instructions("technical", ctx)
        assert block.startswith("### Conversational Context")
        assert "The user is working on: **Python**" in block
        assert "Key details from the conversation: lists, sorting" in block
        assert '1. "one"' in block
        assert "Questions already asked in this conversation: Q A, Q B" in block

    def test_standard_block_skips_missing_parts(self, accumulator):
        block = accumulator.build_instructions("technical", _context())
        assert block == "### Conversational Context"


class TestFilterQuestions:
    def test_no_context_returns_all(self, accumulator):
        assert [q.id for q in accumulator.filter_questions("technical", None)] == ["q1", "q2", "q3"]

    def test_asked_questions_removed(self, accumulator):
        ctx = _context(questionsAsked=["What programming language or technology are you working with?"])
        assert [q.id for q in accumulator.filter_questions("technical", ctx)] == ["q2", "q3"]

    def test_never_empties_list(self, accumulator):
        asked = [q.text for q in accumulator.catalog.questions_for("technical")]
        ctx = _context(questionsAsked=asked)
        assert [q.id for q in accumulator.filter_questions("technical", ctx)] == ["q1", "q2", "q3"]


class TestUserMessage:
    def test_without_context(self, accumulator):
        assert accumulator.build_user_message("Fix my code", None) == "Improve this prompt:\nFix my code"

    def test_with_previous_prompts(self, accumulator, two_prompt_context):
        ctx = ConversationContext.model_validate(two_prompt_context)
        message = accumulator.build_user_message("And in place?", ctx)
        assert message.startswith("Improve this prompt:\nAnd in place?")
        assert 'This is prompt #3 about: "Python sorting"' in message
        assert '2. "Now sort it in reverse"' in message

    def test_empty_previous_prompts(self, accumulator):
        ctx = _context(conversationTopic="x", previousPrompts=[])
        assert "CONVERSATION CONTEXT" not in accumulator.build_user_message("p", ctx)
