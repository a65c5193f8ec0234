"""Shared fixtures. The rate limiter is disabled before fixprompt.server is imported."""

from __future__ import annotations

import os

os.environ["FIXPROMPT_RATE_LIMIT"] = "0"

import pytest

from fixprompt.context.store import InMemoryContextStore


@pytest.fixture
def store() -> InMemoryContextStore:
    return InMemoryContextStore()


@pytest.fixture
def two_prompt_context() -> dict:
    return {
        "conversationTopic": "Python sorting",
        "keyDetails": ["python", "lists"],
        "previousPrompts": [
            {"original": "How do I sort a list in Python?", "domain": "technical"},
            {"original": "Now sort it in reverse", "domain": "technical"},
        ],
        "questionsAsked": ["What programming language or technology are you working with?"],
    }
