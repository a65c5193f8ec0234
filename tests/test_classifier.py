"""Tests for KeywordDomainClassifier — weighted keyword scoring and tie-breaks."""

from __future__ import annotations

import pytest

from fixprompt.classifier import DEFAULT_PROFILES, KeywordDomainClassifier
from fixprompt.errors import InvalidInputError
from fixprompt.models import Domain, DomainProfile


@pytest.fixture
def classifier() -> KeywordDomainClassifier:
    return KeywordDomainClassifier()


class TestClassify:
    def test_python_function_is_technical(self, classifier):
        result = classifier.classify("Fix this Python function that sorts a list")
        assert result.domain == "technical"
        assert result.scores["technical"] == 2.0
        assert result.confidence == 0.2
        assert all(result.scores["technical"] >= v for v in result.scores.values())

    def test_romantic_story_is_creative(self, classifier):
        result = classifier.classify("I want to write a romantic short story for adults")
        assert result.domain == "creative"
        assert result.scores["creative"] == 2.0
        assert result.scores["relationships"] == 1.1

    def test_no_keywords_is_general(self, classifier):
        result = classifier.classify("zzz qqq")
        assert result.domain == "general"
        assert result.confidence == 0.0
        assert set(result.scores) == {p.domain for p in DEFAULT_PROFILES}
        assert all(v == 0 for v in result.scores.values())

    def test_keyword_counted_once(self, classifier):
        result = classifier.classify("code code code")
        assert result.scores["technical"] == 1.0

    def test_case_insensitive(self, classifier):
        assert classifier.classify("PYTHON").domain == "technical"

    def test_weight_applied(self, classifier):
        result = classifier.classify("my portfolio")
        assert result.domain == "finance"
        assert result.scores["finance"] == 1.2
        assert result.confidence == 0.12

    def test_confidence_capped_at_one(self, classifier):
        result = classifier.classify(
            "code python function algorithm debug api database server optimize sql docker"
        )
        assert result.domain == "technical"
        assert result.confidence == 1.0

    def test_winner_has_max_score(self, classifier):
        result = classifier.classify("I need a workout plan and a healthy diet for stress")
        assert result.scores[result.domain] == max(result.scores.values())

    def test_deterministic(self, classifier):
        prompt = "Design a marketing campaign for my startup"
        assert classifier.classify(prompt) == classifier.classify(prompt)

    def test_general_never_scored(self, classifier):
        result = classifier.classify("anything at all")
        assert Domain.GENERAL.value not in result.scores

    @pytest.mark.parametrize("prompt", ["", "   ", None, 42])
    def test_invalid_prompt(self, classifier, prompt):
        with pytest.raises(InvalidInputError, match="Invalid prompt"):
            classifier.classify(prompt)


class TestTieBreak:
    def test_first_profile_wins_tie(self):
        classifier = KeywordDomainClassifier([
            DomainProfile(domain="alpha", keywords=("shared",), weight=1.0),
            DomainProfile(domain="beta", keywords=("shared",), weight=1.0),
        ])
        assert classifier.classify("a shared keyword").domain == "alpha"

    def test_order_reversed(self):
        classifier = KeywordDomainClassifier([
            DomainProfile(domain="beta", keywords=("shared",), weight=1.0),
            DomainProfile(domain="alpha", keywords=("shared",), weight=1.0),
        ])
        assert classifier.classify("a shared keyword").domain == "beta"


class TestDomainProfile:
    def test_keywords_lowercased(self):
        profile = DomainProfile(domain="x", keywords=("DIY", "Ptsd"), weight=1.0)
        assert profile.keywords == ("diy", "ptsd")

    def test_weight_must_be_positive(self):
        with pytest.raises(ValueError):
            DomainProfile(domain="x", keywords=("a",), weight=0)

    def test_default_table_order(self):
        assert DEFAULT_PROFILES[0].domain == "technical"
        assert len(DEFAULT_PROFILES) == 15
