"""Tests for DomainQuestionCatalog — per-domain questions with general fallback."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from fixprompt.models import Domain
from fixprompt.questions import DomainQuestionCatalog


@pytest.fixture
def catalog() -> DomainQuestionCatalog:
    return DomainQuestionCatalog()


class TestBundledCatalog:
    def test_every_domain_has_three_questions(self, catalog):
        for domain in Domain:
            questions = catalog.questions_for(domain.value)
            assert [q.id for q in questions] == ["q1", "q2", "q3"], domain

    def test_unknown_domain_falls_back_to_general(self, catalog):
        fallback = catalog.questions_for("nonexistent_domain_xyz")
        assert [q.id for q in fallback] == ["q1", "q2", "q3"]
        assert fallback == catalog.questions_for("general")

    def test_none_domain_falls_back_to_general(self, catalog):
        assert catalog.questions_for(None) == catalog.questions_for("general")

    def test_technical_questions(self, catalog):
        q1 = catalog.questions_for("technical")[0]
        assert q1.text == "What programming language or technology are you working with?"
        assert q1.answers[0].label == "Python"
        assert q1.answers[0].value == "python"

    def test_answer_values_are_strings(self, catalog):
        for domain in catalog.domains():
            for question in catalog.questions_for(domain):
                assert all(isinstance(a.value, str) for a in question.answers)

    def test_returns_fresh_copies(self, catalog):
        first = catalog.questions_for("technical")
        first[0].text = "mutated"
        first[0].answers.clear()
        second = catalog.questions_for("technical")
        assert second[0].text != "mutated"
        assert second[0].answers


class TestAnswerLabel:
    def test_known_value(self, catalog):
        assert catalog.answer_label("technical", "q2", "bug") == ("What is your primary goal?", "Fix a bug")

    def test_unknown_value_kept_raw(self, catalog):
        assert catalog.answer_label("technical", "q2", "zzz") == ("What is your primary goal?", "zzz")

    def test_unknown_question(self, catalog):
        assert catalog.answer_label("technical", "q9", "bug") is None


class TestCustomCatalog:
    def test_inline_questions(self):
        catalog = DomainQuestionCatalog(questions={
            "general": [{"id": "q1", "text": "Why?", "answers": None}],
        })
        questions = catalog.questions_for("anything")
        assert len(questions) == 1
        assert questions[0].answers == []

    def test_no_general_gives_empty(self):
        catalog = DomainQuestionCatalog(questions={"technical": []})
        assert catalog.questions_for("creative") == []

    def test_missing_file_gives_empty(self, tmp_path: Path):
        catalog = DomainQuestionCatalog(questions_path=tmp_path / "missing.yaml")
        assert catalog.questions_for("technical") == []
        assert catalog.domains() == []

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "questions.yaml"
        path.write_text(yaml.safe_dump({
            "questions": {
                "general": [{"id": "q1", "text": "Who?", "answers": [{"label": "Me", "value": "me"}]}],
            },
        }))
        catalog = DomainQuestionCatalog(questions_path=path)
        assert catalog.domains() == ["general"]
        assert catalog.questions_for("finance")[0].text == "Who?"
