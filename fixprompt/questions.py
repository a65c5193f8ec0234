"""DomainQuestionCatalog — static per-domain clarification questions, loaded from YAML.

Questions live in configs/questions.yaml. Unknown domains fall back to the
"general" list; a catalog without "general" returns an empty list rather than
raising.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from fixprompt.models import Domain, Question

logger = logging.getLogger("fixprompt.questions")

_DEFAULT_QUESTIONS_PATH = Path(__file__).parent / "configs" / "questions.yaml"


class DomainQuestionCatalog:
    """Per-domain question lists.

    Usage:
        catalog = DomainQuestionCatalog()
        catalog.questions_for("technical")        # 3 Question objects
        catalog.questions_for("no_such_domain")   # the "general" list
    """

    def __init__(
        self,
        questions_path: Path | str | None = None,
        questions: dict[str, list[dict[str, Any]]] | None = None,
    ):
        self._path = Path(questions_path) if questions_path else _DEFAULT_QUESTIONS_PATH
        self._entries: dict[str, list[Question]] = {}
        self._loaded = False
        if questions is not None:
            self._entries = self._parse(questions)
            self._loaded = True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()

    def _load(self) -> None:
        if not self._path.exists():
            logger.warning(f"Questions file not found: {self._path}, using empty catalog")
            self._loaded = True
            return

        with open(self._path) as f:
            raw = yaml.safe_load(f) or {}

        self._entries = self._parse(raw.get("questions", {}))
        self._loaded = True
        logger.debug(f"Loaded questions for {len(self._entries)} domains from {self._path}")

    @staticmethod
    def _parse(raw: dict[str, list[dict[str, Any]]]) -> dict[str, list[Question]]:
        return {
            domain: [Question.model_validate(item) for item in (items or [])]
            for domain, items in raw.items()
        }

    def questions_for(self, domain: str | None) -> list[Question]:
        """Return a fresh copy of the questions for ``domain``."""
        self._ensure_loaded()
        key = domain.value if isinstance(domain, Domain) else domain
        questions = self._entries.get(key) if key else None
        if questions is None:
            questions = self._entries.get(Domain.GENERAL.value, [])
        return [q.model_copy(deep=True) for q in questions]

    def domains(self) -> list[str]:
        self._ensure_loaded()
        return list(self._entries.keys())

    def answer_label(self, domain: str | None, question_id: str, value: str) -> tuple[str, str] | None:
        """Resolve a (question id, answer value) pair to (question text, answer label)."""
        for question in self.questions_for(domain):
            if question.id != question_id:
                continue
            for answer in question.answers:
                if answer.value == value:
                    return question.text, answer.label
            return question.text, value
        return None
