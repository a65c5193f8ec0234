"""PromptQualityScorer — rule-based 0-100 quality heuristic for a prompt string.

Four capped parts, summed and clamped to 100:
    clarity       goal (+10), reason/context (+8), constraint (+7) patterns
    structure     min(10, 3 per sentence) + 5 if avg chars/sentence > 50
    completeness  min(15, pieces of the text split on whitespace runs)
    specificity   digit (+5), quote char (+5), example pattern (+5)

Patterns match anywhere in the text, case-insensitive, without word
boundaries ("for" fires on "format"). The score is meant to be reproducible,
not semantically accurate.
"""

from __future__ import annotations

import re

GOAL_PATTERN = re.compile(r"goal|objective|want|need|aim|purpose", re.IGNORECASE)
REASON_PATTERN = re.compile(r"because|since|for|to|in order to", re.IGNORECASE)
CONSTRAINT_PATTERN = re.compile(r"without|except|only|must|should|cannot", re.IGNORECASE)
EXAMPLE_PATTERN = re.compile(r"example|such as|like|for instance", re.IGNORECASE)
SENTENCE_SPLIT = re.compile(r"[.!?]+")
# edge whitespace yields empty pieces, and "" is one piece
WORD_SPLIT = re.compile(r"\s+")
DIGIT_PATTERN = re.compile(r"\d")
QUOTE_PATTERN = re.compile(r"[\"'`]")


class PromptQualityScorer:
    """Deterministic heuristic scorer, used before and after rewriting."""

    def score(self, text: str) -> int:
        total = self.clarity(text) + self.structure(text) + self.completeness(text) + self.specificity(text)
        return min(100, round(total))

    @staticmethod
    def clarity(text: str) -> int:
        points = 0
        if GOAL_PATTERN.search(text):
            points += 10
        if REASON_PATTERN.search(text):
            points += 8
        if CONSTRAINT_PATTERN.search(text):
            points += 7
        return points

    @staticmethod
    def structure(text: str) -> int:
        sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
        points = min(10, len(sentences) * 3)
        avg_length = len(text) / max(1, len(sentences))
        if avg_length > 50:
            points += 5
        return points

    @staticmethod
    def completeness(text: str) -> int:
        return min(15, len(WORD_SPLIT.split(text)))

    @staticmethod
    def specificity(text: str) -> int:
        points = 0
        if DIGIT_PATTERN.search(text):
            points += 5
        if QUOTE_PATTERN.search(text):
            points += 5
        if EXAMPLE_PATTERN.search(text):
            points += 5
        return points

    def breakdown(self, text: str) -> dict[str, int]:
        return {
            "clarity": self.clarity(text),
            "structure": self.structure(text),
            "completeness": self.completeness(text),
            "specificity": self.specificity(text),
            "total": self.score(text),
        }
