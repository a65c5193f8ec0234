"""KeywordDomainClassifier — maps a raw prompt to its best-matching domain.

Each domain profile contributes its weight once per keyword found anywhere in
the lower-cased prompt (substring match, so "art" also fires on "start").
The highest total wins; on a tie the profile listed first wins. Confidence is
``min(max_score / 10, 1)`` rounded to two places. The divisor is a fixed
calibration constant, independent of keyword-set size and prompt length.
"""

from __future__ import annotations

import logging
from typing import Iterable

from fixprompt.errors import InvalidInputError
from fixprompt.models import ClassificationResult, Domain, DomainProfile

logger = logging.getLogger("fixprompt.classifier")

CONFIDENCE_DIVISOR = 10.0


def _profile(domain: Domain, weight: float, *keywords: str) -> DomainProfile:
    return DomainProfile(domain=domain.value, keywords=keywords, weight=weight)


# Order matters: it is the tie-break order.
DEFAULT_PROFILES: tuple[DomainProfile, ...] = (
    _profile(
        Domain.TECHNICAL, 1.0,
        "code", "python", "javascript", "function", "algorithm", "debug", "api", "database",
        "server", "optimize", "performance", "sql", "react", "node", "git", "docker", "aws",
        "programming", "software", "development", "framework", "library",
    ),
    _profile(
        Domain.CREATIVE, 1.0,
        "story", "write", "poem", "creative", "fiction", "character", "plot", "dialogue",
        "narrative", "script", "song", "art", "design", "visual", "imagine", "brainstorm",
        "idea", "concept",
    ),
    _profile(
        Domain.BUSINESS, 1.0,
        "business", "marketing", "sales", "strategy", "revenue", "customer", "product",
        "market", "growth", "roi", "profit", "investment", "startup", "entrepreneur", "brand",
        "campaign", "analytics", "metrics",
    ),
    _profile(
        Domain.FINANCE, 1.2,
        "billionaire", "millionaire", "wealth", "financial", "investment", "money", "income",
        "earn", "accumulate", "portfolio", "stock", "crypto", "trading", "passive income",
        "financial independence", "net worth", "asset", "capital", "dividend", "return",
        "yield", "rich", "wealthy",
    ),
    _profile(
        Domain.ACADEMIC, 1.0,
        "research", "paper", "study", "analysis", "theory", "hypothesis", "experiment", "data",
        "conclusion", "literature", "academic", "education", "learning", "course", "thesis",
        "essay",
    ),
    _profile(
        Domain.CAREER, 1.0,
        "job", "resume", "interview", "career", "promotion", "salary", "cover letter",
        "linkedin", "networking", "professional", "skill", "experience", "employer",
        "recruiter", "application", "advancement", "development",
    ),
    _profile(
        Domain.HR, 1.1,
        "hire", "recruit", "employee", "staff", "team", "onboarding", "candidate",
        "job posting", "hiring", "recruitment", "talent", "personnel", "hr",
        "human resources", "applicant", "screening", "hiring process",
    ),
    _profile(
        Domain.PERSONAL, 1.0,
        "health", "fitness", "fit", "wellness", "diet", "exercise", "workout", "gym",
        "training", "meditation", "mental", "family", "relationship", "travel", "hobby",
        "personal", "life", "goal", "habit", "self-improvement", "wellbeing",
    ),
    _profile(
        Domain.FITNESS, 1.2,
        "exercise", "workout", "gym", "training", "cardio", "strength", "running", "cycling",
        "yoga", "pilates", "stretching", "weight loss", "muscle", "fitness goal", "trainer",
        "program", "fit", "athletic",
    ),
    _profile(
        Domain.HEALTH, 1.2,
        "health", "wellness", "diet", "nutrition", "medical", "doctor", "disease", "treatment",
        "supplement", "vitamin", "sleep", "stress", "immune", "preventive", "wellbeing",
        "healthy eating", "nutrition plan",
    ),
    _profile(
        Domain.RELATIONSHIPS, 1.1,
        "relationship", "dating", "marriage", "partner", "spouse", "family", "friend",
        "communication", "conflict", "love", "dating advice", "breakup", "divorce", "intimacy",
        "commitment", "romantic",
    ),
    _profile(
        Domain.HOBBIES, 1.0,
        "hobby", "interest", "craft", "art", "music", "gaming", "sports", "collecting", "diy",
        "photography", "painting", "drawing", "writing", "reading", "cooking", "gardening",
        "creative project",
    ),
    _profile(
        Domain.MENTAL_HEALTH, 1.3,
        "mental health", "anxiety", "depression", "stress", "therapy", "counseling",
        "mindfulness", "meditation", "emotional", "psychological", "mental wellness", "trauma",
        "ptsd", "bipolar", "ocd", "mental",
    ),
    _profile(
        Domain.PERSONAL_DEVELOPMENT, 1.1,
        "personal development", "self-improvement", "goal setting", "productivity",
        "time management", "habits", "motivation", "confidence", "self-esteem",
        "growth mindset", "learning", "self-help",
    ),
    _profile(
        Domain.EDUCATION, 1.1,
        "education", "learning", "study", "student", "school", "university", "course",
        "training", "certification", "exam", "homework", "assignment", "subject", "teacher",
        "tutor", "degree",
    ),
)


class KeywordDomainClassifier:
    """Weighted keyword classifier over a static profile table.

    Usage:
        classifier = KeywordDomainClassifier()
        result = classifier.classify("Fix this Python function")
        result.domain       # "technical"
        result.confidence   # 0.2
    """

    def __init__(self, profiles: Iterable[DomainProfile] | None = None):
        self.profiles: tuple[DomainProfile, ...] = tuple(profiles) if profiles is not None else DEFAULT_PROFILES

    def classify(self, prompt: str) -> ClassificationResult:
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidInputError("Invalid prompt: must be a non-empty string")

        text = prompt.lower()
        scores: dict[str, float] = {}
        for profile in self.profiles:
            score = scores.get(profile.domain, 0.0)
            # once per distinct keyword, however often it recurs
            for keyword in dict.fromkeys(profile.keywords):
                if keyword in text:
                    score += profile.weight
            scores[profile.domain] = score

        best_domain = Domain.GENERAL.value
        best_score = 0.0
        for domain, score in scores.items():
            if score > best_score:
                best_domain, best_score = domain, score

        confidence = round(min(best_score / CONFIDENCE_DIVISOR, 1.0), 2)
        logger.debug(f"Classified prompt ({len(prompt)} chars) as {best_domain} (confidence={confidence})")
        return ClassificationResult(domain=best_domain, confidence=confidence, scores=scores)
