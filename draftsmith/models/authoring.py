"""Authoring modes, pending suggestions, and per-item enrichment entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .extraction import ExtractionResult


class AuthoringMode(str, Enum):
    """An authoring intent: decides prompt shape and materialization rule."""

    # Course domain
    title = "title"
    description = "description"
    short_desc = "short_desc"
    category = "category"
    module_structure = "module_structure"
    quiz = "quiz"
    content_ideas = "content_ideas"
    pricing = "pricing"
    marketing = "marketing"
    image_ideas = "image_ideas"

    # Application domain
    fit_analysis = "fit_analysis"
    tailor_resume = "tailor_resume"
    cover_letter = "cover_letter"
    interview_questions = "interview_questions"


COURSE_MODES = frozenset({
    AuthoringMode.title,
    AuthoringMode.description,
    AuthoringMode.short_desc,
    AuthoringMode.category,
    AuthoringMode.module_structure,
    AuthoringMode.quiz,
    AuthoringMode.content_ideas,
    AuthoringMode.pricing,
    AuthoringMode.marketing,
    AuthoringMode.image_ideas,
})

APPLICATION_MODES = frozenset({
    AuthoringMode.fit_analysis,
    AuthoringMode.tailor_resume,
    AuthoringMode.cover_letter,
    AuthoringMode.interview_questions,
})

SCHEMA_MODES = frozenset({AuthoringMode.module_structure, AuthoringMode.quiz})
"""Modes whose output is validated against a JSON contract."""

APPLICABLE_MODES = frozenset({
    AuthoringMode.module_structure,
    AuthoringMode.quiz,
    AuthoringMode.title,
    AuthoringMode.description,
    AuthoringMode.short_desc,
    AuthoringMode.category,
})
"""Modes with an explicit "apply" action; everything else is advisory text."""


@dataclass
class Suggestion:
    """Generated output waiting for the user to apply, copy, or dismiss it."""

    mode: AuthoringMode
    raw_text: str
    result: Optional[ExtractionResult] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_applicable(self) -> bool:
        if self.mode not in APPLICABLE_MODES:
            return False
        if self.mode in SCHEMA_MODES:
            return self.result is not None and self.result.ok
        return bool(self.raw_text.strip())


class EnrichmentEntry(BaseModel):
    """One per-item generation result, keyed by owner id and kind."""

    owner_id: str
    kind: str
    text: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
