"""Apply generated suggestions to a draft.

Only course drafts are materialized; application outputs are advisory text
the user copies by hand. Collection replacements are built in full before
being swapped in, so a validation error leaves the draft untouched.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from draftsmith.models import (
    COURSE_CATEGORIES,
    AuthoringDraft,
    AuthoringMode,
    CanonicalModule,
    CanonicalQuestion,
    CourseDraft,
    ExtractionResult,
    QuizDraft,
    QuizQuestion,
    Section,
    Suggestion,
)

logger = logging.getLogger(__name__)

SHORT_DESC_MAX_LENGTH = 200

ENUMERATION_PREFIX = re.compile(r"^\d+\.\s+")
HEADING_PREFIX = re.compile(r"^#{1,6}\s+")
QUOTE_CHARS = "\"'“”‘’"
EMPHASIS_CHARS = "*_`"

# Terms this short only match as whole words ("ai" must not match "maintain")
SHORT_TERM_LENGTH = 3


# ==============================================================================
# Text heuristics
# ==============================================================================

def first_nonblank_line(text: str) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


def extract_title(text: str) -> str:
    """Title from a numbered suggestion list: first line, decorations removed."""
    line = first_nonblank_line(text)
    line = HEADING_PREFIX.sub("", line)
    # Emphasis may wrap the enumeration ("**1. Title**") or sit inside it
    line = line.strip(EMPHASIS_CHARS).strip()
    line = ENUMERATION_PREFIX.sub("", line)
    line = line.strip().strip(EMPHASIS_CHARS).strip()
    return line.strip(QUOTE_CHARS).strip()


def extract_short_desc(text: str) -> str:
    """First line, capped at SHORT_DESC_MAX_LENGTH with an ellipsis."""
    line = first_nonblank_line(text)
    if len(line) > SHORT_DESC_MAX_LENGTH:
        return line[:SHORT_DESC_MAX_LENGTH] + "..."
    return line


def _term_matches(term: str, haystack: str) -> bool:
    if len(term) <= SHORT_TERM_LENGTH:
        return re.search(rf"\b{re.escape(term)}\b", haystack) is not None
    return term in haystack


def match_category(text: str) -> Optional[str]:
    """Map free text onto the category vocabulary, first hit in priority order."""
    haystack = (text or "").lower()
    for value, label, terms in COURSE_CATEGORIES:
        if label.lower() in haystack or any(_term_matches(term, haystack) for term in terms):
            return value
    return None


# ==============================================================================
# Collection replacement
# ==============================================================================

def build_sections(modules: list[CanonicalModule]) -> list[Section]:
    return [
        Section(
            title=module.title,
            description=module.description,
            order=index,
            learning_objectives=list(module.learning_objectives),
            estimated_duration=module.estimated_duration,
        )
        for index, module in enumerate(modules, start=1)
    ]


def build_questions(questions: list[CanonicalQuestion]) -> list[QuizQuestion]:
    return [
        QuizQuestion(
            text=question.text,
            kind=question.kind,
            options=list(question.options),
            correct_answer=question.correct_answer,
            explanation=question.explanation,
            points=question.points,
        )
        for question in questions
    ]


def apply_extraction(
    draft: CourseDraft,
    mode: AuthoringMode,
    result: Optional[ExtractionResult],
) -> bool:
    """Replace sections or quiz questions wholesale from a successful extraction."""
    if result is None or not result.ok:
        return False

    if mode == AuthoringMode.module_structure:
        draft.sections = build_sections(result.elements)
    elif mode == AuthoringMode.quiz:
        questions = build_questions(result.elements)
        if draft.quiz is None:
            draft.quiz = QuizDraft(questions=questions)
        else:
            draft.quiz.questions = questions
    else:
        return False

    logger.info(
        "Applied %d generated %s element(s)",
        len(result.elements),
        mode.value,
        extra={"mode": mode.value},
    )
    return True


def apply_image(draft: CourseDraft, url: str) -> bool:
    if not url or not url.strip():
        return False
    draft.image = url.strip()
    return True


# ==============================================================================
# Entry point
# ==============================================================================

def materialize(draft: AuthoringDraft, suggestion: Suggestion) -> bool:
    """Apply a suggestion to the draft.

    Returns:
        True if the draft changed, False for advisory modes, failed
        extractions, empty text, or non-course drafts.
    """
    if not isinstance(draft, CourseDraft):
        return False

    mode = suggestion.mode
    text = suggestion.raw_text

    if mode in (AuthoringMode.module_structure, AuthoringMode.quiz):
        return apply_extraction(draft, mode, suggestion.result)

    if mode == AuthoringMode.title:
        title = extract_title(text)
        if not title:
            return False
        draft.title = title
        return True

    if mode == AuthoringMode.short_desc:
        short_desc = extract_short_desc(text)
        if not short_desc:
            return False
        draft.short_desc = short_desc
        return True

    if mode == AuthoringMode.description:
        description = (text or "").strip()
        if not description:
            return False
        draft.description = description
        return True

    if mode == AuthoringMode.category:
        category = match_category(text)
        if category is None:
            logger.debug("No category matched generated text", extra={"mode": mode.value})
            return False
        draft.category = category
        return True

    return False
