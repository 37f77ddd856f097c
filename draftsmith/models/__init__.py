"""Domain models package.

Note: keep these models as the source-of-truth schemas for drafts, extraction
results, and the API surface.
"""

from .authoring import (
    APPLICABLE_MODES,
    APPLICATION_MODES,
    COURSE_MODES,
    SCHEMA_MODES,
    AuthoringMode,
    EnrichmentEntry,
    Suggestion,
)
from .draft import (
    COURSE_CATEGORIES,
    DEFAULT_QUESTION_POINTS,
    ApplicationDraft,
    AuthoringDraft,
    CourseDraft,
    DraftStatus,
    Item,
    ItemKind,
    QuestionKind,
    QuizDraft,
    QuizQuestion,
    Section,
    new_id,
)
from .extraction import (
    CanonicalModule,
    CanonicalQuestion,
    ExtractionFailure,
    ExtractionFailureReason,
    ExtractionResult,
    ExtractionSuccess,
    ParseTier,
)

__all__ = [
    # Drafts
    "AuthoringDraft",
    "CourseDraft",
    "ApplicationDraft",
    "Section",
    "Item",
    "ItemKind",
    "QuizDraft",
    "QuizQuestion",
    "QuestionKind",
    "DraftStatus",
    "DEFAULT_QUESTION_POINTS",
    "COURSE_CATEGORIES",
    "new_id",
    # Authoring
    "AuthoringMode",
    "COURSE_MODES",
    "APPLICATION_MODES",
    "SCHEMA_MODES",
    "APPLICABLE_MODES",
    "Suggestion",
    "EnrichmentEntry",
    # Extraction
    "CanonicalModule",
    "CanonicalQuestion",
    "ExtractionSuccess",
    "ExtractionFailure",
    "ExtractionFailureReason",
    "ExtractionResult",
    "ParseTier",
]
