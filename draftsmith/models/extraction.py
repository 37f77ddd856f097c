"""Extraction result types.

An extraction either succeeds with a list of canonical elements or fails
with a classified reason; failures always keep the raw generated text so
the user can recover content by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from .draft import DEFAULT_QUESTION_POINTS, QuestionKind


class ParseTier(str, Enum):
    """Which parsing strategy recovered the structured value."""

    direct = "direct"
    fenced = "fenced"
    brace_span = "brace_span"


class ExtractionFailureReason(str, Enum):
    """Why extraction produced nothing usable."""

    PARSE_EXHAUSTED = "parse_exhausted"
    SCHEMA_MISMATCH = "schema_mismatch"
    NO_VALID_ELEMENTS = "no_valid_elements"


class CanonicalModule(BaseModel):
    """A module element after alias resolution."""

    title: str
    description: str = ""
    learning_objectives: list[str] = Field(default_factory=list)
    estimated_duration: Optional[str] = None


class CanonicalQuestion(BaseModel):
    """A quiz question element after alias resolution."""

    text: str
    kind: QuestionKind = QuestionKind.MULTIPLE_CHOICE
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    explanation: Optional[str] = None
    points: int = DEFAULT_QUESTION_POINTS


@dataclass(frozen=True)
class ExtractionSuccess:
    elements: list[Any]
    tier: ParseTier
    dropped: int = 0
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ExtractionFailure:
    reason: ExtractionFailureReason
    raw_text: str
    detail: Optional[str] = None
    ok: bool = field(default=False, init=False)


ExtractionResult = Union[ExtractionSuccess, ExtractionFailure]
