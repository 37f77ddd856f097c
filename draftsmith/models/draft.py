"""Pydantic models for authoring drafts and their nested collections.

A draft is the in-progress artifact a wizard builds: a course (sections,
items, quiz) or a job-application package (resume, letters, prep notes).
Collections carry 1-based ``order`` values that every mutation keeps
contiguous; ids are uuid4 strings minted at creation and never reused.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


DEFAULT_QUESTION_POINTS = 5
"""Points assigned to a quiz question when none (or an invalid value) is given."""


# Controlled category vocabulary in match priority order: (value, label, search terms)
COURSE_CATEGORIES: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("agile", "Agile & Scrum", ("agile", "scrum", "kanban")),
    ("ai", "Artificial Intelligence", ("artificial intelligence", "machine learning", "ai")),
    ("product", "Product Management", ("product management", "product")),
    ("leadership", "Leadership", ("leadership", "leader")),
    ("pq", "PQ Skills", ("pq skills", "positive intelligence", "pq")),
    ("certification", "Certification", ("certification", "certified")),
)


def new_id() -> str:
    """Mint a fresh collection-unique id."""
    return str(uuid4())


class ItemKind(str, Enum):
    """Kind of learning item inside a section."""

    video = "video"
    text = "text"
    link = "link"
    document = "document"


class QuestionKind(str, Enum):
    """Quiz question type tokens, as they appear in the quiz contract."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"


class DraftStatus(str, Enum):
    """Status a draft is submitted with."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class Item(BaseModel):
    """A single learning item (video URL, text body, link, or document)."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    kind: ItemKind
    title: Annotated[str, Field(min_length=1)]
    body: str = ""
    duration: Optional[str] = None
    order: Annotated[int, Field(ge=1)] = 1


class Section(BaseModel):
    """A course module: an ordered group of items."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    title: Annotated[str, Field(min_length=1)]
    description: str = ""
    order: Annotated[int, Field(ge=1)] = 1
    items: list[Item] = Field(default_factory=list)
    learning_objectives: list[str] = Field(default_factory=list)
    estimated_duration: Optional[str] = None

    def renumber_items(self) -> None:
        """Reassign item order to 1..N in list order."""
        for index, item in enumerate(self.items, start=1):
            item.order = index


class QuizQuestion(BaseModel):
    """A quiz question. Multiple-choice questions always carry options."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    text: str = ""
    kind: QuestionKind = QuestionKind.MULTIPLE_CHOICE
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    explanation: Optional[str] = None
    points: Annotated[int, Field(ge=1)] = DEFAULT_QUESTION_POINTS

    @model_validator(mode="after")
    def _options_required_for_multiple_choice(self) -> "QuizQuestion":
        if self.kind == QuestionKind.MULTIPLE_CHOICE and not self.options:
            raise ValueError("multiple choice questions need at least one option")
        return self


class QuizDraft(BaseModel):
    """The optional quiz attached to a course."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    title: str = "Course Quiz"
    description: str = "Test your knowledge"
    questions: list[QuizQuestion] = Field(default_factory=list)


class AuthoringDraft(BaseModel):
    """Fields shared by every draft kind."""

    model_config = ConfigDict(validate_assignment=True)

    sections: list[Section] = Field(default_factory=list)
    quiz: Optional[QuizDraft] = None
    status: DraftStatus = DraftStatus.DRAFT

    def renumber_sections(self) -> None:
        """Reassign section order (and each section's item order) to 1..N."""
        for index, section in enumerate(self.sections, start=1):
            section.order = index
            section.renumber_items()

    def find_section(self, section_id: str) -> Optional[Section]:
        return next((s for s in self.sections if s.id == section_id), None)


class CourseDraft(AuthoringDraft):
    """A course being authored."""

    title: str = ""
    description: str = ""
    short_desc: str = ""
    category: str = ""
    level: str = ""
    price: str = ""
    duration: str = ""
    image: str = ""
    featured: bool = False


class ApplicationDraft(AuthoringDraft):
    """A job-application package being authored."""

    resume_filename: str = ""
    resume_content: str = ""
    job_title: str = ""
    company_name: str = ""
    job_description: str = ""
    fit_analysis: str = ""
    tailored_resume: str = ""
    cover_letter: str = ""
    interview_questions: str = ""
