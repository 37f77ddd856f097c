"""Step-based authoring wizard.

The controller owns one draft and is the only thing that mutates it: user
edits go through named operations, generated content goes through
pending suggestions the user applies explicitly. Every edit keeps section,
item, and question ordering contiguous.

Generation calls are coroutines. Several may be in flight at once; each
call site (an authoring mode, the image button) gets a request token, and
by default a completion that has been superseded by a newer request at the
same site is discarded.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

from draftsmith.models import (
    DEFAULT_QUESTION_POINTS,
    SCHEMA_MODES,
    ApplicationDraft,
    AuthoringDraft,
    AuthoringMode,
    CourseDraft,
    DraftStatus,
    EnrichmentEntry,
    Item,
    ItemKind,
    QuestionKind,
    QuizDraft,
    QuizQuestion,
    Section,
    Suggestion,
)
from draftsmith.services import draft_materializer
from draftsmith.services.call_sites import CallSiteTracker
from draftsmith.services.draft_repository import DraftRepository
from draftsmith.services.enrichment_registry import EnrichmentRegistry
from draftsmith.services.extraction_engine import extract_for_mode
from draftsmith.services.generation_gateway import GatewayError, GenerationGateway
from draftsmith.services.prompt_composer import compose, compose_enrichment, compose_image

logger = logging.getLogger(__name__)

IMAGE_SITE = "image"

# Draft fields managed through dedicated operations
COLLECTION_FIELDS = frozenset({"sections", "quiz", "status"})


class WizardError(Exception):
    """Base class for wizard operation errors."""


class WizardSubmittedError(WizardError):
    """The draft was already submitted; the wizard is read-only."""


class SectionNotFoundError(WizardError):
    """No section with the given id."""


class ItemNotFoundError(WizardError):
    """No item with the given id in the section."""


class QuestionNotFoundError(WizardError):
    """No quiz question with the given id."""


@dataclass(frozen=True)
class WizardStep:
    id: str
    label: str


COURSE_STEPS: tuple[WizardStep, ...] = (
    WizardStep("basic_info", "Basic Info"),
    WizardStep("details", "Details"),
    WizardStep("content", "Content"),
    WizardStep("quiz", "Quiz"),
    WizardStep("review", "Review"),
)

APPLICATION_STEPS: tuple[WizardStep, ...] = (
    WizardStep("upload", "Upload Resume"),
    WizardStep("job", "Job Details"),
    WizardStep("analysis", "Fit Analysis"),
    WizardStep("customize", "Customize Resume"),
    WizardStep("cover_letter", "Cover Letter"),
    WizardStep("interview", "Interview Prep"),
)


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


BLANK_OPTION_COUNT = 4


def _default_options(kind: Union[QuestionKind, str]) -> list[str]:
    """Blank option slots for a new multiple-choice question."""
    if QuestionKind(kind) == QuestionKind.MULTIPLE_CHOICE:
        return [""] * BLANK_OPTION_COUNT
    return []


def is_valid_price(price: str) -> bool:
    """Blank, or a finite non-negative number."""
    if _blank(price):
        return True
    try:
        value = float(price.strip())
    except ValueError:
        return False
    return math.isfinite(value) and value >= 0


class WizardController:
    """Navigation, edits, and generation for a single draft.

    Usage:
        wizard = WizardController.for_course(gateway, repository)
        wizard.update_fields(title="Scrum Basics", category="agile")
        await wizard.generate(AuthoringMode.module_structure)
        wizard.apply_suggestion(AuthoringMode.module_structure)
        draft_id = await wizard.submit(DraftStatus.PUBLISHED)
    """

    def __init__(
        self,
        draft: AuthoringDraft,
        steps: tuple[WizardStep, ...],
        gateway: GenerationGateway,
        repository: Optional[DraftRepository] = None,
        registry: Optional[EnrichmentRegistry] = None,
        discard_stale_results: bool = True,
    ):
        """Initialize the wizard.

        Args:
            draft: The draft to author.
            steps: Ordered wizard steps.
            gateway: Generation gateway for all AI calls.
            repository: Where submit() stores the draft.
            registry: Per-item enrichment store (a fresh one if omitted).
            discard_stale_results: Drop completions superseded by a newer
                request at the same call site. When False, the last
                completion to arrive wins.
        """
        if not steps:
            raise ValueError("A wizard needs at least one step")

        self.draft = draft
        self.steps = steps
        self.registry = registry if registry is not None else EnrichmentRegistry()
        self.discard_stale_results = discard_stale_results

        self._gateway = gateway
        self._repository = repository
        self._current = 0
        self._suggestions: dict[AuthoringMode, Suggestion] = {}
        self._sites = CallSiteTracker()
        self._submitted_id: Optional[str] = None
        self._submitting = False

    @classmethod
    def for_course(
        cls,
        gateway: GenerationGateway,
        repository: Optional[DraftRepository] = None,
        draft: Optional[CourseDraft] = None,
        **kwargs: Any,
    ) -> "WizardController":
        return cls(draft or CourseDraft(), COURSE_STEPS, gateway, repository, **kwargs)

    @classmethod
    def for_application(
        cls,
        gateway: GenerationGateway,
        repository: Optional[DraftRepository] = None,
        draft: Optional[ApplicationDraft] = None,
        **kwargs: Any,
    ) -> "WizardController":
        return cls(draft or ApplicationDraft(), APPLICATION_STEPS, gateway, repository, **kwargs)

    # ==========================================================================
    # Navigation
    # ==========================================================================

    @property
    def current(self) -> int:
        return self._current

    @property
    def current_step(self) -> WizardStep:
        return self.steps[self._current]

    @property
    def is_first_step(self) -> bool:
        return self._current == 0

    @property
    def is_last_step(self) -> bool:
        return self._current == len(self.steps) - 1

    def go_to(self, index: int) -> int:
        """Jump to a step, clamped to the valid range."""
        self._current = max(0, min(index, len(self.steps) - 1))
        return self._current

    def advance(self) -> int:
        """Move forward one step. No-op on the last step.

        Does not check is_step_valid(); callers gate on can_advance().
        """
        return self.go_to(self._current + 1)

    def retreat(self) -> int:
        """Move back one step. No-op on the first step."""
        return self.go_to(self._current - 1)

    def is_step_valid(self, index: Optional[int] = None) -> bool:
        """Whether a step's required fields are filled in (default: current step)."""
        step_index = self._current if index is None else index
        if not 0 <= step_index < len(self.steps):
            return False

        step_id = self.steps[step_index].id
        draft = self.draft

        if isinstance(draft, CourseDraft):
            if step_id == "basic_info":
                return not _blank(draft.title) and not _blank(draft.category)
            if step_id == "details":
                return is_valid_price(draft.price)
            if step_id == "quiz":
                if draft.quiz is None:
                    return True
                return all(
                    not _blank(q.text) and not _blank(q.correct_answer)
                    for q in draft.quiz.questions
                )

        if isinstance(draft, ApplicationDraft):
            if step_id == "upload":
                return not _blank(draft.resume_content)
            if step_id == "job":
                return not _blank(draft.job_description)

        return True

    def can_advance(self) -> bool:
        return not self.is_last_step and self.is_step_valid()

    # ==========================================================================
    # Direct edits
    # ==========================================================================

    @property
    def submitted(self) -> bool:
        return self._submitted_id is not None

    @property
    def submitted_id(self) -> Optional[str]:
        return self._submitted_id

    def _ensure_editable(self) -> None:
        if self.submitted:
            raise WizardSubmittedError(f"Draft already submitted as {self._submitted_id}")
        if self._submitting:
            raise WizardSubmittedError("Draft submission in progress")

    def update_fields(self, **fields: Any) -> None:
        """Set scalar draft fields. All values are validated before any is applied.

        Raises:
            ValueError: Unknown field, or a collection field.
            pydantic.ValidationError: A value fails validation.
        """
        self._ensure_editable()
        model_fields = type(self.draft).model_fields
        for name in fields:
            if name not in model_fields or name in COLLECTION_FIELDS:
                raise ValueError(f"Field cannot be edited directly: {name}")

        validated = type(self.draft).model_validate({**self.draft.model_dump(), **fields})
        for name in fields:
            setattr(self.draft, name, getattr(validated, name))

    def _section(self, section_id: str) -> Section:
        section = self.draft.find_section(section_id)
        if section is None:
            raise SectionNotFoundError(f"Section not found: {section_id}")
        return section

    def add_section(self, title: str, description: str = "") -> Section:
        self._ensure_editable()
        section = Section(
            title=title,
            description=description,
            order=len(self.draft.sections) + 1,
        )
        self.draft.sections = [*self.draft.sections, section]
        return section

    def remove_section(self, section_id: str) -> None:
        self._ensure_editable()
        self._section(section_id)
        self.draft.sections = [s for s in self.draft.sections if s.id != section_id]
        self.draft.renumber_sections()

    def move_section(self, section_id: str, new_index: int) -> None:
        """Move a section to a 0-based position (clamped)."""
        self._ensure_editable()
        section = self._section(section_id)
        remaining = [s for s in self.draft.sections if s.id != section_id]
        position = max(0, min(new_index, len(remaining)))
        remaining.insert(position, section)
        self.draft.sections = remaining
        self.draft.renumber_sections()

    def add_item(
        self,
        section_id: str,
        kind: Union[ItemKind, str],
        title: str,
        body: str = "",
        duration: Optional[str] = None,
    ) -> Item:
        self._ensure_editable()
        section = self._section(section_id)
        item = Item(
            kind=kind,
            title=title,
            body=body,
            duration=duration,
            order=len(section.items) + 1,
        )
        section.items = [*section.items, item]
        return item

    def remove_item(self, section_id: str, item_id: str) -> None:
        self._ensure_editable()
        section = self._section(section_id)
        if not any(i.id == item_id for i in section.items):
            raise ItemNotFoundError(f"Item not found: {item_id}")
        section.items = [i for i in section.items if i.id != item_id]
        section.renumber_items()

    def ensure_quiz(self) -> QuizDraft:
        """Return the draft's quiz, creating an empty one if needed."""
        self._ensure_editable()
        if self.draft.quiz is None:
            self.draft.quiz = QuizDraft()
        return self.draft.quiz

    def add_question(
        self,
        text: str = "",
        kind: Union[QuestionKind, str] = QuestionKind.MULTIPLE_CHOICE,
        options: Optional[list[str]] = None,
        correct_answer: str = "",
        explanation: Optional[str] = None,
        points: int = DEFAULT_QUESTION_POINTS,
    ) -> QuizQuestion:
        self._ensure_editable()
        question = QuizQuestion(
            text=text,
            kind=kind,
            options=_default_options(kind) if options is None else options,
            correct_answer=correct_answer,
            explanation=explanation,
            points=points,
        )
        quiz = self.ensure_quiz()
        quiz.questions = [*quiz.questions, question]
        return question

    def _question_index(self, question_id: str) -> int:
        questions = self.draft.quiz.questions if self.draft.quiz else []
        for index, question in enumerate(questions):
            if question.id == question_id:
                return index
        raise QuestionNotFoundError(f"Question not found: {question_id}")

    def update_question(self, question_id: str, **fields: Any) -> QuizQuestion:
        """Replace a question with an updated, fully validated copy."""
        self._ensure_editable()
        index = self._question_index(question_id)
        if "id" in fields:
            raise ValueError("Question id cannot be changed")

        quiz = self.draft.quiz
        current = quiz.questions[index]
        updated = QuizQuestion.model_validate({**current.model_dump(), **fields})

        questions = list(quiz.questions)
        questions[index] = updated
        quiz.questions = questions
        return updated

    def remove_question(self, question_id: str) -> None:
        self._ensure_editable()
        self._question_index(question_id)
        quiz = self.draft.quiz
        quiz.questions = [q for q in quiz.questions if q.id != question_id]

    # ==========================================================================
    # Generation
    # ==========================================================================

    def is_busy(self, site: Union[AuthoringMode, str]) -> bool:
        """Whether a request is in flight at a call site."""
        key = site.value if isinstance(site, AuthoringMode) else site
        return self._sites.is_busy(key)

    def _is_current(self, site: str, token: int) -> bool:
        current = self._sites.complete(site, token)
        return current or not self.discard_stale_results

    async def generate(
        self,
        mode: AuthoringMode,
        user_context: str = "",
        provider: Optional[str] = None,
    ) -> Optional[Suggestion]:
        """Generate content for a mode and hold it as a pending suggestion.

        Schema-bearing modes are extracted immediately; a failed extraction
        is still returned (with the raw text) but cannot be applied.

        Returns:
            The suggestion, or None if a newer request at the same call
            site superseded this one.

        Raises:
            PromptCompositionError: Mode does not fit the draft.
            GatewayError: Generation failed; the mode's pending suggestion
                is cleared and the draft is untouched.
        """
        self._ensure_editable()
        prompt = compose(mode, self.draft, user_context)
        site = mode.value
        token = self._sites.issue(site)

        try:
            text = await self._gateway.send(prompt, provider=provider)
        except GatewayError:
            if self._is_current(site, token):
                self._suggestions.pop(mode, None)
            raise

        if not self._is_current(site, token):
            logger.debug("Discarded superseded suggestion", extra={"mode": mode.value})
            return None
        if self.submitted:
            logger.debug("Discarded suggestion after submit", extra={"mode": mode.value})
            return None

        result = extract_for_mode(text, mode) if mode in SCHEMA_MODES else None
        suggestion = Suggestion(mode=mode, raw_text=text, result=result)
        self._suggestions[mode] = suggestion
        return suggestion

    def suggestion(self, mode: AuthoringMode) -> Optional[Suggestion]:
        return self._suggestions.get(mode)

    def dismiss_suggestion(self, mode: AuthoringMode) -> None:
        self._suggestions.pop(mode, None)

    def apply_suggestion(self, mode: AuthoringMode) -> bool:
        """Materialize the pending suggestion for a mode.

        Returns:
            True if the draft changed. The suggestion is consumed only then;
            a failed extraction stays pending so its raw text remains visible.
        """
        self._ensure_editable()
        suggestion = self._suggestions.get(mode)
        if suggestion is None:
            return False

        applied = draft_materializer.materialize(self.draft, suggestion)
        if applied:
            del self._suggestions[mode]
        return applied

    async def generate_image(
        self,
        prompt: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> Optional[str]:
        """Generate a cover image and set it on the course draft.

        Args:
            prompt: Image prompt; composed from the draft when omitted.
            provider: Provider override.

        Returns:
            The image URL, or None if a newer image request superseded this one.
        """
        self._ensure_editable()
        if not isinstance(self.draft, CourseDraft):
            raise WizardError("Image generation needs a course draft")

        prompt = prompt or compose_image(self.draft)
        token = self._sites.issue(IMAGE_SITE)

        try:
            url = await self._gateway.send_image(prompt, provider=provider)
        except GatewayError:
            self._sites.complete(IMAGE_SITE, token)
            raise

        if not self._is_current(IMAGE_SITE, token):
            logger.debug("Discarded superseded image", extra={"site": IMAGE_SITE})
            return None
        if self.submitted:
            logger.debug("Discarded image after submit", extra={"site": IMAGE_SITE})
            return None

        draft_materializer.apply_image(self.draft, url)
        return url

    def _enrichment_owner(self, owner_id: str) -> Union[Section, Item]:
        for section in self.draft.sections:
            if section.id == owner_id:
                return section
            for item in section.items:
                if item.id == owner_id:
                    return item
        raise SectionNotFoundError(f"No section or item with id {owner_id}")

    async def enrich(
        self,
        owner_id: str,
        kind: str,
        user_context: str = "",
        provider: Optional[str] = None,
    ) -> EnrichmentEntry:
        """Generate per-section or per-item material into the registry."""
        self._ensure_editable()
        if not isinstance(self.draft, CourseDraft):
            raise WizardError("Enrichment needs a course draft")

        owner = self._enrichment_owner(owner_id)
        prompt = compose_enrichment(kind, owner, self.draft, user_context)
        return await self.registry.enrich(owner_id, kind, prompt, self._gateway, provider=provider)

    # ==========================================================================
    # Submission
    # ==========================================================================

    async def submit(self, status: DraftStatus = DraftStatus.DRAFT) -> str:
        """Hand the draft to the repository. The wizard is read-only afterwards.

        Raises:
            WizardSubmittedError: Already submitted.
            WizardError: No repository configured.
        """
        self._ensure_editable()
        if self._repository is None:
            raise WizardError("No draft repository configured")

        self._submitting = True
        try:
            draft_id = await self._repository.create(self.draft, status)
        finally:
            self._submitting = False

        self.draft.status = status
        self._submitted_id = draft_id
        self._suggestions.clear()
        logger.info(
            "Draft submitted",
            extra={"draft_id": draft_id, "status": status.value},
        )
        return draft_id
