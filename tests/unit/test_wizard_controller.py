"""Unit tests for the authoring wizard.

Tests cover:
- Step navigation and clamping
- Per-step validation
- Direct edits and contiguous ordering
- Generation, suggestions and stale-result handling
- Submission and read-only state
"""

import asyncio

import pytest
from pydantic import ValidationError

from draftsmith.models import (
    ApplicationDraft,
    AuthoringMode,
    CourseDraft,
    DraftStatus,
    ExtractionFailureReason,
    ItemKind,
    QuestionKind,
)
from draftsmith.services.draft_repository import InMemoryDraftRepository
from draftsmith.services.generation_gateway import GatewayBadStatusError
from draftsmith.services.prompt_composer import PromptCompositionError
from draftsmith.services.wizard_controller import (
    APPLICATION_STEPS,
    COURSE_STEPS,
    ItemNotFoundError,
    QuestionNotFoundError,
    SectionNotFoundError,
    WizardController,
    WizardError,
    WizardSubmittedError,
    is_valid_price,
)


MODULES = '{"modules":[{"title":"Intro","description":"Basics"},{"title":"Roles","description":"Who"}]}'


class SlowRepository(InMemoryDraftRepository):
    """Yields to the event loop before storing."""

    async def create(self, draft, status):
        await asyncio.sleep(0)
        return await super().create(draft, status)


class FailingRepository(InMemoryDraftRepository):
    async def create(self, draft, status):
        raise RuntimeError("db down")


@pytest.fixture
def wizard(gateway, repository, course_draft):
    return WizardController.for_course(gateway, repository, draft=course_draft)


class TestNavigation:
    """Tests for step navigation."""

    def test_course_steps(self, wizard):
        assert [s.id for s in wizard.steps] == ["basic_info", "details", "content", "quiz", "review"]
        assert wizard.steps is COURSE_STEPS

    def test_application_steps(self, gateway):
        wizard = WizardController.for_application(gateway)
        assert [s.id for s in wizard.steps] == [
            "upload", "job", "analysis", "customize", "cover_letter", "interview",
        ]
        assert wizard.steps is APPLICATION_STEPS
        assert isinstance(wizard.draft, ApplicationDraft)

    def test_retreat_at_first_step_is_noop(self, wizard):
        assert wizard.retreat() == 0
        assert wizard.is_first_step

    def test_advance_at_last_step_is_noop(self, wizard):
        wizard.go_to(len(wizard.steps) - 1)
        assert wizard.advance() == len(wizard.steps) - 1
        assert wizard.is_last_step

    def test_go_to_clamps(self, wizard):
        assert wizard.go_to(99) == 4
        assert wizard.go_to(-3) == 0

    def test_advance_does_not_enforce_validity(self, gateway):
        wizard = WizardController.for_course(gateway)
        assert not wizard.is_step_valid()

        wizard.advance()

        assert wizard.current_step.id == "details"

    def test_can_advance(self, wizard):
        assert wizard.can_advance()
        wizard.go_to(4)
        assert not wizard.can_advance()

    def test_empty_steps_rejected(self, gateway):
        with pytest.raises(ValueError):
            WizardController(CourseDraft(), (), gateway)


class TestStepValidation:
    """Tests for per-step validity predicates."""

    def test_basic_info_needs_title_and_category(self, gateway):
        wizard = WizardController.for_course(gateway)
        wizard.update_fields(title="Scrum")
        assert not wizard.is_step_valid(0)

        wizard.update_fields(category="agile")
        assert wizard.is_step_valid(0)

    @pytest.mark.parametrize(
        "price, valid",
        [("", True), ("0", True), ("49.99", True), ("-1", False), ("free", False), ("nan", False), ("inf", False)],
    )
    def test_price(self, price, valid):
        assert is_valid_price(price) is valid

    def test_details_step(self, wizard):
        wizard.update_fields(price="-5")
        assert not wizard.is_step_valid(1)

    def test_quiz_step(self, wizard):
        assert wizard.is_step_valid(3)

        question = wizard.add_question(text="What is a sprint?", kind=QuestionKind.SHORT_ANSWER)
        assert not wizard.is_step_valid(3)

        wizard.update_question(question.id, correct_answer="A timebox")
        assert wizard.is_step_valid(3)

    def test_content_and_review_always_valid(self, gateway):
        wizard = WizardController.for_course(gateway)
        assert wizard.is_step_valid(2)
        assert wizard.is_step_valid(4)

    def test_out_of_range_is_invalid(self, wizard):
        assert not wizard.is_step_valid(10)

    def test_application_steps(self, gateway):
        wizard = WizardController.for_application(gateway)
        assert not wizard.is_step_valid(0)
        assert not wizard.is_step_valid(1)
        assert wizard.is_step_valid(2)

        wizard.update_fields(resume_content="CV", job_description="JD")

        assert wizard.is_step_valid(0)
        assert wizard.is_step_valid(1)


class TestEdits:
    """Tests for direct draft edits."""

    def test_update_fields(self, wizard):
        wizard.update_fields(title="New", featured=True)
        assert wizard.draft.title == "New"
        assert wizard.draft.featured is True

    def test_update_fields_rejects_unknown_and_collections(self, wizard):
        with pytest.raises(ValueError):
            wizard.update_fields(nonsense="x")
        with pytest.raises(ValueError):
            wizard.update_fields(sections=[])

    def test_update_fields_all_or_nothing(self, wizard):
        with pytest.raises(ValidationError):
            wizard.update_fields(title="Changed", featured="not a bool")
        assert wizard.draft.title == "Scrum Fundamentals"

    def test_sections_keep_contiguous_order(self, wizard):
        a = wizard.add_section("A")
        b = wizard.add_section("B")
        c = wizard.add_section("C")

        wizard.remove_section(b.id)
        assert [(s.title, s.order) for s in wizard.draft.sections] == [("A", 1), ("C", 2)]

        wizard.move_section(c.id, 0)
        assert [(s.title, s.order) for s in wizard.draft.sections] == [("C", 1), ("A", 2)]

        wizard.move_section(c.id, 50)
        assert [s.title for s in wizard.draft.sections] == ["A", "C"]
        assert a.order == 1

    def test_unknown_section(self, wizard):
        with pytest.raises(SectionNotFoundError):
            wizard.remove_section("missing")
        with pytest.raises(SectionNotFoundError):
            wizard.add_item("missing", ItemKind.video, "Intro")

    def test_items(self, wizard):
        section = wizard.add_section("A")
        first = wizard.add_item(section.id, "video", "Welcome", body="https://video.example.com/1")
        second = wizard.add_item(section.id, ItemKind.text, "Reading")
        third = wizard.add_item(section.id, ItemKind.link, "Link")

        wizard.remove_item(section.id, second.id)

        assert [(i.id, i.order) for i in section.items] == [(first.id, 1), (third.id, 2)]

        with pytest.raises(ItemNotFoundError):
            wizard.remove_item(section.id, second.id)

    def test_questions(self, wizard):
        first = wizard.add_question("Q1", kind=QuestionKind.TRUE_FALSE, options=["True", "False"], correct_answer="True")
        second = wizard.add_question("Q2", kind=QuestionKind.SHORT_ANSWER, correct_answer="x")

        wizard.remove_question(first.id)

        assert [q.id for q in wizard.draft.quiz.questions] == [second.id]
        with pytest.raises(QuestionNotFoundError):
            wizard.update_question(first.id, text="gone")

    def test_update_question_is_validated_whole(self, wizard):
        question = wizard.add_question("Q", kind=QuestionKind.SHORT_ANSWER, correct_answer="x")

        with pytest.raises(ValidationError):
            wizard.update_question(question.id, kind=QuestionKind.MULTIPLE_CHOICE)

        assert wizard.draft.quiz.questions[0] == question

        updated = wizard.update_question(question.id, kind=QuestionKind.MULTIPLE_CHOICE, options=["x", "y"])
        assert updated.id == question.id
        assert wizard.draft.quiz.questions[0].options == ["x", "y"]

    def test_update_question_id_forbidden(self, wizard):
        question = wizard.add_question("Q", kind=QuestionKind.SHORT_ANSWER)
        with pytest.raises(ValueError):
            wizard.update_question(question.id, id="other")

    def test_ensure_quiz_idempotent(self, wizard):
        assert wizard.ensure_quiz() is wizard.ensure_quiz()

    def test_add_blank_question(self, wizard):
        question = wizard.add_question()

        assert question.kind == QuestionKind.MULTIPLE_CHOICE
        assert question.options == ["", "", "", ""]
        assert wizard.draft.quiz.questions == [question]

    def test_add_question_without_options_for_other_kinds(self, wizard):
        question = wizard.add_question("Q", kind=QuestionKind.SHORT_ANSWER)
        assert question.options == []


class TestGeneration:
    """Tests for suggestions and materialization."""

    @pytest.mark.asyncio
    async def test_generate_then_apply_modules(self, wizard, gateway):
        gateway.queue(MODULES)

        suggestion = await wizard.generate(AuthoringMode.module_structure)

        assert suggestion.result.ok
        assert wizard.draft.sections == []
        assert wizard.suggestion(AuthoringMode.module_structure) is suggestion

        assert wizard.apply_suggestion(AuthoringMode.module_structure) is True
        assert [(s.title, s.order) for s in wizard.draft.sections] == [("Intro", 1), ("Roles", 2)]
        assert wizard.suggestion(AuthoringMode.module_structure) is None

    @pytest.mark.asyncio
    async def test_failed_extraction_stays_pending(self, wizard, gateway):
        gateway.queue("Module 1: Intro")

        suggestion = await wizard.generate(AuthoringMode.module_structure)

        assert suggestion.result.reason == ExtractionFailureReason.PARSE_EXHAUSTED
        assert suggestion.raw_text == "Module 1: Intro"
        assert wizard.apply_suggestion(AuthoringMode.module_structure) is False
        assert wizard.suggestion(AuthoringMode.module_structure) is suggestion
        assert wizard.draft.sections == []

    @pytest.mark.asyncio
    async def test_advisory_mode(self, wizard, gateway):
        gateway.queue("Charge $49.")

        suggestion = await wizard.generate(AuthoringMode.pricing, user_context="budget audience")

        assert suggestion.result is None
        assert "budget audience" in gateway.prompts[0].user
        assert wizard.apply_suggestion(AuthoringMode.pricing) is False

    @pytest.mark.asyncio
    async def test_apply_without_suggestion(self, wizard):
        assert wizard.apply_suggestion(AuthoringMode.title) is False

    @pytest.mark.asyncio
    async def test_dismiss(self, wizard, gateway):
        gateway.queue("1. A title")
        await wizard.generate(AuthoringMode.title)

        wizard.dismiss_suggestion(AuthoringMode.title)

        assert wizard.suggestion(AuthoringMode.title) is None

    @pytest.mark.asyncio
    async def test_gateway_error_clears_suggestion(self, wizard, gateway):
        gateway.queue("1. First title", GatewayBadStatusError("boom", status_code=502))
        await wizard.generate(AuthoringMode.title)

        with pytest.raises(GatewayBadStatusError):
            await wizard.generate(AuthoringMode.title)

        assert wizard.suggestion(AuthoringMode.title) is None
        assert wizard.draft.title == "Scrum Fundamentals"
        assert not wizard.is_busy(AuthoringMode.title)

    @pytest.mark.asyncio
    async def test_composition_error_propagates(self, gateway):
        wizard = WizardController.for_application(gateway)
        with pytest.raises(PromptCompositionError):
            await wizard.generate(AuthoringMode.fit_analysis)
        assert gateway.prompts == []

    @pytest.mark.asyncio
    async def test_stale_result_discarded(self, wizard, gateway):
        loop = asyncio.get_running_loop()
        older, newer = loop.create_future(), loop.create_future()
        gateway.queue(older, newer)

        first = asyncio.create_task(wizard.generate(AuthoringMode.title))
        second = asyncio.create_task(wizard.generate(AuthoringMode.title))
        await asyncio.sleep(0)
        assert wizard.is_busy(AuthoringMode.title)

        newer.set_result("1. Newer Title")
        assert (await second).raw_text == "1. Newer Title"

        older.set_result("1. Older Title")
        assert await first is None

        assert wizard.suggestion(AuthoringMode.title).raw_text == "1. Newer Title"
        assert not wizard.is_busy("title")

    @pytest.mark.asyncio
    async def test_last_arrival_wins_when_not_discarding(self, gateway, course_draft):
        wizard = WizardController.for_course(gateway, draft=course_draft, discard_stale_results=False)
        loop = asyncio.get_running_loop()
        older, newer = loop.create_future(), loop.create_future()
        gateway.queue(older, newer)

        first = asyncio.create_task(wizard.generate(AuthoringMode.title))
        second = asyncio.create_task(wizard.generate(AuthoringMode.title))
        await asyncio.sleep(0)
        newer.set_result("1. Newer Title")
        await second
        older.set_result("1. Older Title")
        await first

        assert wizard.suggestion(AuthoringMode.title).raw_text == "1. Older Title"

    @pytest.mark.asyncio
    async def test_independent_sites(self, wizard, gateway):
        loop = asyncio.get_running_loop()
        title_result = loop.create_future()
        gateway.queue(title_result, "A description.")

        title_task = asyncio.create_task(wizard.generate(AuthoringMode.title))
        await asyncio.sleep(0)
        await wizard.generate(AuthoringMode.description)

        assert wizard.is_busy(AuthoringMode.title)
        assert not wizard.is_busy(AuthoringMode.description)

        title_result.set_result("1. T")
        assert await title_task is not None


class TestImageAndEnrichment:
    """Tests for image generation and per-item enrichment."""

    @pytest.mark.asyncio
    async def test_generate_image_auto_applies(self, wizard, gateway):
        gateway.queue_image("https://img.example.com/cover.png")

        url = await wizard.generate_image()

        assert url == "https://img.example.com/cover.png"
        assert wizard.draft.image == url
        assert "Scrum Fundamentals" in gateway.image_prompts[0]

    @pytest.mark.asyncio
    async def test_generate_image_with_prompt(self, wizard, gateway):
        gateway.queue_image("https://img.example.com/x.png")

        await wizard.generate_image("A rocket", provider="openai")

        assert gateway.image_prompts == ["A rocket"]

    @pytest.mark.asyncio
    async def test_generate_image_error_leaves_image(self, wizard, gateway):
        wizard.update_fields(image="https://img.example.com/old.png")
        gateway.queue_image(GatewayBadStatusError("not implemented", status_code=501))

        with pytest.raises(GatewayBadStatusError):
            await wizard.generate_image(provider="anthropic")

        assert wizard.draft.image == "https://img.example.com/old.png"

    @pytest.mark.asyncio
    async def test_generate_image_needs_course(self, gateway):
        wizard = WizardController.for_application(gateway)
        with pytest.raises(WizardError):
            await wizard.generate_image()

    @pytest.mark.asyncio
    async def test_enrich_section_and_item(self, wizard, gateway):
        section = wizard.add_section("Sprints")
        item = wizard.add_item(section.id, ItemKind.video, "Sprint planning")
        gateway.queue("Section summary", "Video script")

        await wizard.enrich(section.id, "summary")
        await wizard.enrich(item.id, "video")

        assert wizard.registry.get(section.id, "summary").text == "Section summary"
        assert wizard.registry.get(item.id, "video").text == "Video script"
        assert "Lesson (video): Sprint planning" in gateway.prompts[1].user

    @pytest.mark.asyncio
    async def test_enrich_unknown_owner(self, wizard):
        with pytest.raises(SectionNotFoundError):
            await wizard.enrich("missing", "video")


class TestSubmit:
    """Tests for submission."""

    @pytest.mark.asyncio
    async def test_submit_stores_draft(self, wizard, repository):
        draft_id = await wizard.submit(DraftStatus.PUBLISHED)

        stored = await repository.get(draft_id)
        assert stored.status == DraftStatus.PUBLISHED
        assert stored.draft.title == "Scrum Fundamentals"
        assert wizard.submitted
        assert wizard.submitted_id == draft_id

    @pytest.mark.asyncio
    async def test_mutations_after_submit_raise(self, wizard):
        section = wizard.add_section("A")
        await wizard.submit()

        with pytest.raises(WizardSubmittedError):
            wizard.update_fields(title="Late")
        with pytest.raises(WizardSubmittedError):
            wizard.add_section("B")
        with pytest.raises(WizardSubmittedError):
            wizard.remove_section(section.id)
        with pytest.raises(WizardSubmittedError):
            wizard.add_question("Q", kind=QuestionKind.SHORT_ANSWER)
        with pytest.raises(WizardSubmittedError):
            await wizard.generate(AuthoringMode.title)
        with pytest.raises(WizardSubmittedError):
            await wizard.submit()

    @pytest.mark.asyncio
    async def test_navigation_after_submit_allowed(self, wizard):
        await wizard.submit()
        assert wizard.advance() == 1

    @pytest.mark.asyncio
    async def test_submit_without_repository(self, gateway):
        wizard = WizardController.for_course(gateway)
        with pytest.raises(WizardError):
            await wizard.submit()
        assert not wizard.submitted

    @pytest.mark.asyncio
    async def test_overlapping_submits_store_once(self, gateway, course_draft):
        repository = SlowRepository()
        wizard = WizardController.for_course(gateway, repository, draft=course_draft)

        results = await asyncio.gather(
            wizard.submit(DraftStatus.PUBLISHED),
            wizard.submit(DraftStatus.PUBLISHED),
            return_exceptions=True,
        )

        draft_ids = [r for r in results if isinstance(r, str)]
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(draft_ids) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], WizardSubmittedError)
        assert len(await repository.list_drafts()) == 1
        assert wizard.submitted_id == draft_ids[0]

    @pytest.mark.asyncio
    async def test_failed_submit_leaves_draft_editable(self, gateway, course_draft):
        wizard = WizardController.for_course(gateway, FailingRepository(), draft=course_draft)

        with pytest.raises(RuntimeError):
            await wizard.submit(DraftStatus.PUBLISHED)

        assert wizard.draft.status == DraftStatus.DRAFT
        assert not wizard.submitted
        wizard.update_fields(title="Still editable")

    @pytest.mark.asyncio
    async def test_submit_sets_live_status(self, wizard):
        await wizard.submit(DraftStatus.PUBLISHED)
        assert wizard.draft.status == DraftStatus.PUBLISHED

    @pytest.mark.asyncio
    async def test_generation_finishing_after_submit_is_dropped(self, wizard, gateway):
        pending = asyncio.get_running_loop().create_future()
        gateway.queue(pending)

        task = asyncio.create_task(wizard.generate(AuthoringMode.title))
        await asyncio.sleep(0)
        await wizard.submit()

        pending.set_result("1. Late Title")
        assert await task is None
        assert wizard.suggestion(AuthoringMode.title) is None

    @pytest.mark.asyncio
    async def test_image_finishing_after_submit_is_dropped(self, wizard, gateway):
        pending = asyncio.get_running_loop().create_future()
        gateway.queue_image(pending)

        task = asyncio.create_task(wizard.generate_image("A cover"))
        await asyncio.sleep(0)
        await wizard.submit()

        pending.set_result("https://img.example.com/late.png")
        assert await task is None
        assert wizard.draft.image == ""
