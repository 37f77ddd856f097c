"""Prompt templates for authoring modes.

Contains system and user prompts for:
1. Course authoring - title, description, short description, category,
   module structure, quiz, content ideas, pricing, marketing, image ideas
2. Job-application authoring - fit analysis, tailored resume, cover letter,
   interview questions
3. Per-item enrichment - video scripts, exercises, readings, summaries
4. Cover image generation

Composition only reads the draft; it never mutates it. The two
schema-bearing modes embed the same output contract the extraction engine
validates against.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel

from draftsmith.llm import ChatMessage
from draftsmith.models import (
    APPLICATION_MODES,
    COURSE_CATEGORIES,
    COURSE_MODES,
    ApplicationDraft,
    AuthoringDraft,
    AuthoringMode,
    CourseDraft,
    Item,
    Section,
)
from draftsmith.services.extraction_engine import MODULE_SCHEMA, QUIZ_SCHEMA


class PromptCompositionError(ValueError):
    """Raised when a mode cannot be composed for the given draft."""


class ComposedPrompt(BaseModel):
    """A request ready for the generation gateway."""

    mode: str
    system: str
    user: str

    def to_messages(self) -> list[ChatMessage]:
        return [
            ChatMessage(role="system", content=self.system),
            ChatMessage(role="user", content=self.user),
        ]


# ==============================================================================
# System Prompts
# ==============================================================================

COURSE_SYSTEM_PROMPT = """You are an expert instructional designer and course marketer.
You help course authors write clear, accurate, engaging course material for working professionals.
Follow the requested output format exactly."""

CAREER_SYSTEM_PROMPT = """You are an expert career advisor, recruiter, and resume writer.
Give honest, specific, actionable guidance. Never fabricate experience the candidate does not have.
Follow the requested output format exactly."""


# ==============================================================================
# Course Mode Instructions
# ==============================================================================

TITLE_INSTRUCTIONS = """Suggest 5 compelling, professional titles for this course.
- Keep each title under 10 words
- Put the strongest title first
- One title per line, numbered like "1. Title"
- No explanations"""

DESCRIPTION_INSTRUCTIONS = """Write a full course description of 2-3 short paragraphs.
- Open with the problem the course solves
- Describe what learners will be able to do afterwards
- Mention who the course is for
- Return only the description text"""

SHORT_DESC_INSTRUCTIONS = """Write a one-sentence summary of this course for a course catalog card.
- Maximum 200 characters
- A single line, no quotes, no preamble"""

MODULE_STRUCTURE_INSTRUCTIONS = """Design the module structure for this course.
- 4-8 modules in a logical learning sequence
- Each module gets a short title and a 1-2 sentence description
- Add 2-4 learning objectives and an estimated duration per module"""

QUIZ_INSTRUCTIONS = """Write a final quiz for this course.
- 5-10 questions covering the course modules
- Mix MULTIPLE_CHOICE, TRUE_FALSE and SHORT_ANSWER questions
- Give every question a brief explanation of the correct answer"""

CONTENT_IDEAS_INSTRUCTIONS = """Suggest lesson content ideas for each module of this course.
- For every module list 2-4 items: videos, readings, links, or documents
- Give each item a working title and one line on what it covers
- Use a markdown heading per module"""

PRICING_INSTRUCTIONS = """Recommend a price for this course in USD.
- Give a recommended price and a reasonable range
- Justify it from the level, duration, audience and comparable offerings
- Keep it under 150 words"""

MARKETING_INSTRUCTIONS = """Write marketing copy for this course.
- A one-line tagline
- Three benefit bullet points
- A short promotional email blurb (under 120 words)"""

IMAGE_IDEAS_INSTRUCTIONS = """Describe 3 distinct cover image concepts for this course.
- Each concept in 2-3 sentences: subject, composition, color palette, mood
- No text or lettering inside the image
- Number the concepts"""


# ==============================================================================
# Application Mode Instructions
# ==============================================================================

FIT_ANALYSIS_INSTRUCTIONS = """Analyze the fit between this resume and job description.
Cover, with markdown headings:
- Overall fit score (0-100) with a one-line justification
- Matching skills and keywords
- Skill gaps and how to address them
- Experience alignment
- Strengths and unique value propositions
- Potential red flags an employer might raise
- Recommended focus areas for the application"""

TAILOR_RESUME_INSTRUCTIONS = """Create a tailored version of this resume optimized for the job.
1. Emphasize the most relevant skills and experience first
2. Use keywords from the job description naturally
3. Use action verbs and quantified achievements
4. Keep it ATS friendly with consistent formatting
5. Keep every fact accurate - do not invent experience
Return the complete resume in markdown, then a short "Changes made" list."""

COVER_LETTER_INSTRUCTIONS = """Write a personalized cover letter for this application.
1. Open with why this specific opportunity is exciting
2. Highlight 2-3 of the most relevant achievements from the resume
3. Show alignment with the company and role
4. Close with a confident call to action
Keep it to 3-4 paragraphs and under 400 words. Address "Dear Hiring Manager" if no name is known."""

INTERVIEW_QUESTIONS_INSTRUCTIONS = """Prepare interview questions for this application in four groups:
Behavioral, Technical, Company-specific, Role-specific.
- 5-8 questions per group, mixed difficulty
- For each question add tips for answering (use STAR where it fits)
- Add a suggested answer drawn from the candidate's resume when a resume is provided"""


# ==============================================================================
# Enrichment Instructions
# ==============================================================================

ENRICHMENT_INSTRUCTIONS: dict[str, str] = {
    "video": """Write a short video lesson script outline for this part of the course.
- Hook, 3-5 talking points, and a recap
- Suggest on-screen visuals for each talking point""",
    "exercise": """Design one hands-on exercise for this part of the course.
- State the goal, the steps, and what a good result looks like
- Keep it doable in under 30 minutes""",
    "reading": """Suggest 3-5 further readings for this part of the course.
- Title and a one-line reason to read each
- Prefer well-known, durable sources""",
    "summary": """Summarize this part of the course in 3-5 bullet points a learner could review before the quiz.""",
}

GENERIC_ENRICHMENT_INSTRUCTIONS = """Write supporting "{kind}" material for this part of the course.
Keep it concise and practical."""

IMAGE_PROMPT_TEMPLATE = """Professional course cover illustration for an online course titled "{title}".
{details}Clean modern style, no text or lettering, suitable as a 16:9 course thumbnail."""


MODE_INSTRUCTIONS: dict[AuthoringMode, str] = {
    AuthoringMode.title: TITLE_INSTRUCTIONS,
    AuthoringMode.description: DESCRIPTION_INSTRUCTIONS,
    AuthoringMode.short_desc: SHORT_DESC_INSTRUCTIONS,
    AuthoringMode.module_structure: MODULE_STRUCTURE_INSTRUCTIONS,
    AuthoringMode.quiz: QUIZ_INSTRUCTIONS,
    AuthoringMode.content_ideas: CONTENT_IDEAS_INSTRUCTIONS,
    AuthoringMode.pricing: PRICING_INSTRUCTIONS,
    AuthoringMode.marketing: MARKETING_INSTRUCTIONS,
    AuthoringMode.image_ideas: IMAGE_IDEAS_INSTRUCTIONS,
    AuthoringMode.fit_analysis: FIT_ANALYSIS_INSTRUCTIONS,
    AuthoringMode.tailor_resume: TAILOR_RESUME_INSTRUCTIONS,
    AuthoringMode.cover_letter: COVER_LETTER_INSTRUCTIONS,
    AuthoringMode.interview_questions: INTERVIEW_QUESTIONS_INSTRUCTIONS,
}


def build_category_instructions() -> str:
    """Category prompt listing the controlled vocabulary."""
    labels = "\n".join(f"- {label}" for _, label, _ in COURSE_CATEGORIES)
    return (
        "Choose the single best category for this course from this list:\n"
        f"{labels}\n"
        "Reply with the category name only, exactly as written above."
    )


# ==============================================================================
# Draft Context
# ==============================================================================

def _field_lines(pairs: list[tuple[str, str]]) -> list[str]:
    return [f"{label}: {value.strip()}" for label, value in pairs if value and value.strip()]


def build_course_context(draft: CourseDraft) -> str:
    """Render what the author has entered so far."""
    lines = _field_lines([
        ("Title", draft.title),
        ("Category", draft.category),
        ("Level", draft.level),
        ("Duration", draft.duration),
        ("Short description", draft.short_desc),
        ("Description", draft.description),
    ])

    if draft.sections:
        lines.append("Modules:")
        for section in draft.sections:
            entry = f"{section.order}. {section.title}"
            if section.description:
                entry += f" - {section.description}"
            lines.append(entry)
            for item in section.items:
                lines.append(f"   - [{item.kind.value}] {item.title}")

    if not lines:
        return "The author has not entered any course details yet."
    return "\n".join(lines)


def build_application_context(draft: ApplicationDraft) -> str:
    """Render the resume and job inputs for application prompts."""
    parts = _field_lines([
        ("JOB TITLE", draft.job_title),
        ("COMPANY NAME", draft.company_name),
    ])
    parts.extend(["", "JOB DESCRIPTION:", draft.job_description.strip()])

    if draft.resume_content.strip():
        parts.extend(["", "RESUME:", draft.resume_content.strip()])

    if draft.fit_analysis.strip():
        parts.extend(["", "FIT ANALYSIS:", draft.fit_analysis.strip()])

    return "\n".join(parts).strip()


def _with_user_context(parts: list[str], user_context: str) -> list[str]:
    if user_context and user_context.strip():
        parts.extend(["", "## Additional context from the author", user_context.strip()])
    return parts


# ==============================================================================
# Composition
# ==============================================================================

def compose(
    mode: AuthoringMode,
    draft: AuthoringDraft,
    user_context: str = "",
) -> ComposedPrompt:
    """Compose the request for an authoring mode.

    Args:
        mode: The authoring intent.
        draft: Current draft (read only).
        user_context: Free text the author typed into the assistant box.

    Returns:
        ComposedPrompt with system and user text.

    Raises:
        PromptCompositionError: If the mode does not belong to the draft's
            domain, or required inputs are missing.
    """
    if mode in COURSE_MODES:
        if not isinstance(draft, CourseDraft):
            raise PromptCompositionError(f"Mode {mode.value} needs a course draft")
        return _compose_course(mode, draft, user_context)

    if mode in APPLICATION_MODES:
        if not isinstance(draft, ApplicationDraft):
            raise PromptCompositionError(f"Mode {mode.value} needs an application draft")
        return _compose_application(mode, draft, user_context)

    raise PromptCompositionError(f"Unsupported mode: {mode}")


def _compose_course(mode: AuthoringMode, draft: CourseDraft, user_context: str) -> ComposedPrompt:
    if mode == AuthoringMode.category:
        instructions = build_category_instructions()
    else:
        instructions = MODE_INSTRUCTIONS[mode]

    parts = [
        "## Course so far",
        build_course_context(draft),
        "",
        "## Task",
        instructions,
    ]

    if mode == AuthoringMode.module_structure:
        parts.extend(["", "## Output format", MODULE_SCHEMA.contract])
    elif mode == AuthoringMode.quiz:
        parts.extend(["", "## Output format", QUIZ_SCHEMA.contract])

    _with_user_context(parts, user_context)

    return ComposedPrompt(mode=mode.value, system=COURSE_SYSTEM_PROMPT, user="\n".join(parts))


def _compose_application(
    mode: AuthoringMode,
    draft: ApplicationDraft,
    user_context: str,
) -> ComposedPrompt:
    if not draft.job_description.strip():
        raise PromptCompositionError("Job description is required")
    if mode != AuthoringMode.interview_questions and not draft.resume_content.strip():
        raise PromptCompositionError("Resume content is required")

    parts = [
        build_application_context(draft),
        "",
        "INSTRUCTIONS:",
        MODE_INSTRUCTIONS[mode],
    ]
    _with_user_context(parts, user_context)

    return ComposedPrompt(mode=mode.value, system=CAREER_SYSTEM_PROMPT, user="\n".join(parts))


def compose_enrichment(
    kind: str,
    owner: Union[Section, Item],
    draft: CourseDraft,
    user_context: str = "",
) -> ComposedPrompt:
    """Compose a per-section or per-item enrichment request."""
    instructions = ENRICHMENT_INSTRUCTIONS.get(
        kind, GENERIC_ENRICHMENT_INSTRUCTIONS.format(kind=kind)
    )

    if isinstance(owner, Section):
        focus = [f"Module: {owner.title}"]
        if owner.description:
            focus.append(f"Module description: {owner.description}")
        focus.extend(f"Objective: {objective}" for objective in owner.learning_objectives)
    else:
        focus = [f"Lesson ({owner.kind.value}): {owner.title}"]
        if owner.body and owner.kind.value == "text":
            focus.append(f"Lesson text: {owner.body}")

    course_lines = _field_lines([("Title", draft.title), ("Level", draft.level)])
    parts = [
        "## Course",
        *(course_lines or ["Untitled course"]),
        "",
        "## Focus",
        *focus,
        "",
        "## Task",
        instructions,
    ]
    _with_user_context(parts, user_context)

    return ComposedPrompt(
        mode=f"enrichment:{kind}",
        system=COURSE_SYSTEM_PROMPT,
        user="\n".join(parts),
    )


def compose_image(draft: CourseDraft, user_context: str = "") -> str:
    """Compose the single-string prompt for cover image generation."""
    details: list[str] = []
    if draft.category.strip():
        details.append(f"Topic area: {draft.category.strip()}.")
    if draft.short_desc.strip():
        details.append(draft.short_desc.strip())
    if user_context and user_context.strip():
        details.append(user_context.strip())

    detail_text = " ".join(details)
    return IMAGE_PROMPT_TEMPLATE.format(
        title=draft.title.strip() or "Professional Skills",
        details=f"{detail_text}\n" if detail_text else "",
    )


def schema_contract_for(mode: AuthoringMode) -> Optional[str]:
    """The output contract embedded for a mode, if any."""
    if mode == AuthoringMode.module_structure:
        return MODULE_SCHEMA.contract
    if mode == AuthoringMode.quiz:
        return QUIZ_SCHEMA.contract
    return None
