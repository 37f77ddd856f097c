"""Structured-content extraction from generated text.

Generated text is unreliable: the JSON we asked for may arrive bare, wrapped
in a markdown code fence, or buried in conversational prose. Extraction runs
three parse tiers in order and stops at the first that yields a JSON object:

1. direct - the whole text parses
2. fenced - the interior of a ``` fence (optionally language-tagged) parses
3. brace_span - the substring from the first "{" to the last "}" parses

The parsed object must hold the schema's top-level array key. Each element
is then normalized through a fixed alias table into one canonical model;
elements missing their mandatory field are dropped. A result is all or
nothing: callers only ever see a full list of canonical elements or a
classified failure carrying the original text.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel

from draftsmith.models import (
    DEFAULT_QUESTION_POINTS,
    AuthoringMode,
    CanonicalModule,
    CanonicalQuestion,
    ExtractionFailure,
    ExtractionFailureReason,
    ExtractionResult,
    ExtractionSuccess,
    ParseTier,
    QuestionKind,
)

logger = logging.getLogger(__name__)

# Opening fence, optional language tag, interior (non-greedy), closing fence
FENCE_PATTERN = re.compile(r"```[ \t]*([A-Za-z0-9_+-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)


@dataclass(frozen=True)
class ExpectedSchema:
    """What a schema-bearing mode must produce.

    Attributes:
        name: Human-readable schema name (for logs).
        array_key: Required top-level key holding the element list.
        aliases: Canonical field name -> accepted input keys, in priority order.
        build: Turns resolved canonical fields into a model, or None to drop.
        contract: Output-shape contract embedded verbatim in prompts.
    """

    name: str
    array_key: str
    aliases: Mapping[str, tuple[str, ...]]
    build: Callable[[dict[str, Any]], Optional[BaseModel]]
    contract: str


# ==============================================================================
# Alias tables
# ==============================================================================

QUESTION_ALIASES: dict[str, tuple[str, ...]] = {
    "text": ("question", "question_text", "questionText"),
    "kind": ("type", "question_type", "questionType"),
    "options": ("options", "choices", "answers"),
    "correct_answer": ("correctAnswer", "correct_answer", "answer", "solution"),
    "explanation": ("explanation", "rationale", "reasoning"),
    "points": ("points", "score"),
}

MODULE_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "name", "moduleName"),
    "description": ("description", "summary", "overview"),
    "learning_objectives": ("learningObjectives", "learning_objectives", "objectives"),
    "estimated_duration": ("estimatedDuration", "estimated_duration", "duration"),
}

# Loose spellings generators use for the enumerated type tokens
_QUESTION_KIND_SYNONYMS = {
    "MULTIPLECHOICE": QuestionKind.MULTIPLE_CHOICE,
    "MCQ": QuestionKind.MULTIPLE_CHOICE,
    "MC": QuestionKind.MULTIPLE_CHOICE,
    "TRUEFALSE": QuestionKind.TRUE_FALSE,
    "TRUE_OR_FALSE": QuestionKind.TRUE_FALSE,
    "BOOLEAN": QuestionKind.TRUE_FALSE,
    "TF": QuestionKind.TRUE_FALSE,
    "SHORTANSWER": QuestionKind.SHORT_ANSWER,
    "SHORT": QuestionKind.SHORT_ANSWER,
    "OPEN": QuestionKind.SHORT_ANSWER,
}

TRUE_FALSE_OPTIONS = ["True", "False"]


def resolve_aliases(
    element: Mapping[str, Any],
    aliases: Mapping[str, tuple[str, ...]],
) -> dict[str, Any]:
    """Map an element's keys onto canonical names.

    For each canonical field the first alias present with a non-null value
    wins, so the result does not depend on key order in the input.
    """
    resolved: dict[str, Any] = {}
    for canonical, candidates in aliases.items():
        for key in candidates:
            value = element.get(key)
            if value is not None:
                resolved[canonical] = value
                break
    return resolved


# ==============================================================================
# Field coercion helpers
# ==============================================================================

def _clean_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _string_list(value: Any) -> list[str]:
    """Coerce an options/objectives value to a list of non-blank strings."""
    if isinstance(value, Mapping):
        value = list(value.values())
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [text for text in (_clean_text(v) for v in value) if text]


def _question_kind(value: Any) -> QuestionKind:
    token = _clean_text(value).upper()
    token = re.sub(r"[\s/-]+", "_", token)
    if token in QuestionKind.__members__:
        return QuestionKind[token]
    compact = token.replace("_", "")
    return _QUESTION_KIND_SYNONYMS.get(
        token, _QUESTION_KIND_SYNONYMS.get(compact, QuestionKind.MULTIPLE_CHOICE)
    )


def _points(value: Any) -> int:
    """Positive integer points, or the default for anything else."""
    if isinstance(value, bool):
        return DEFAULT_QUESTION_POINTS
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_QUESTION_POINTS
    if isinstance(value, (int, float)) and value > 0 and float(value).is_integer():
        return int(value)
    return DEFAULT_QUESTION_POINTS


def _answer_text(value: Any) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return _clean_text(value)


# ==============================================================================
# Element builders
# ==============================================================================

def build_question(fields: dict[str, Any]) -> Optional[CanonicalQuestion]:
    """Build a canonical question; None drops the element."""
    text = _clean_text(fields.get("text"))
    if not text:
        return None

    kind = _question_kind(fields.get("kind")) if "kind" in fields else QuestionKind.MULTIPLE_CHOICE
    options = _string_list(fields.get("options"))

    if kind == QuestionKind.TRUE_FALSE and not options:
        options = list(TRUE_FALSE_OPTIONS)
    if kind == QuestionKind.MULTIPLE_CHOICE and not options:
        return None

    explanation = _clean_text(fields.get("explanation")) or None

    return CanonicalQuestion(
        text=text,
        kind=kind,
        options=options,
        correct_answer=_answer_text(fields.get("correct_answer")),
        explanation=explanation,
        points=_points(fields.get("points")),
    )


def build_module(fields: dict[str, Any]) -> Optional[CanonicalModule]:
    """Build a canonical module; None drops the element."""
    title = _clean_text(fields.get("title"))
    if not title:
        return None

    return CanonicalModule(
        title=title,
        description=_clean_text(fields.get("description")),
        learning_objectives=_string_list(fields.get("learning_objectives")),
        estimated_duration=_clean_text(fields.get("estimated_duration")) or None,
    )


# ==============================================================================
# Schemas
# ==============================================================================

MODULE_CONTRACT = """Respond with ONLY a JSON object of exactly this shape, no commentary:
{"modules": [{"title": string, "description": string, "learningObjectives": [string], "estimatedDuration": string}]}
- "modules" is the only top-level key and holds an array.
- "title" and "description" are required for every module.
- "learningObjectives" and "estimatedDuration" are optional."""

QUIZ_CONTRACT = """Respond with ONLY a JSON object of exactly this shape, no commentary:
{"questions": [{"question": string, "type": "MULTIPLE_CHOICE" | "TRUE_FALSE" | "SHORT_ANSWER", "options": [string], "correctAnswer": string, "explanation": string, "points": number}]}
- "questions" is the only top-level key and holds an array.
- "type" must be one of MULTIPLE_CHOICE, TRUE_FALSE, SHORT_ANSWER.
- MULTIPLE_CHOICE questions need at least two "options"; TRUE_FALSE options are ["True", "False"]; SHORT_ANSWER options are [].
- "correctAnswer" must equal one of the options when options are given.
- "explanation" and "points" are optional (points default to 5)."""

MODULE_SCHEMA = ExpectedSchema(
    name="module_structure",
    array_key="modules",
    aliases=MODULE_ALIASES,
    build=build_module,
    contract=MODULE_CONTRACT,
)

QUIZ_SCHEMA = ExpectedSchema(
    name="quiz",
    array_key="questions",
    aliases=QUESTION_ALIASES,
    build=build_question,
    contract=QUIZ_CONTRACT,
)

SCHEMA_FOR_MODE: dict[AuthoringMode, ExpectedSchema] = {
    AuthoringMode.module_structure: MODULE_SCHEMA,
    AuthoringMode.quiz: QUIZ_SCHEMA,
}


# ==============================================================================
# Parse tiers
# ==============================================================================

def _parse_object(text: str) -> Optional[dict[str, Any]]:
    """Parse text as JSON; only an object counts as success."""
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def parse_direct(raw_text: str) -> Optional[dict[str, Any]]:
    return _parse_object(raw_text.strip())


def parse_fenced(raw_text: str) -> Optional[dict[str, Any]]:
    """Parse the first code fence whose interior is a JSON object."""
    for match in FENCE_PATTERN.finditer(raw_text):
        parsed = _parse_object(match.group(2).strip())
        if parsed is not None:
            return parsed
    return None


def parse_brace_span(raw_text: str) -> Optional[dict[str, Any]]:
    """Parse the inclusive span from the first "{" to the last "}"."""
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end < start:
        return None
    return _parse_object(raw_text[start:end + 1])


PARSE_TIERS: tuple[tuple[ParseTier, Callable[[str], Optional[dict[str, Any]]]], ...] = (
    (ParseTier.direct, parse_direct),
    (ParseTier.fenced, parse_fenced),
    (ParseTier.brace_span, parse_brace_span),
)


def parse_structured(raw_text: str) -> Optional[tuple[ParseTier, dict[str, Any]]]:
    """Run the parse tiers in order; the first object wins."""
    for tier, parser in PARSE_TIERS:
        parsed = parser(raw_text)
        if parsed is not None:
            logger.debug("Parsed generated text", extra={"tier": tier.value})
            return tier, parsed
    return None


# ==============================================================================
# Entry point
# ==============================================================================

def extract(raw_text: str, schema: ExpectedSchema) -> ExtractionResult:
    """Recover canonical elements for a schema from generated text.

    Args:
        raw_text: Text returned by the generation gateway.
        schema: The expected top-level key and element normalization.

    Returns:
        ExtractionSuccess with every surviving canonical element, or
        ExtractionFailure with the reason and the untouched raw text.
    """
    raw_text = raw_text or ""
    parsed = parse_structured(raw_text)

    if parsed is None:
        return _fail(schema, raw_text, ExtractionFailureReason.PARSE_EXHAUSTED)

    tier, document = parsed
    elements = document.get(schema.array_key)
    if not isinstance(elements, list):
        return _fail(
            schema,
            raw_text,
            ExtractionFailureReason.SCHEMA_MISMATCH,
            detail=f'expected "{schema.array_key}" to be an array',
        )

    canonical = []
    for element in elements:
        if not isinstance(element, Mapping):
            continue
        built = schema.build(resolve_aliases(element, schema.aliases))
        if built is not None:
            canonical.append(built)

    if not canonical:
        return _fail(
            schema,
            raw_text,
            ExtractionFailureReason.NO_VALID_ELEMENTS,
            detail=f"{len(elements)} element(s) found, none valid",
        )

    dropped = len(elements) - len(canonical)
    if dropped:
        logger.info(
            "Dropped %d invalid %s element(s)",
            dropped,
            schema.name,
            extra={"schema": schema.name, "tier": tier.value},
        )

    return ExtractionSuccess(elements=canonical, tier=tier, dropped=dropped)


def extract_for_mode(raw_text: str, mode: AuthoringMode) -> ExtractionResult:
    """Extract with the schema registered for a schema-bearing mode.

    Raises:
        KeyError: If the mode has no schema.
    """
    return extract(raw_text, SCHEMA_FOR_MODE[mode])


def _fail(
    schema: ExpectedSchema,
    raw_text: str,
    reason: ExtractionFailureReason,
    detail: Optional[str] = None,
) -> ExtractionFailure:
    logger.warning(
        "Extraction failed: %s",
        reason.value,
        extra={"schema": schema.name, "raw_length": len(raw_text), "detail": detail},
    )
    return ExtractionFailure(reason=reason, raw_text=raw_text, detail=detail)
