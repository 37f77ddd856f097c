"""Services package for authoring business logic."""

from . import extraction_engine
from . import prompt_composer
from . import draft_materializer

from .call_sites import CallSiteTracker
from .draft_repository import DraftRepository, InMemoryDraftRepository, StoredDraft
from .enrichment_registry import EnrichmentRegistry
from .extraction_engine import (
    MODULE_SCHEMA,
    QUIZ_SCHEMA,
    ExpectedSchema,
    extract,
    extract_for_mode,
)
from .generation_gateway import (
    GatewayBadStatusError,
    GatewayEmptyBodyError,
    GatewayError,
    GatewayUnreachableError,
    GenerationGateway,
)
from .prompt_composer import ComposedPrompt, PromptCompositionError, compose
from .wizard_controller import (
    APPLICATION_STEPS,
    COURSE_STEPS,
    ItemNotFoundError,
    QuestionNotFoundError,
    SectionNotFoundError,
    WizardController,
    WizardError,
    WizardStep,
    WizardSubmittedError,
)

__all__ = [
    "extraction_engine",
    "prompt_composer",
    "draft_materializer",
    # Extraction
    "ExpectedSchema",
    "MODULE_SCHEMA",
    "QUIZ_SCHEMA",
    "extract",
    "extract_for_mode",
    # Prompts
    "ComposedPrompt",
    "PromptCompositionError",
    "compose",
    # Gateway
    "GenerationGateway",
    "GatewayError",
    "GatewayUnreachableError",
    "GatewayBadStatusError",
    "GatewayEmptyBodyError",
    # State
    "CallSiteTracker",
    "EnrichmentRegistry",
    "DraftRepository",
    "InMemoryDraftRepository",
    "StoredDraft",
    # Wizard
    "WizardController",
    "WizardStep",
    "COURSE_STEPS",
    "APPLICATION_STEPS",
    "WizardError",
    "WizardSubmittedError",
    "SectionNotFoundError",
    "ItemNotFoundError",
    "QuestionNotFoundError",
]
