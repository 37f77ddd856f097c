"""Pytest fixtures for testing."""

import asyncio
from collections import deque
from collections.abc import AsyncGenerator
from typing import Any, Union

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from draftsmith.api.main import app
from draftsmith.llm import LLMClient, set_client
from draftsmith.models import ApplicationDraft, CourseDraft
from draftsmith.services import InMemoryDraftRepository

ScriptItem = Union[str, Exception, "asyncio.Future[str]"]


class ScriptedGateway:
    """Stand-in for GenerationGateway that replays queued results.

    Each queued item is returned (str), raised (Exception), or awaited
    (Future) in call order, so tests control completion order of
    concurrent calls.
    """

    def __init__(self) -> None:
        self._texts: deque[ScriptItem] = deque()
        self._images: deque[ScriptItem] = deque()
        self.prompts: list[Any] = []
        self.image_prompts: list[str] = []
        self.providers: list[Any] = []

    def queue(self, *items: ScriptItem) -> "ScriptedGateway":
        self._texts.extend(items)
        return self

    def queue_image(self, *items: ScriptItem) -> "ScriptedGateway":
        self._images.extend(items)
        return self

    @staticmethod
    async def _resolve(item: ScriptItem) -> str:
        if isinstance(item, Exception):
            raise item
        if isinstance(item, asyncio.Future):
            return await item
        return item

    async def send(self, prompt: Any, provider: Any = None) -> str:
        self.prompts.append(prompt)
        self.providers.append(provider)
        return await self._resolve(self._texts.popleft())

    async def send_image(self, prompt: str, provider: Any = None) -> str:
        self.image_prompts.append(prompt)
        self.providers.append(provider)
        return await self._resolve(self._images.popleft())


@pytest.fixture
def gateway() -> ScriptedGateway:
    """Provide a scripted generation gateway."""
    return ScriptedGateway()


@pytest.fixture
def repository() -> InMemoryDraftRepository:
    return InMemoryDraftRepository()


@pytest.fixture
def course_draft() -> CourseDraft:
    """A course with basic info filled in."""
    return CourseDraft(
        title="Scrum Fundamentals",
        category="agile",
        level="Beginner",
        short_desc="Learn the Scrum framework in a weekend.",
    )


@pytest.fixture
def application_draft() -> ApplicationDraft:
    return ApplicationDraft(
        resume_content="Jane Doe\nSenior Product Manager, 8 years in B2B SaaS.",
        job_title="Director of Product",
        company_name="Acme",
        job_description="Lead the product org for our analytics platform.",
    )


@pytest.fixture
def llm_client() -> Any:
    """Install an LLMClient with fake keys as the default client."""
    client = LLMClient(openai_api_key="test-openai", anthropic_api_key="test-anthropic")
    set_client(client)
    yield client
    set_client(None)


@pytest_asyncio.fixture
async def client(llm_client: LLMClient) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
