"""Draft persistence.

The wizard hands finished drafts to a DraftRepository. The in-memory
implementation keeps submitted drafts for the life of the process; a
database-backed repository only needs to implement the same three calls.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from draftsmith.models import AuthoringDraft, DraftStatus

logger = logging.getLogger(__name__)


class StoredDraft(BaseModel):
    """A submitted draft with its repository metadata."""

    id: str
    status: DraftStatus
    draft: AuthoringDraft
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DraftRepository(ABC):
    """Where submitted drafts go."""

    @abstractmethod
    async def create(self, draft: AuthoringDraft, status: DraftStatus) -> str:
        """Persist a draft and return its new id."""
        ...

    @abstractmethod
    async def get(self, draft_id: str) -> Optional[StoredDraft]:
        ...

    @abstractmethod
    async def list_drafts(self) -> list[StoredDraft]:
        ...


class InMemoryDraftRepository(DraftRepository):
    """Process-local repository. Drafts are lost on restart.

    Usage:
        repo = InMemoryDraftRepository()
        draft_id = await repo.create(draft, DraftStatus.PUBLISHED)
        stored = await repo.get(draft_id)
    """

    def __init__(self):
        self._drafts: dict[str, StoredDraft] = {}
        self._lock = asyncio.Lock()

    async def create(self, draft: AuthoringDraft, status: DraftStatus) -> str:
        draft_id = str(uuid4())
        # Stored copy is detached from the wizard's live draft
        snapshot = draft.model_copy(deep=True)
        snapshot.status = status

        async with self._lock:
            self._drafts[draft_id] = StoredDraft(id=draft_id, status=status, draft=snapshot)

        logger.info(
            "Stored draft %s",
            draft_id,
            extra={"draft_id": draft_id, "status": status.value},
        )
        return draft_id

    async def get(self, draft_id: str) -> Optional[StoredDraft]:
        async with self._lock:
            return self._drafts.get(draft_id)

    async def list_drafts(self) -> list[StoredDraft]:
        async with self._lock:
            return sorted(self._drafts.values(), key=lambda d: d.created_at)
