"""Per-item enrichment results.

Each section or item can carry several generated extras (a video script,
an exercise, a reading list). Results are keyed by (owner_id, kind). A
write replaces the owner's inner mapping with a copy holding the new slot,
so concurrent enrichments of different slots never clobber each other.
Two completions for the same slot: the last one wins.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Optional, TYPE_CHECKING

from draftsmith.models import EnrichmentEntry

if TYPE_CHECKING:
    from draftsmith.services.generation_gateway import GenerationGateway
    from draftsmith.services.prompt_composer import ComposedPrompt

logger = logging.getLogger(__name__)


class EnrichmentRegistry:
    """Mapping of owner id -> (kind -> EnrichmentEntry)."""

    def __init__(self):
        self._entries: dict[str, dict[str, EnrichmentEntry]] = {}
        self._pending: dict[tuple[str, str], int] = {}

    def put(self, owner_id: str, kind: str, text: str) -> EnrichmentEntry:
        """Store a result in its own slot."""
        entry = EnrichmentEntry(owner_id=owner_id, kind=kind, text=text)
        inner = dict(self._entries.get(owner_id, {}))
        inner[kind] = entry
        self._entries[owner_id] = inner
        return entry

    def get(self, owner_id: str, kind: str) -> Optional[EnrichmentEntry]:
        return self._entries.get(owner_id, {}).get(kind)

    def entries_for(self, owner_id: str) -> Mapping[str, EnrichmentEntry]:
        """Read-only view of all kinds stored for an owner."""
        return MappingProxyType(self._entries.get(owner_id, {}))

    def clear(self, owner_id: str, kind: str | None = None) -> None:
        """Remove one slot, or every slot of an owner when kind is None."""
        if kind is None:
            self._entries.pop(owner_id, None)
            return

        inner = self._entries.get(owner_id)
        if inner is None or kind not in inner:
            return
        inner = {k: v for k, v in inner.items() if k != kind}
        if inner:
            self._entries[owner_id] = inner
        else:
            del self._entries[owner_id]

    def is_pending(self, owner_id: str, kind: str) -> bool:
        return self._pending.get((owner_id, kind), 0) > 0

    async def enrich(
        self,
        owner_id: str,
        kind: str,
        prompt: "ComposedPrompt",
        gateway: "GenerationGateway",
        provider: str | None = None,
    ) -> EnrichmentEntry:
        """Generate text for a slot and store it.

        Gateway errors propagate; the slot keeps its previous entry.
        """
        slot = (owner_id, kind)
        self._pending[slot] = self._pending.get(slot, 0) + 1
        try:
            text = await gateway.send(prompt, provider=provider)
        finally:
            remaining = self._pending[slot] - 1
            if remaining:
                self._pending[slot] = remaining
            else:
                del self._pending[slot]

        logger.info("Enrichment stored", extra={"owner_id": owner_id, "kind": kind})
        return self.put(owner_id, kind, text)

    def snapshot(self) -> dict[str, dict[str, EnrichmentEntry]]:
        """Shallow copy of every owner's slots."""
        return {owner_id: dict(inner) for owner_id, inner in self._entries.items()}

    def __len__(self) -> int:
        return sum(len(inner) for inner in self._entries.values())
