"""Per-call-site request tokens.

Each call site (an authoring mode, an enrichment slot, the image button)
gets a monotonically increasing token per request. A completion is current
only if its token is still the latest issued for its site; anything older
is stale and should be discarded by the caller.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class CallSiteTracker:
    """Issues request tokens and tracks in-flight requests per site."""

    def __init__(self):
        self._latest: dict[str, int] = {}
        self._in_flight: dict[str, set[int]] = {}

    def issue(self, site: str) -> int:
        """Start a request at a site and return its token."""
        token = self._latest.get(site, 0) + 1
        self._latest[site] = token
        self._in_flight.setdefault(site, set()).add(token)
        return token

    def complete(self, site: str, token: int) -> bool:
        """Finish a request. Returns True if it is the latest for its site."""
        in_flight = self._in_flight.get(site)
        if in_flight is not None:
            in_flight.discard(token)
            if not in_flight:
                del self._in_flight[site]

        current = self._latest.get(site) == token
        if not current:
            logger.debug(
                "Stale result at call site",
                extra={"site": site, "token": token, "latest": self._latest.get(site)},
            )
        return current

    def is_busy(self, site: str) -> bool:
        return bool(self._in_flight.get(site))

    def latest(self, site: str) -> int:
        """Latest token issued for a site (0 if none)."""
        return self._latest.get(site, 0)
