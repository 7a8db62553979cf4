"""Saved message history (append-only)."""

from __future__ import annotations

import logging

from blackctrl.integrations.outreach_api import OutreachApiClient
from blackctrl.models.outreach import OutreachResult, SavedMessage

logger = logging.getLogger(__name__)


class ResultStore:
    """Local view over the server-side message history.

    ``list`` serves a cached view that is dropped on every ``append``, so the
    first read after a save always reflects it. A fetch that was already in
    flight when the view was dropped is returned to its caller but never
    cached. Fetch failures propagate; an unreachable history is never
    presented as an empty one.
    """

    def __init__(self, api: OutreachApiClient):
        self.api = api
        self._view: list[SavedMessage] | None = None
        self._version = 0

    @property
    def is_stale(self) -> bool:
        return self._view is None

    def invalidate(self) -> None:
        self._view = None
        self._version += 1

    async def list(self) -> list[SavedMessage]:
        """Saved messages in insertion order; empty when nothing was saved."""
        if self._view is not None:
            return list(self._view)

        version = self._version
        messages = await self.api.list_messages()
        if version == self._version:
            self._view = messages
            logger.debug("Message history refreshed", extra={"entries": len(messages)})
        else:
            logger.debug("History changed during fetch, not caching", extra={"entries": len(messages)})
        return list(messages)

    async def recent(self) -> list[SavedMessage]:
        """Saved messages, most recent first."""
        messages = await self.list()
        return sorted(messages, key=lambda m: m.created_at, reverse=True)

    async def append(self, result: OutreachResult) -> SavedMessage:
        """Persist ``result`` as a new history entry. Never deduplicates."""
        saved = await self.api.save_message(result)
        self.invalidate()
        return saved
