"""Session store: the client's single source of truth for "may this caller act".

The store pairs the in-process ``Session`` with a ``SessionCache``, a
non-authoritative flag that survives for the lifetime of the client session so
a restart of the front end can skip a status round-trip. The cache is never an
authorization gate on its own; the server session cookie is.
"""

import logging
from typing import Protocol

from blackctrl.core.config import settings
from blackctrl.models.session import AuthState, Session

logger = logging.getLogger(__name__)


class SessionCache(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemorySessionCache:
    """Session-scoped key/value cache held in process memory."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class SessionStore:
    """Holds the current ``Session`` and keeps the cache in step with it."""

    def __init__(self, cache: SessionCache | None = None, cache_key: str | None = None):
        self.session = Session()
        self.cache = cache if cache is not None else MemorySessionCache()
        self.cache_key = cache_key or settings.SESSION_CACHE_KEY

    @property
    def state(self) -> AuthState:
        return self.session.state

    @property
    def is_authenticated(self) -> bool:
        return self.session.authenticated

    def cached_authenticated(self) -> bool:
        return self.cache.get(self.cache_key) == "true"

    def transition(self, state: AuthState) -> None:
        if state is not self.session.state:
            logger.debug(
                "Session state change",
                extra={"from_state": self.session.state.value, "to_state": state.value},
            )
        self.session.state = state

    def mark_link_sent(self, email: str) -> None:
        self.session.email = email
        if not self.session.authenticated:
            self.transition(AuthState.LINK_SENT)

    def mark_authenticated(self) -> None:
        self.transition(AuthState.AUTHENTICATED)
        self.cache.set(self.cache_key, "true")

    def reset(self) -> None:
        """Drop back to anonymous and forget the cached flag."""
        self.transition(AuthState.ANONYMOUS)
        self.session.email = None
        self.cache.remove(self.cache_key)
