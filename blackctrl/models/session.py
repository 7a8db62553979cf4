"""Client-side session state."""

from enum import Enum

from pydantic import BaseModel


class AuthState(str, Enum):
    ANONYMOUS = "anonymous"
    LINK_SENT = "link_sent"
    VERIFYING = "verifying"
    AUTHENTICATED = "authenticated"


class Session:
    """Authentication state of the active client.

    The server keeps the authoritative copy keyed by the session cookie; this
    object is the client's view of it.
    """

    def __init__(self, state: AuthState = AuthState.ANONYMOUS, email: str | None = None):
        self.state = state
        self.email = email

    @property
    def authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    def __repr__(self) -> str:
        return f"Session(state={self.state.value!r})"


class NavigationEvent(BaseModel):
    """Tells the presentation layer where to go after an auth transition."""
    route: str
    reason: str
