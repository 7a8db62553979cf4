"""Tagged results returned by the console entry points.

``Ok`` carries the value and an optional user-facing notice; ``Err`` carries the
error kind plus the title and message to show. Both expose ``ok`` so callers
can branch without isinstance checks.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from blackctrl.core.errors import ErrorKind, OutreachError


class Notice(BaseModel):
    """A user-facing notification (title plus description)."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class Ok(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None
    notice: Notice | None = None

    @property
    def ok(self) -> bool:
        return True


class Err(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    title: str
    message: str
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def notice(self) -> Notice:
        return Notice(title=self.title, description=self.message, variant="destructive")

    @classmethod
    def from_error(cls, title: str, error: OutreachError) -> "Err":
        return cls(
            kind=error.kind,
            title=title,
            message=error.message,
            status_code=error.status_code,
        )


Result = Ok | Err
