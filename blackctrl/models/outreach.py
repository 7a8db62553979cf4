"""Pydantic models for outreach requests, results and saved history entries.

The API speaks camelCase JSON; models accept either spelling on input and
serialise with camelCase aliases.
"""
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OutreachFormData(CamelModel):
    """Facts about a sales target submitted for generation."""
    target_name: str = ""
    company: str = ""
    landing_page_copy: str = ""
    key_insight: str = ""
    additional_context: str = ""


# Checked in this order; the first blank one is reported.
REQUIRED_FIELDS: tuple[tuple[str, str], ...] = (
    ("target_name", "Target Name"),
    ("company", "Company"),
    ("landing_page_copy", "Landing Page Copy"),
    ("key_insight", "Key Insight or Pain Point"),
)


class Swot(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    strengths: tuple[str, ...] = ()
    weaknesses: tuple[str, ...] = ()
    opportunities: tuple[str, ...] = ()
    threats: tuple[str, ...] = ()


class InternalNotes(CamelModel):
    """Psychological angles, hidden value props and GOAT-tier notes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    angles: tuple[str, ...] = ()
    value_props: tuple[str, ...] = ()
    goat_tier: tuple[str, ...] = ()


class OutreachResult(CamelModel):
    """One generated outreach message with its analysis. Never modified in place."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    outreach_message: str
    swot: Swot = Field(default_factory=Swot)
    internal_notes: InternalNotes = Field(default_factory=InternalNotes)
    company: str
    target_name: str


class SavedMessage(CamelModel):
    """A result promoted to the message history."""
    id: int | str
    target_name: str
    company: str
    outreach_message: str
    created_at: datetime
    swot: Swot | None = None
    internal_notes: InternalNotes | None = None

    @field_validator("created_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        # Naive timestamps from storage are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
