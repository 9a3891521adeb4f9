"""
Canonical event record and clarification wire shapes.
"""

from typing import Optional

from pydantic import Field

from event_generator.models.content import CamelModel, SectionContent, TextContent


class Section(CamelModel):
    """Content block of an event; `type` is the canonical lowercase tag."""

    type: str
    title: str
    content: SectionContent = Field(default_factory=TextContent)


class CanonicalEvent(CamelModel):
    """Fully normalized, policy-compliant event record."""

    name: str = ""
    title: str = ""
    description: str = ""
    start_date: str = ""  # ISO 8601
    end_date: str = ""  # ISO 8601
    location: Optional[str] = None
    organizer: Optional[str] = None
    sections: list[Section] = Field(default_factory=list)


class ClarificationQuestion(CamelModel):
    """Question about one missing field, addressed by dotted/indexed path."""

    field: str
    question: str


class RejectedSection(CamelModel):
    """Section dropped by policy, with the reason it was dropped."""

    type: str
    reason: str


# Field path -> answer text
ClarificationAnswers = dict[str, str]
