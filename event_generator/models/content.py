"""
Canonical section content variants.

Each section type maps to exactly one content model. Unknown section types
use TextContent. Attributes are snake_case; the wire format is camelCase.
"""

from typing import Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting snake_case or camelCase and serializing camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============================================================================
# Speakers
# ============================================================================

class Speaker(CamelModel):
    name: str
    role: str = ""
    bio: str = ""


class SpeakersContent(CamelModel):
    speakers: list[Speaker] = Field(default_factory=list)


# ============================================================================
# Agenda
# ============================================================================

class AgendaItem(CamelModel):
    time: str
    title: str
    description: str = ""
    speaker: str = ""


class AgendaContent(CamelModel):
    items: list[AgendaItem] = Field(default_factory=list)


# ============================================================================
# Registration
# ============================================================================

class RegistrationField(CamelModel):
    name: str
    required: bool = False
    type: str = "text"


class RegistrationContent(CamelModel):
    text: str = "Register for this event"
    button_text: str = "Register Now"
    fields: list[RegistrationField] = Field(default_factory=list)


# ============================================================================
# Location
# ============================================================================

class LocationContent(CamelModel):
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    virtual_link: str = ""
    is_virtual: bool = False
    text: str = ""


# ============================================================================
# FAQ
# ============================================================================

class FAQItem(CamelModel):
    question: str
    answer: str


class FAQContent(CamelModel):
    items: list[FAQItem] = Field(default_factory=list)


# ============================================================================
# Contact
# ============================================================================

class SocialMediaHandle(CamelModel):
    platform: str
    handle: str


class ContactContent(CamelModel):
    email: str = ""
    phone: str = ""
    social_media: list[SocialMediaHandle] = Field(default_factory=list)
    text: str = "Contact us for more information"


# ============================================================================
# Sponsors
# ============================================================================

class Sponsor(CamelModel):
    name: str
    level: str = ""
    description: str = ""


class SponsorsContent(CamelModel):
    sponsors: list[Sponsor] = Field(default_factory=list)


# ============================================================================
# Text (fallback)
# ============================================================================

class TextContent(CamelModel):
    text: str = ""


SectionContent = Union[
    SpeakersContent,
    AgendaContent,
    RegistrationContent,
    LocationContent,
    FAQContent,
    ContactContent,
    SponsorsContent,
    TextContent,
]
