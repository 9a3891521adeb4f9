"""Domain models for generated events and policy data."""

from event_generator.models.content import (
    AgendaContent,
    AgendaItem,
    CamelModel,
    ContactContent,
    FAQContent,
    FAQItem,
    LocationContent,
    RegistrationContent,
    RegistrationField,
    SectionContent,
    SocialMediaHandle,
    Speaker,
    SpeakersContent,
    Sponsor,
    SponsorsContent,
    TextContent,
)
from event_generator.models.events import (
    CanonicalEvent,
    ClarificationAnswers,
    ClarificationQuestion,
    RejectedSection,
    Section,
)
from event_generator.models.policy import BannedContentCheck, PolicyData

__all__ = [
    # Content variants
    "CamelModel",
    "Speaker",
    "SpeakersContent",
    "AgendaItem",
    "AgendaContent",
    "RegistrationField",
    "RegistrationContent",
    "LocationContent",
    "FAQItem",
    "FAQContent",
    "SocialMediaHandle",
    "ContactContent",
    "Sponsor",
    "SponsorsContent",
    "TextContent",
    "SectionContent",
    # Event
    "Section",
    "CanonicalEvent",
    "ClarificationQuestion",
    "ClarificationAnswers",
    "RejectedSection",
    # Policy
    "PolicyData",
    "BannedContentCheck",
]
