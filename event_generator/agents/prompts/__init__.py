"""Prompt templates for the event generation phases."""

from event_generator.agents.prompts.base_prompts import (
    BASE_SYSTEM_PROMPT,
    build_base_request,
)
from event_generator.agents.prompts.sections_prompts import (
    SECTION_CONTENT_EXAMPLES,
    SECTIONS_SYSTEM_PROMPT,
    build_sections_request,
)

__all__ = [
    "BASE_SYSTEM_PROMPT",
    "build_base_request",
    "SECTIONS_SYSTEM_PROMPT",
    "SECTION_CONTENT_EXAMPLES",
    "build_sections_request",
]
