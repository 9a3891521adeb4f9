"""Sections phase prompt with per-type content shapes."""

import json
from typing import Any

from event_generator.agents.backend import ModelRequest
from event_generator.models.policy import PolicyData

SECTIONS_SYSTEM_PROMPT = """You are an AI assistant that writes content sections for an event page.

The event's top-level details are already confirmed:
{base_event}

Your task: Generate the content sections the user asked for, or that clearly suit this event.

RESPONSE FORMAT:
Respond with a single valid JSON object inside a ```json fenced block:
{{
  "sections": [
    {{"type": "section_type", "title": "Section title", "content": {{}}}}
  ],
  "analysisSummary": {{
    "requestedSections": ["sections", "the", "user", "asked", "for"],
    "rejectedSections": ["sections", "you", "did", "not", "generate"],
    "rejectionReasons": ["one reason per rejected section, same order"],
    "missingInformation": [
      {{"field": "sectionType.path", "question": "Question to ask the user"}}
    ]
  }}
}}

CONSTRAINTS:
- Only include sections among: {allowed_sections}
- Reject sections related to: {banned_keywords}
- Never use these words: {banned_words}
- Section types are lowercase tags from the allowed list.

CONTENT SHAPES (one per section type):
{content_examples}

MISSING INFORMATION:
- Use a field path of "<sectionType>.<path>", with [index] for list items,
  e.g. "speakers.speakers[0].bio" or "faq.items[2].answer".
- Only ask about details the user must supply; write sensible copy for the rest."""


SECTION_CONTENT_EXAMPLES: dict[str, Any] = {
    "about": {"text": "What the event is and who it is for"},
    "speakers": {
        "speakers": [{"name": "Jane Smith", "role": "Keynote", "bio": "Short bio"}]
    },
    "agenda": {
        "items": [
            {
                "time": "09:00",
                "title": "Opening",
                "description": "Welcome and introductions",
                "speaker": "Jane Smith",
            }
        ]
    },
    "registration": {
        "text": "Register for this event",
        "buttonText": "Register Now",
        "fields": [
            {"name": "Full Name", "required": True, "type": "text"},
            {"name": "Email", "required": True, "type": "email"},
        ],
    },
    "location": {
        "address": "123 Main St",
        "city": "Springfield",
        "state": "IL",
        "zipCode": "62701",
        "virtualLink": "",
        "isVirtual": False,
        "text": "Main hall, second floor",
    },
    "faq": {"items": [{"question": "Is parking available?", "answer": "Yes, on site."}]},
    "contact": {
        "email": "events@example.com",
        "phone": "555-123-4567",
        "socialMedia": [{"platform": "Twitter", "handle": "@example"}],
        "text": "Contact us for more information",
    },
    "sponsors": {
        "sponsors": [{"name": "Acme", "level": "Gold", "description": "Platform sponsor"}]
    },
}


def _format_list(values: list[str]) -> str:
    return ", ".join(values) if values else "(none)"


def build_sections_request(
    prompt: str,
    base_event: dict[str, Any],
    constraints: PolicyData,
) -> ModelRequest:
    """Build the sections phase request.

    Args:
        prompt: The user's original event description
        base_event: Confirmed base event fields, embedded as JSON context
        constraints: Policy snapshot taken when the run started

    Returns:
        ModelRequest for the sections phase
    """
    allowed = [section.lower() for section in constraints.allowed_sections]

    # Content shapes for allowed types only; unknown types are plain text
    examples_text = ""
    for section_type in allowed:
        example = SECTION_CONTENT_EXAMPLES.get(section_type, {"text": "Section text"})
        examples_text += f"- {section_type}: {json.dumps(example)}\n"

    system = SECTIONS_SYSTEM_PROMPT.format(
        base_event=json.dumps(base_event, indent=2, ensure_ascii=False, default=str),
        allowed_sections=_format_list(allowed),
        banned_keywords=_format_list(constraints.banned_keywords),
        banned_words=_format_list(constraints.banned_words),
        content_examples=examples_text.rstrip() or "(none)",
    )

    return ModelRequest(system_prompt=system, user_prompt=prompt)
