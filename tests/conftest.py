"""
Pytest configuration and fixtures for event generator tests.

Provides policy fixtures, a scripted model backend, and builders for the
model response envelopes of both generation phases.
"""

import inspect
import json
from typing import Any, Callable

import pytest

from event_generator.agents.backend import ModelRequest
from event_generator.exceptions import TransportError
from event_generator.models.policy import PolicyData
from event_generator.orchestrator import EventGenerationOrchestrator
from event_generator.services.constraints import ConstraintFilter


# =============================================================================
# Scripted Model Backend
# =============================================================================


def fenced_json(payload: Any) -> str:
    """Wrap a payload the way models usually answer: prose plus a json fence."""
    return f"Here is the event data:\n```json\n{json.dumps(payload)}\n```\nLet me know!"


class ScriptedBackend:
    """
    Model backend returning queued responses in order.

    A queued item may be a string (returned as-is), a dict or list (returned
    as a fenced JSON block), an exception (raised), or a callable taking the
    request (sync or async) whose result is treated the same way.
    """

    def __init__(self, responses: list[Any] | None = None):
        self.responses = list(responses or [])
        self.requests: list[ModelRequest] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def generate(self, request: ModelRequest) -> str:
        self.requests.append(request)
        if not self.responses:
            raise TransportError("No scripted response left")

        response = self.responses.pop(0)
        if callable(response) and not isinstance(response, type):
            response = response(request)
            if inspect.isawaitable(response):
                response = await response

        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return response
        return fenced_json(response)


# =============================================================================
# Response Envelope Builders
# =============================================================================


DEFAULT_BASE_EVENT = {
    "name": "AI Workshop",
    "title": "Introduction to AI Workshop",
    "description": "A hands-on workshop about artificial intelligence",
    "startDate": "2025-06-01T09:00:00",
    "endDate": "2025-06-01T17:00:00",
    "location": "Springfield Library",
    "organizer": "Acme",
}


def build_base_payload(
    missing: list[dict] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """Base phase envelope; an override of None removes that field."""
    event = {**DEFAULT_BASE_EVENT, **overrides}
    event = {key: value for key, value in event.items() if value is not None}
    return {
        "event": event,
        "analysisSummary": {"missingInformation": missing or []},
    }


def build_sections_payload(
    sections: list[dict] | None = None,
    missing: list[dict] | None = None,
    rejected: list[str] | None = None,
    reasons: list[str] | dict[str, str] | None = None,
) -> dict[str, Any]:
    """Sections phase envelope."""
    if sections is None:
        sections = [
            {
                "type": "speakers",
                "title": "Speakers",
                "content": "John Doe, Jane Smith",
            },
            {
                "type": "agenda",
                "title": "Agenda",
                "content": "09:00 - Opening\n10:00 - Hands-on lab",
            },
        ]
    return {
        "sections": sections,
        "analysisSummary": {
            "requestedSections": [section.get("type") for section in sections],
            "rejectedSections": rejected or [],
            "rejectionReasons": reasons if reasons is not None else [],
            "missingInformation": missing or [],
        },
    }


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def policy() -> PolicyData:
    """Policy with organizer required, matching the packaged section list."""
    return PolicyData(
        allowed_sections=[
            "about",
            "speakers",
            "agenda",
            "registration",
            "location",
            "faq",
            "contact",
            "sponsors",
        ],
        banned_words=["scam", "hate", "violence"],
        banned_keywords=["gambling", "weapons"],
        required_fields=["name", "title", "description", "startDate", "endDate", "organizer"],
    )


@pytest.fixture
def constraint_filter(policy: PolicyData) -> ConstraintFilter:
    """Initialized constraint filter over the policy fixture."""
    return ConstraintFilter.from_policy(policy)


@pytest.fixture
def backend() -> ScriptedBackend:
    """Empty scripted backend; tests queue responses."""
    return ScriptedBackend()


@pytest.fixture
def clarification_calls() -> list:
    """Records every on_clarification callback invocation."""
    return []


@pytest.fixture
def orchestrator(
    backend: ScriptedBackend,
    constraint_filter: ConstraintFilter,
    clarification_calls: list,
) -> EventGenerationOrchestrator:
    """Orchestrator wired to the scripted backend and policy fixture."""
    return EventGenerationOrchestrator(
        backend,
        constraint_filter,
        session_id="test-session",
        on_clarification=clarification_calls.append,
        min_prompt_length=10,
    )


@pytest.fixture
def base_payload() -> Callable[..., dict[str, Any]]:
    return build_base_payload


@pytest.fixture
def sections_payload() -> Callable[..., dict[str, Any]]:
    return build_sections_payload


@pytest.fixture
def scripted_backend_factory() -> Callable[..., ScriptedBackend]:
    return ScriptedBackend
