"""
Unit tests for API Pydantic models.

Tests request validation and response serialization.
"""

import pytest
from pydantic import ValidationError

from event_generator.agents.state import ErrorInfo, GenerationOutcome, GenerationState
from event_generator.api.models import (
    ClarificationRequest,
    GenerateEventRequest,
    GenerationResponse,
    HealthResponse,
)
from event_generator.models.content import LocationContent
from event_generator.models.events import (
    CanonicalEvent,
    ClarificationQuestion,
    RejectedSection,
    Section,
)


class TestGenerateEventRequest:
    """Test GenerateEventRequest validation."""

    def test_valid_request(self):
        request = GenerateEventRequest(prompt="Make a workshop about AI")

        assert request.prompt == "Make a workshop about AI"
        assert request.session_id is None

    def test_short_prompt_allowed(self):
        """Length policy is applied by the orchestrator, not the request model."""
        assert GenerateEventRequest(prompt="hi").prompt == "hi"

    def test_prompt_max_length(self):
        with pytest.raises(ValidationError):
            GenerateEventRequest(prompt="x" * 5001)


class TestClarificationRequest:
    def test_valid_answers(self):
        request = ClarificationRequest(answers={"faq.items[0].answer": "Yes"})

        assert request.answers == {"faq.items[0].answer": "Yes"}

    def test_empty_answers_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ClarificationRequest(answers={})

        assert "At least one answer is required" in str(exc_info.value)


class TestGenerationResponse:
    """Test GenerationResponse.from_outcome()."""

    def test_complete_outcome(self):
        event = CanonicalEvent(
            name="AI Workshop",
            title="Intro",
            start_date="2025-06-01T09:00:00",
            sections=[
                Section(
                    type="location",
                    title="Location",
                    content=LocationContent(
                        is_virtual=True,
                        virtual_link="https://zoom.us/j/123",
                        text="https://zoom.us/j/123",
                    ),
                )
            ],
        )
        outcome = GenerationOutcome(
            session_id="s1",
            state=GenerationState.COMPLETE,
            event=event,
            rejected_sections=[RejectedSection(type="weather", reason="not allowed")],
        )

        response = GenerationResponse.from_outcome(outcome)

        assert response.state == "complete"
        assert response.event["startDate"] == "2025-06-01T09:00:00"
        assert response.event["location"] is None
        assert response.event["sections"][0]["content"]["virtualLink"] == "https://zoom.us/j/123"
        assert response.event["sections"][0]["content"]["isVirtual"] is True
        assert response.rejected_sections == [{"type": "weather", "reason": "not allowed"}]
        assert response.error is None

    def test_clarifying_outcome(self):
        outcome = GenerationOutcome(
            session_id="s1",
            state=GenerationState.CLARIFYING_SECTIONS,
            questions=[ClarificationQuestion(field="contact.email", question="Email?")],
        )

        response = GenerationResponse.from_outcome(outcome)

        assert response.state == "clarifying_sections"
        assert response.questions == [{"field": "contact.email", "question": "Email?"}]
        assert response.event is None

    def test_failed_outcome(self):
        outcome = GenerationOutcome(
            session_id="s1",
            state=GenerationState.FAILED,
            error=ErrorInfo(
                error_type="parse_error",
                step="generate_base",
                message="Could not parse model response",
                details={"reason": "Failed to parse model response"},
            ),
        )

        response = GenerationResponse.from_outcome(outcome)

        assert response.error.error_type == "parse_error"
        assert response.error.step == "generate_base"
        assert response.error.details == {"reason": "Failed to parse model response"}


class TestHealthResponse:
    def test_status_literal(self):
        with pytest.raises(ValidationError):
            HealthResponse(status="degraded", version="0.1.0", policy_loaded=True)
