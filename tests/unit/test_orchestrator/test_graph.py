"""
Unit tests for the generation graph and the session orchestrator.

Runs the compiled graph end to end against a scripted model backend.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from event_generator.agents.state import GenerationState
from event_generator.exceptions import ClarificationError, TransportError
from event_generator.models.content import FAQContent
from event_generator.models.events import ClarificationQuestion
from event_generator.orchestrator import (
    EventGenerationOrchestrator,
    build_generation_graph,
    get_generation_graph,
)

PROMPT = "Make a workshop on June 1 2025 about AI"


class TestGraphStructure:
    """Test graph construction."""

    def test_graph_has_all_nodes(self):
        graph = build_generation_graph()

        nodes = set(graph.get_graph().nodes)

        assert {
            "validate_prompt",
            "generate_base",
            "request_base_clarification",
            "apply_base_answers",
            "generate_sections",
            "request_sections_clarification",
            "apply_section_answers",
            "finalize",
        } <= nodes

    def test_singleton_graph(self):
        assert get_generation_graph() is get_generation_graph()


class TestHappyPath:
    """Prompt to completed event without clarification."""

    @pytest.mark.asyncio
    async def test_completes_in_one_run(
        self, orchestrator, backend, base_payload, sections_payload, clarification_calls
    ):
        backend.queue(base_payload(), sections_payload())

        outcome = await orchestrator.start(PROMPT)

        assert outcome.state == GenerationState.COMPLETE
        assert outcome.session_id == "test-session"
        assert outcome.questions == []
        assert outcome.error is None
        assert outcome.event.title == "Introduction to AI Workshop"
        assert outcome.event.organizer == "Acme"
        assert [s.type for s in outcome.event.sections] == ["speakers", "agenda"]
        assert clarification_calls == []
        assert len(backend.requests) == 2
        assert orchestrator.pending is None

    @pytest.mark.asyncio
    async def test_audit_log_records_each_step(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        backend.queue(base_payload(), sections_payload())

        await orchestrator.start(PROMPT)

        steps = [entry["step"] for entry in orchestrator.audit_log]
        assert steps == ["validate_prompt", "generate_base", "generate_sections", "finalize"]
        stages = [entry["stage"] for entry in orchestrator.audit_log]
        assert GenerationState.AWAITING_SECTIONS in stages

    @pytest.mark.asyncio
    async def test_sections_request_sees_confirmed_base_event(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        backend.queue(base_payload(), sections_payload())

        await orchestrator.start(PROMPT)

        assert "Springfield Library" in backend.requests[1].system_prompt


class TestBaseClarification:
    """Base phase clarification round trips."""

    @pytest.mark.asyncio
    async def test_missing_organizer_asks_then_completes(
        self, orchestrator, backend, base_payload, sections_payload, clarification_calls
    ):
        backend.queue(base_payload(organizer=None))

        outcome = await orchestrator.start(PROMPT)

        expected = [
            ClarificationQuestion(field="organizer", question="Who is organizing this event?")
        ]
        assert outcome.state == GenerationState.CLARIFYING_BASE
        assert outcome.questions == expected
        assert orchestrator.outstanding_questions == expected
        assert clarification_calls == [expected]
        assert len(backend.requests) == 1

        backend.queue(sections_payload())
        outcome = await orchestrator.submit_answers({"organizer": "Acme"})

        assert outcome.state == GenerationState.COMPLETE
        assert outcome.event.organizer == "Acme"
        assert '"organizer": "Acme"' in backend.requests[1].system_prompt
        assert len(clarification_calls) == 1

    @pytest.mark.asyncio
    async def test_partial_answers_ask_again(
        self, orchestrator, backend, base_payload, clarification_calls
    ):
        backend.queue(base_payload(organizer=None, startDate=None))
        await orchestrator.start(PROMPT)

        outcome = await orchestrator.submit_answers({"organizer": "Acme"})

        assert outcome.state == GenerationState.CLARIFYING_BASE
        assert [q.field for q in outcome.questions] == ["startDate"]
        assert len(clarification_calls) == 2
        assert orchestrator.pending.base_event["organizer"] == "Acme"

    @pytest.mark.asyncio
    async def test_async_clarification_callback(
        self, backend, constraint_filter, base_payload
    ):
        received = []

        async def on_clarification(questions):
            received.append([q.field for q in questions])

        orchestrator = EventGenerationOrchestrator(
            backend,
            constraint_filter,
            on_clarification=on_clarification,
            min_prompt_length=10,
        )
        backend.queue(base_payload(organizer=None))

        await orchestrator.start(PROMPT)

        assert received == [["organizer"]]


class TestSectionsClarification:
    """Sections phase clarification round trips."""

    @pytest.mark.asyncio
    async def test_answer_synthesizes_missing_section(
        self, orchestrator, backend, base_payload, sections_payload, clarification_calls
    ):
        backend.queue(
            base_payload(),
            sections_payload(
                missing=[{"field": "faq.items[0].answer", "question": "Is parking available?"}]
            ),
        )

        outcome = await orchestrator.start(PROMPT)

        assert outcome.state == GenerationState.CLARIFYING_SECTIONS
        assert [q.field for q in outcome.questions] == ["faq.items[0].answer"]
        assert len(clarification_calls) == 1

        outcome = await orchestrator.submit_answers({"faq.items[0].answer": "Yes"})

        assert outcome.state == GenerationState.COMPLETE
        faq = outcome.event.sections[-1]
        assert faq.type == "faq"
        assert faq.title == "Faq"
        assert isinstance(faq.content, FAQContent)
        assert faq.content.items[0].answer == "Yes"
        assert faq.content.items[0].question == "Question"
        assert len(backend.requests) == 2

    @pytest.mark.asyncio
    async def test_banned_answer_rejects_section(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        backend.queue(
            base_payload(),
            sections_payload(
                sections=[
                    {"type": "about", "title": "About", "content": "A day of AI talks"},
                    {
                        "type": "faq",
                        "title": "FAQ",
                        "content": [{"question": "Is it worth it?", "answer": ""}],
                    },
                ],
                missing=[{"field": "faq.items[0].answer", "question": "Is it worth it?"}],
            ),
        )
        await orchestrator.start(PROMPT)

        outcome = await orchestrator.submit_answers(
            {"faq.items[0].answer": "It is a scam, bring weapons"}
        )

        assert outcome.state == GenerationState.COMPLETE
        assert [section.type for section in outcome.event.sections] == ["about"]
        assert len(outcome.rejected_sections) == 1
        assert outcome.rejected_sections[0].type == "faq"
        assert outcome.rejected_sections[0].reason == (
            "Section contains banned content: scam, weapons"
        )

    @pytest.mark.asyncio
    async def test_answer_does_not_revive_rejected_section(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        backend.queue(
            base_payload(),
            sections_payload(
                rejected=["sponsors"],
                reasons=["No sponsors confirmed"],
                missing=[{"field": "sponsors[0].name", "question": "Who is sponsoring?"}],
            ),
        )
        await orchestrator.start(PROMPT)

        outcome = await orchestrator.submit_answers({"sponsors[0].name": "Acme"})

        assert outcome.state == GenerationState.COMPLETE
        assert "sponsors" not in [section.type for section in outcome.event.sections]
        assert [entry.type for entry in outcome.rejected_sections] == ["sponsors"]


class TestAnswerValidation:
    """submit_answers() rejects answers that do not fit the session."""

    @pytest.mark.asyncio
    async def test_no_clarification_outstanding(self, orchestrator):
        with pytest.raises(ClarificationError) as exc_info:
            await orchestrator.submit_answers({"organizer": "Acme"})

        assert exc_info.value.message == "No clarification is outstanding"
        assert exc_info.value.details == {"state": "idle"}

    @pytest.mark.asyncio
    async def test_after_completion(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        backend.queue(base_payload(), sections_payload())
        await orchestrator.start(PROMPT)

        with pytest.raises(ClarificationError):
            await orchestrator.submit_answers({"organizer": "Acme"})

        assert orchestrator.state == GenerationState.COMPLETE

    @pytest.mark.asyncio
    async def test_unknown_field_leaves_state_unchanged(
        self, orchestrator, backend, base_payload
    ):
        backend.queue(base_payload(organizer=None))
        await orchestrator.start(PROMPT)
        before = orchestrator.outcome()

        with pytest.raises(ClarificationError) as exc_info:
            await orchestrator.submit_answers({"organizer": "Acme", "venue": "Hall"})

        assert exc_info.value.details == {
            "unknown_fields": ["venue"],
            "outstanding_fields": ["organizer"],
        }
        assert orchestrator.outcome() == before
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_empty_answers(self, orchestrator, backend, base_payload):
        backend.queue(base_payload(organizer=None))
        await orchestrator.start(PROMPT)

        with pytest.raises(ClarificationError):
            await orchestrator.submit_answers({})

        assert orchestrator.state == GenerationState.CLARIFYING_BASE


class TestFailures:
    """Failures end the session in FAILED with an error."""

    @pytest.mark.asyncio
    async def test_short_prompt_never_calls_backend(
        self, orchestrator, backend, clarification_calls
    ):
        outcome = await orchestrator.start("hi")

        assert outcome.state == GenerationState.FAILED
        assert outcome.error.error_type == "validation_error"
        assert backend.requests == []
        assert clarification_calls == []

    @pytest.mark.asyncio
    async def test_banned_prompt_never_calls_backend(self, orchestrator, backend):
        outcome = await orchestrator.start("Organize a weapons expo downtown")

        assert outcome.state == GenerationState.FAILED
        assert outcome.error.message == "Your prompt contains banned content: weapons"
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_transport_failure_discards_analysis(self, orchestrator, backend):
        backend.queue(TransportError("connection refused"))

        outcome = await orchestrator.start(PROMPT)

        assert outcome.state == GenerationState.FAILED
        assert outcome.error.error_type == "transport_error"
        assert outcome.event is None
        assert orchestrator.pending is None

    @pytest.mark.asyncio
    async def test_parse_failure_in_sections_phase(self, orchestrator, backend, base_payload):
        backend.queue(base_payload(), "No JSON here, sorry")

        outcome = await orchestrator.start(PROMPT)

        assert outcome.state == GenerationState.FAILED
        assert outcome.error.error_type == "parse_error"
        assert outcome.error.step == "generate_sections"

    @pytest.mark.asyncio
    async def test_start_after_failure(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        await orchestrator.start("hi")
        backend.queue(base_payload(), sections_payload())

        outcome = await orchestrator.start(PROMPT)

        assert outcome.state == GenerationState.COMPLETE
        assert outcome.error is None


class TestSessionLifecycle:
    """New prompts, resets and superseded runs."""

    @pytest.mark.asyncio
    async def test_new_prompt_discards_pending_analysis(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        backend.queue(base_payload(organizer=None))
        await orchestrator.start(PROMPT)

        backend.queue(base_payload(name="Second Workshop"), sections_payload())
        outcome = await orchestrator.start("Make a second workshop on July 1 2025")

        assert outcome.state == GenerationState.COMPLETE
        assert outcome.event.name == "Second Workshop"
        assert backend.requests[1].user_prompt == "Make a second workshop on July 1 2025"

    @pytest.mark.asyncio
    async def test_reset_returns_to_idle(self, orchestrator, backend, base_payload):
        backend.queue(base_payload(organizer=None))
        await orchestrator.start(PROMPT)

        orchestrator.reset()

        assert orchestrator.state == GenerationState.IDLE
        assert orchestrator.pending is None
        assert orchestrator.outstanding_questions == []
        assert orchestrator.audit_log == []

    @pytest.mark.asyncio
    async def test_superseded_run_results_are_dropped(
        self, orchestrator, backend, base_payload, sections_payload
    ):
        gate = asyncio.Event()

        async def slow_base(request):
            await gate.wait()
            return base_payload(name="Stale Workshop")

        backend.queue(slow_base, base_payload(name="Fresh Workshop"), sections_payload())

        first = asyncio.create_task(orchestrator.start(PROMPT))
        while not backend.requests:
            await asyncio.sleep(0)

        fresh = await orchestrator.start("Make a fresh workshop on July 1 2025")
        gate.set()
        stale = await first

        assert fresh.state == GenerationState.COMPLETE
        assert fresh.event.name == "Fresh Workshop"
        assert stale.event.name == "Fresh Workshop"
        assert orchestrator.event.name == "Fresh Workshop"

    def test_session_id_generated(self, backend, constraint_filter):
        orchestrator = EventGenerationOrchestrator(
            backend, constraint_filter, min_prompt_length=10
        )

        assert orchestrator.session_id
        assert orchestrator.state == GenerationState.IDLE

    @pytest.mark.asyncio
    async def test_min_prompt_length_from_settings(self, backend, constraint_filter):
        settings = MagicMock()
        settings.min_prompt_length = 50

        with patch("event_generator.config.get_settings", return_value=settings):
            orchestrator = EventGenerationOrchestrator(backend, constraint_filter)

        outcome = await orchestrator.start(PROMPT)

        assert outcome.state == GenerationState.FAILED
        assert outcome.error.details["min_length"] == 50
