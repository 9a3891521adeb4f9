"""
Integration test fixtures for the event generator.

Provides a mocked chat model behind the real ChatModelBackend, policy
directories loaded through JsonPolicyLoader, and orchestrator setup for
testing complete workflows with real graph execution.
"""

import json
import shutil
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage
from tenacity import wait_none

from event_generator.agents.backend import ChatModelBackend
from event_generator.orchestrator import EventGenerationOrchestrator
from event_generator.services.constraints import (
    DEFAULT_POLICY_DIR,
    EVENT_SCHEMA_FILE,
    ConstraintFilter,
    JsonPolicyLoader,
)


# =============================================================================
# Pytest Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )


# =============================================================================
# Mock Chat Model
# =============================================================================


@pytest.fixture
def mock_llm_factory() -> Callable[..., MagicMock]:
    """
    Factory for a chat model mock answering with the given responses in order.

    Strings become AIMessage content; exceptions are raised.
    """

    def _create(*responses: Any) -> MagicMock:
        side_effect = [
            AIMessage(content=response) if isinstance(response, str) else response
            for response in responses
        ]
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=side_effect)
        return llm

    return _create


@pytest.fixture
def backend_factory() -> Callable[[MagicMock], ChatModelBackend]:
    """Real transport adapter around a mocked chat model, without retry waits."""

    def _create(llm: MagicMock, max_attempts: int = 3) -> ChatModelBackend:
        return ChatModelBackend(llm=llm, max_attempts=max_attempts, wait=wait_none())

    return _create


# =============================================================================
# Policy Fixtures
# =============================================================================


@pytest.fixture
def packaged_filter() -> ConstraintFilter:
    """Constraint filter over the policy files shipped with the package."""
    constraint_filter = ConstraintFilter()
    assert constraint_filter.initialize()
    return constraint_filter


@pytest.fixture
def organizer_policy_dir(tmp_path: Path) -> Path:
    """Copy of the packaged policy with organizer added to the required fields."""
    policy_dir = tmp_path / "policy"
    shutil.copytree(DEFAULT_POLICY_DIR, policy_dir)

    schema_path = policy_dir / EVENT_SCHEMA_FILE
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    schema["required"] = [*schema["required"], "organizer"]
    schema_path.write_text(json.dumps(schema), encoding="utf-8")
    return policy_dir


@pytest.fixture
def organizer_filter(organizer_policy_dir: Path) -> ConstraintFilter:
    constraint_filter = ConstraintFilter(JsonPolicyLoader(organizer_policy_dir))
    assert constraint_filter.initialize()
    return constraint_filter


# =============================================================================
# Orchestrator Fixtures
# =============================================================================


@pytest.fixture
def notifications() -> list:
    return []


@pytest.fixture
def orchestrator_factory(notifications: list) -> Callable[..., EventGenerationOrchestrator]:
    def _create(backend, constraint_filter) -> EventGenerationOrchestrator:
        return EventGenerationOrchestrator(
            backend,
            constraint_filter,
            session_id="integration-session",
            on_clarification=notifications.append,
            min_prompt_length=10,
        )

    return _create
