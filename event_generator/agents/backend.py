"""
Model backend protocol and the LangChain chat model adapter.

The orchestrator only sees `await backend.generate(request)` returning text,
or a TransportError. Retries, provider envelopes and timeouts stay here.
"""

import logging
from typing import Any, Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from event_generator.exceptions import TransportError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (408, 429, 500, 502, 503, 504, 529)


class ModelRequest(BaseModel):
    """Prompt pair sent to the model backend."""

    system_prompt: str
    user_prompt: str


class ModelBackend(Protocol):
    """
    Protocol for model backends.

    Implementations return the model's text with any provider envelope
    already unwrapped, or raise TransportError.
    """

    async def generate(self, request: ModelRequest) -> str:
        ...


def _is_retryable_error(exception: BaseException) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(exception, TransportError):
        return exception.retryable
    status = getattr(exception, "status_code", None)
    if status is not None:
        return status in RETRYABLE_STATUS_CODES
    return isinstance(exception, (ConnectionError, TimeoutError))


def unwrap_content(response: Any) -> str:
    """
    Extract text from a chat model response.

    Handles plain strings, message objects whose content is a string, and
    content given as a list of text blocks.
    """
    content = getattr(response, "content", response)

    if isinstance(content, str):
        return content

    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)

    return str(content)


class ChatModelBackend:
    """
    Model backend backed by a LangChain chat model.

    Provides:
    - System/user message construction
    - Retry with exponential backoff on transient failures
    - Provider envelope unwrapping
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        max_attempts: int | None = None,
        wait: wait_base | None = None,
    ):
        """
        Initialize the backend.

        Args:
            llm: Chat model to call. If None, built from settings via get_llm().
            max_attempts: Attempts per request. If None, LLM_MAX_ATTEMPTS.
            wait: Tenacity wait strategy between attempts.
        """
        if llm is None or max_attempts is None:
            from event_generator.config import get_settings

            settings = get_settings()
            max_attempts = max_attempts or settings.llm_max_attempts

        if llm is None:
            from event_generator.agents.llm import get_llm

            llm = get_llm()

        self._llm = llm
        self._max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    async def generate(self, request: ModelRequest) -> str:
        """
        Send the prompt pair and return the model's text.

        Raises:
            TransportError: If the model cannot be reached after all retries
        """
        messages = [
            SystemMessage(content=request.system_prompt),
            HumanMessage(content=request.user_prompt),
        ]

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=self._wait,
                retry=retry_if_exception(_is_retryable_error),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            f"Retrying model call (attempt {attempt.retry_state.attempt_number})"
                        )
                    response = await self._llm.ainvoke(messages)
        except TransportError:
            raise
        except Exception as e:
            logger.error(f"Model backend call failed: {e}", exc_info=True)
            raise TransportError(
                "Failed to generate event content",
                details={"exception": str(e)},
                original_error=e,
            ) from e

        text = unwrap_content(response)
        logger.debug(f"Model backend returned {len(text)} characters")
        return text
