"""
Exceptions raised by the event generation pipeline.

Only validation, transport and parse errors reach the user. Normalization
errors are recovered inside the content normalizer.
"""


class EventGenerationError(Exception):
    """Base exception for event generation."""

    error_type: str = "generation_error"
    user_visible: bool = True
    retryable: bool = False

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error


class PromptValidationError(EventGenerationError):
    """
    Prompt rejected before any model call.

    Causes:
    - Prompt empty or shorter than the configured minimum
    - Prompt contains banned words or keywords
    """

    error_type = "validation_error"


class TransportError(EventGenerationError):
    """
    Model backend unreachable or returned a non-success response.

    Retryable inside the transport adapter only. The orchestrator treats it
    as terminal.
    """

    error_type = "transport_error"

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        original_error: Exception | None = None,
        retryable: bool = False,
    ):
        super().__init__(message, details=details, original_error=original_error)
        self.retryable = retryable


class ResponseParseError(EventGenerationError):
    """No JSON could be extracted from the model response."""

    error_type = "parse_error"


class NormalizationError(EventGenerationError):
    """Section content has a shape no transform can use."""

    error_type = "normalization_error"
    user_visible = False


class ClarificationError(EventGenerationError):
    """
    Clarification answers cannot be applied.

    Causes:
    - No clarification is outstanding
    - Answer keys do not match the outstanding questions
    """

    error_type = "clarification_error"
