"""
LLM initialization for the event generator.

Provides centralized chat model creation. Uses Anthropic Claude as the
provider behind the model backend.
"""

from langchain_anthropic import ChatAnthropic

from event_generator.config import get_settings

# Model constants for Anthropic Claude
SONNET_MODEL = "claude-sonnet-4-20250514"
HAIKU_MODEL = "claude-3-haiku-20240307"

DEFAULT_MODEL = SONNET_MODEL


def get_llm(
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> ChatAnthropic:
    """
    Get configured Anthropic Claude LLM instance.

    Unset arguments fall back to settings (LLM_MODEL, LLM_TEMPERATURE,
    LLM_MAX_TOKENS), then to DEFAULT_MODEL.

    Args:
        model: Model name. If None, uses the configured or default model.
        temperature: Sampling temperature (0.0-1.0). Event generation
                    defaults to 0.7 for varied section copy.
        max_tokens: Maximum tokens in the response. Section payloads with
                   several content blocks need a few thousand tokens.

    Returns:
        Configured ChatAnthropic instance

    Raises:
        ValueError: If ANTHROPIC_API_KEY is not configured in environment

    Examples:
        >>> llm = get_llm()
        >>> deterministic_llm = get_llm(temperature=0.1)
        >>> fast_llm = get_llm(model=HAIKU_MODEL)
    """
    settings = get_settings()
    api_key = settings.get_llm_api_key()  # Validates key exists

    return ChatAnthropic(
        model=model or settings.llm_model or DEFAULT_MODEL,
        anthropic_api_key=api_key,
        temperature=settings.llm_temperature if temperature is None else temperature,
        max_tokens=max_tokens or settings.llm_max_tokens,
    )

