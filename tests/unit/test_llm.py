"""
Unit tests for event_generator/agents/llm.py

Tests chat model construction from settings and explicit overrides.
"""

from unittest.mock import MagicMock, patch

import pytest

from event_generator.agents.llm import (
    DEFAULT_MODEL,
    HAIKU_MODEL,
    SONNET_MODEL,
    get_llm,
)


def _mock_settings(model: str = "", temperature: float = 0.7, max_tokens: int = 4000):
    settings = MagicMock()
    settings.get_llm_api_key.return_value = "sk-ant-test-key"
    settings.llm_model = model
    settings.llm_temperature = temperature
    settings.llm_max_tokens = max_tokens
    return settings


class TestModelConstants:
    """Test that model constants are correctly defined."""

    def test_model_selection_aliases(self):
        assert DEFAULT_MODEL == SONNET_MODEL
        assert HAIKU_MODEL != SONNET_MODEL


class TestGetLLM:
    """Test get_llm() with settings defaults and overrides."""

    @patch("event_generator.agents.llm.ChatAnthropic")
    @patch("event_generator.agents.llm.get_settings")
    def test_get_llm_uses_settings_defaults(self, mock_get_settings, mock_chat_anthropic):
        mock_get_settings.return_value = _mock_settings()
        mock_llm_instance = MagicMock()
        mock_chat_anthropic.return_value = mock_llm_instance

        result = get_llm()

        mock_chat_anthropic.assert_called_once_with(
            model=DEFAULT_MODEL,
            anthropic_api_key="sk-ant-test-key",
            temperature=0.7,
            max_tokens=4000,
        )
        assert result == mock_llm_instance

    @patch("event_generator.agents.llm.ChatAnthropic")
    @patch("event_generator.agents.llm.get_settings")
    def test_get_llm_uses_configured_model(self, mock_get_settings, mock_chat_anthropic):
        mock_get_settings.return_value = _mock_settings(model="claude-custom")

        get_llm()

        assert mock_chat_anthropic.call_args.kwargs["model"] == "claude-custom"

    @patch("event_generator.agents.llm.ChatAnthropic")
    @patch("event_generator.agents.llm.get_settings")
    def test_get_llm_explicit_arguments_win(self, mock_get_settings, mock_chat_anthropic):
        mock_get_settings.return_value = _mock_settings(model="claude-custom")

        get_llm(model=HAIKU_MODEL, temperature=0.0, max_tokens=1024)

        mock_chat_anthropic.assert_called_once_with(
            model=HAIKU_MODEL,
            anthropic_api_key="sk-ant-test-key",
            temperature=0.0,
            max_tokens=1024,
        )

    @patch("event_generator.agents.llm.get_settings")
    def test_get_llm_missing_api_key(self, mock_get_settings):
        settings = _mock_settings()
        settings.get_llm_api_key.side_effect = ValueError(
            "ANTHROPIC_API_KEY not configured. Please set it in your .env file."
        )
        mock_get_settings.return_value = settings

        with pytest.raises(ValueError) as exc_info:
            get_llm()

        assert "ANTHROPIC_API_KEY not configured" in str(exc_info.value)

