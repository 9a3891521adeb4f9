"""
Configuration management for the Event Generator.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # LLM Provider
    llm_provider: Literal["anthropic"] = Field(
        default="anthropic",
        description="LLM provider backing the model backend"
    )
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key"
    )
    llm_model: str = Field(
        default="",
        description="Model name override (empty uses the default model)"
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Sampling temperature for event generation"
    )
    llm_max_tokens: int = Field(
        default=4000,
        gt=0,
        description="Maximum tokens per model response"
    )
    llm_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per model call before the transport gives up"
    )

    # Policy
    policy_dir: str = Field(
        default="",
        description="Directory holding policy JSON files (empty uses packaged defaults)"
    )
    min_prompt_length: int = Field(
        default=10,
        ge=1,
        description="Minimum prompt length in characters, after trimming"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )
    max_sessions: int = Field(
        default=1000,
        ge=1,
        description="Sessions kept in memory before the oldest finished one is evicted"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    def get_llm_api_key(self) -> str:
        """
        Get the API key for the configured LLM provider.

        Returns:
            API key for the active LLM provider

        Raises:
            ValueError: If the API key is not configured
        """
        if self.llm_provider == "anthropic":
            if not self.anthropic_api_key:
                raise ValueError(
                    "ANTHROPIC_API_KEY not configured. "
                    "Please set it in your .env file."
                )
            return self.anthropic_api_key
        raise ValueError(f"Unknown LLM provider: {self.llm_provider}")

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        if not self.anthropic_api_key:
            errors.append("ANTHROPIC_API_KEY is required in production.")

        if self.api_reload:
            errors.append("API_RELOAD must be disabled in production.")

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from event_generator.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.min_prompt_length)
    """
    return Settings()
