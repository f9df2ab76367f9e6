"""Configuration for the AI Review action."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ai_review.core.exceptions import ConfigurationError

SUPPORTED_PROVIDERS = ("openai", "anthropic", "google", "deepseek", "openrouter", "x", "perplexity")


class Settings(BaseSettings):
    """Action inputs, read from the ``INPUT_*`` variables GitHub exports."""

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime
    debug: bool = False
    github_actions: bool = Field(default=False, validation_alias="GITHUB_ACTIONS")

    # Pull request
    token: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    pr_number: Optional[int] = None

    # LLM providers
    ai_provider: str = "openai"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4.1"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    google_api_key: Optional[str] = None
    google_model: str = "gemini-2.5-flash"
    deepseek_api_key: Optional[str] = None
    deepseek_model: str = "deepseek-chat"
    openrouter_api_key: Optional[str] = None
    openrouter_model: str = "anthropic/claude-sonnet-4"
    x_api_key: Optional[str] = None
    x_model: str = "grok-3"
    perplexity_api_key: Optional[str] = None
    perplexity_model: str = "sonar-reasoning-pro"

    # Changed-file filtering (comma-separated)
    include_extensions: str = ""
    exclude_extensions: str = ""
    include_paths: str = ""
    exclude_paths: str = ""

    # Behaviour
    fail_action_if_review_failed: bool = False
    review_rules_file: Optional[str] = None
    enable_file_edits: bool = False

    # Review loop tuning
    max_review_iterations: int = Field(default=142, ge=1)
    max_cache_entries: int = Field(default=1000, ge=1)
    line_span: int = Field(default=20, ge=0)
    max_file_size_bytes: int = Field(default=1024 * 1024, ge=1)
    max_review_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    max_completion_tokens: int = Field(default=8192, ge=1)

    @field_validator("ai_provider")
    @classmethod
    def normalize_provider(cls, value: str) -> str:
        return value.strip().lower()

    def api_key_for(self, provider: str) -> Optional[str]:
        """Return the API key configured for a provider."""
        return getattr(self, f"{provider}_api_key", None)

    def model_for(self, provider: str) -> Optional[str]:
        """Return the model configured for a provider."""
        return getattr(self, f"{provider}_model", None)

    def validate_inputs(self) -> None:
        """Check that every input a review run needs is present.

        Raises:
            ConfigurationError: If an input is missing or unsupported
        """
        if not self.repo:
            raise ConfigurationError("Repository name is required.")
        if not self.owner:
            raise ConfigurationError("Owner name is required.")
        if not self.pr_number or self.pr_number < 1:
            raise ConfigurationError("Pull request number must be a valid number.")
        if not self.token:
            raise ConfigurationError("GitHub token is required.")
        if not self.ai_provider:
            raise ConfigurationError("AI provider is required.")
        if self.ai_provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported AI provider: {self.ai_provider}. "
                f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
            )
        if not self.api_key_for(self.ai_provider):
            raise ConfigurationError(f"{self.ai_provider} API key is required.")
        if not self.model_for(self.ai_provider):
            raise ConfigurationError(f"{self.ai_provider} model is required.")


settings = Settings()
