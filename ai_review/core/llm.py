"""Model provider selection."""

from typing import Optional

from langchain_openai import ChatOpenAI

from ai_review.config import Settings
from ai_review.core.exceptions import ConfigurationError
from ai_review.core.logging import get_logger
from ai_review.services.reviewer.providers import ProviderClient
from ai_review.services.reviewer.providers.anthropic_provider import AnthropicProvider
from ai_review.services.reviewer.providers.google_provider import GoogleProvider
from ai_review.services.reviewer.providers.openai_provider import OpenAICompatibleProvider

logger = get_logger("llm")

PROVIDER_ADAPTERS = {
    "openai": {
        "adapter": "openai",
        "base_url": None,
    },
    "openrouter": {
        "adapter": "openai",
        "base_url": "https://openrouter.ai/api/v1",
    },
    "deepseek": {
        "adapter": "openai",
        "base_url": "https://api.deepseek.com",
    },
    "x": {
        "adapter": "openai",
        "base_url": "https://api.x.ai/v1",
    },
    "perplexity": {
        "adapter": "openai",
        "base_url": "https://api.perplexity.ai",
    },
    "anthropic": {
        "adapter": "anthropic",
        "base_url": None,
    },
    "google": {
        "adapter": "google",
        "base_url": None,
    },
}


def get_chat_llm(
    model: str,
    api_key: str,
    base_url: Optional[str] = None,
    max_tokens: Optional[int] = None,
) -> ChatOpenAI:
    """Get a chat LLM instance for an OpenAI-compatible endpoint."""
    if base_url:
        logger.info(f"Using custom baseUrl: {base_url}")
    else:
        logger.info("Using default OpenAI API URL")

    return ChatOpenAI(
        model=model,
        api_key=api_key,
        base_url=base_url,
        max_tokens=max_tokens,
    )


def get_provider_client(settings: Settings, provider: Optional[str] = None) -> ProviderClient:
    """Build the adapter for the configured provider."""
    provider = provider or settings.ai_provider
    config = PROVIDER_ADAPTERS.get(provider)
    if config is None:
        raise ConfigurationError(
            f"Unsupported AI provider: {provider}. Supported providers: {', '.join(PROVIDER_ADAPTERS)}"
        )

    api_key = settings.api_key_for(provider)
    model = settings.model_for(provider)
    if not api_key:
        raise ConfigurationError(f"{provider} API key is required.")
    if not model:
        raise ConfigurationError(f"{provider} model is required.")

    logger.info(f"[LLM] Using {provider}: {model}")

    if config["adapter"] == "anthropic":
        return AnthropicProvider(model=model, api_key=api_key, max_tokens=settings.max_completion_tokens)
    if config["adapter"] == "google":
        return GoogleProvider(model=model, api_key=api_key, max_tokens=settings.max_completion_tokens)

    llm = get_chat_llm(
        model=model,
        api_key=api_key,
        base_url=config["base_url"],
        max_tokens=settings.max_completion_tokens,
    )
    return OpenAICompatibleProvider(llm=llm, model=model, name=provider)
