"""
LLM Provider Abstraction

Unified interface for LLM providers with fallback chain support.
Used to answer rules questions over retrieved passages.
"""

from typing import Optional

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import LLMUnavailableError
from pf2e_oracle.llm.anthropic_provider import AnthropicProvider
from pf2e_oracle.llm.ollama_provider import OllamaProvider
from pf2e_oracle.llm.provider import LLMConfig, LLMProvider, LLMResponse

logger = get_logger("llm")

__all__ = [
    "LLMProvider",
    "LLMConfig",
    "LLMResponse",
    "AnthropicProvider",
    "OllamaProvider",
    "get_provider",
]


def _create_provider(name: str, llm_config: dict) -> LLMProvider:
    """Create a provider instance by name."""
    if name == "anthropic":
        return AnthropicProvider({"model": llm_config.get("model"), **llm_config.get("anthropic", {})})
    if name == "ollama":
        return OllamaProvider(llm_config.get("ollama", {}))
    raise ValueError(f"Unknown provider: {name}")


def get_provider(config: Optional[dict] = None) -> LLMProvider:
    """
    Get an LLM provider based on configuration.

    Tries the primary provider first, then the fallback chain.

    Args:
        config: Configuration dict with an 'llm' section containing:
            - provider: str (anthropic, ollama)
            - fallback_chain: list[str] of provider names to try next

    Returns:
        An available LLMProvider instance

    Raises:
        LLMUnavailableError: If no provider is available
    """
    config = config or {}
    llm_config = config.get("llm", {})

    primary = llm_config.get("provider", "anthropic")
    fallback_chain = llm_config.get("fallback_chain", ["ollama"])
    providers_to_try = [primary] + [p for p in fallback_chain if p != primary]

    for provider_name in providers_to_try:
        try:
            provider = _create_provider(provider_name, llm_config)
        except ValueError as e:
            logger.warning(str(e))
            continue
        if provider.is_available():
            logger.info(f"Using LLM provider: {provider.name}")
            return provider
        logger.debug(f"Provider {provider_name} not available, trying next")

    raise LLMUnavailableError(
        "No LLM providers available. Configure anthropic (ANTHROPIC_API_KEY) or run ollama locally"
    )
