"""
LLM Provider Interface

Rules chat needs two things from a model: a short, deterministic rewrite
of the user's question into an English search query, and a grounded
answer under a fixed system prompt. Providers implement generate();
ask() is the text-only convenience the chat service uses.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from pf2e_oracle.configs.constants import get_timeout


@dataclass
class LLMConfig:
    """Sampling settings for one request."""

    model: Optional[str] = None  # Use provider default if None
    max_tokens: int = 1000
    temperature: float = 0.3
    timeout: float = get_timeout("llm_request")


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    text: str
    model: str
    tokens_used: int = 0
    latency_ms: float = 0.0
    provider: str = ""


class LLMProvider(ABC):
    """A chat model reachable through some backend."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and identification."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """True if the provider is configured and reachable."""
        pass

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        config: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """
        Send one user turn, optionally under a system prompt.

        Args:
            prompt: The user message
            system: Instructions that frame the whole exchange
            config: Sampling overrides

        Raises:
            LLMUnavailableError: If the backend cannot be reached
            LLMResponseError: If the backend fails or returns nothing
        """
        pass

    def ask(self, prompt: str, system: Optional[str] = None, config: Optional[LLMConfig] = None) -> str:
        """Return only the generated text, stripped."""
        return self.generate(prompt, system=system, config=config).text.strip()
