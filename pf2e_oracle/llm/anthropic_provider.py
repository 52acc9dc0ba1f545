"""
Anthropic API Provider

Uses the Anthropic SDK for direct API access.
Requires ANTHROPIC_API_KEY environment variable.
"""

import os
import time
from typing import Optional

import anthropic

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import LLMResponseError, LLMUnavailableError
from pf2e_oracle.llm.provider import LLMConfig, LLMProvider, LLMResponse

logger = get_logger("llm.anthropic")


class AnthropicProvider(LLMProvider):
    """
    LLM provider using the Anthropic API directly.

    Configuration:
        model: Model to use (default: claude-3-5-haiku-latest)

    Environment:
        ANTHROPIC_API_KEY: Required API key
    """

    def __init__(self, config: Optional[dict] = None, client: Optional[anthropic.Anthropic] = None):
        self._config = config or {}
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return self._config.get("model") or "claude-3-5-haiku-latest"

    def is_available(self) -> bool:
        """Check if API key is set and client can be created."""
        if self._client is not None:
            return True

        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            return False

        try:
            self._client = anthropic.Anthropic(api_key=api_key)
            return True
        except anthropic.AnthropicError as e:
            logger.debug(f"Failed to create Anthropic client: {e}")
            return False

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        config: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """Generate completion using Anthropic API."""
        if self._client is None and not self.is_available():
            raise LLMUnavailableError("Anthropic provider not available (ANTHROPIC_API_KEY not set)")

        config = config or LLMConfig()
        model = config.model or self.default_model

        request = {
            "model": model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": config.timeout,
        }
        if system:
            request["system"] = system

        start_time = time.time()
        try:
            response = self._client.messages.create(**request)
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise LLMResponseError(f"Anthropic API error: {e}") from e

        latency_ms = (time.time() - start_time) * 1000

        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        if not text:
            raise LLMResponseError("Anthropic returned empty response")

        tokens_used = 0
        if getattr(response, "usage", None) is not None:
            tokens_used = response.usage.input_tokens + response.usage.output_tokens

        return LLMResponse(
            text=text,
            model=model,
            tokens_used=tokens_used,
            latency_ms=latency_ms,
            provider=self.name,
        )
