"""
Ollama Provider

Uses the Ollama local LLM server for generation.
No API key required - runs entirely locally.
"""

import time
from typing import Optional

import requests

from pf2e_oracle.configs.logging import get_logger
from pf2e_oracle.exceptions import LLMResponseError, LLMUnavailableError
from pf2e_oracle.llm.provider import LLMConfig, LLMProvider, LLMResponse

logger = get_logger("llm.ollama")


class OllamaProvider(LLMProvider):
    """
    LLM provider using Ollama local server.

    Configuration:
        model: Model to use (default: llama3.2)
        base_url: Ollama server URL (default: http://localhost:11434)
    """

    def __init__(self, config: Optional[dict] = None):
        self._config = config or {}
        self._base_url = self._config.get("base_url", "http://localhost:11434").rstrip("/")

    @property
    def name(self) -> str:
        return "ollama"

    @property
    def default_model(self) -> str:
        return self._config.get("model") or "llama3.2"

    def is_available(self) -> bool:
        """Check if Ollama server is running and has a model installed."""
        try:
            response = requests.get(f"{self._base_url}/api/tags", timeout=5)
            response.raise_for_status()
            if response.json().get("models"):
                return True
            logger.debug("Ollama running but no models installed")
            return False
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.debug(f"Ollama not reachable: {e}")
            return False

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        config: Optional[LLMConfig] = None,
    ) -> LLMResponse:
        """Generate completion using Ollama API."""
        config = config or LLMConfig()
        model = config.model or self.default_model

        payload = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": config.temperature,
                "num_predict": config.max_tokens,
            },
        }
        if system:
            payload["system"] = system

        start_time = time.time()
        try:
            response = requests.post(f"{self._base_url}/api/generate", json=payload, timeout=config.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Ollama connection error: {e}")
            raise LLMUnavailableError(f"Ollama not reachable at {self._base_url}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Ollama HTTP error: {e}")
            raise LLMResponseError(f"Ollama API error: {e}") from e
        except ValueError as e:
            raise LLMResponseError("Ollama returned invalid JSON") from e

        latency_ms = (time.time() - start_time) * 1000

        text = data.get("response", "")
        if not text:
            raise LLMResponseError("Ollama returned empty response")

        tokens_used = 0
        if "prompt_eval_count" in data and "eval_count" in data:
            tokens_used = data["prompt_eval_count"] + data["eval_count"]

        return LLMResponse(
            text=text,
            model=model,
            tokens_used=tokens_used,
            latency_ms=latency_ms,
            provider=self.name,
        )
