"""Language-model client.

Prompts go out as a single user message through LiteLLM; the reply text
comes back unchanged, or checked for well-formed JSON when the caller
expects a JSON object.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Protocol

import litellm
from litellm import acompletion

from huddle.core.circuit_breaker import CircuitBreakerOpen, get_circuit_breaker
from huddle.core.config import settings
from huddle.core.exceptions import LLMError

litellm.set_verbose = False  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_llm_circuit_breaker = get_circuit_breaker("llm")


class CompletionClient(Protocol):
    """Anything that turns a prompt into text."""

    async def complete(self, prompt: str, expect_json: bool = False) -> str: ...


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[-1] if "\n" in cleaned else cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned.rsplit("```", 1)[0]
    return cleaned.strip()


class LLMClient:
    """Async client for prompt-in/text-out completions."""

    def __init__(
        self,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        """Initialize LLM client.

        Args:
            model: LiteLLM model string; defaults to ``LLM_MODEL``.
            max_tokens: Completion budget; defaults to ``LLM_MAX_TOKENS``.
            temperature: Sampling temperature; defaults to ``LLM_TEMPERATURE``.
        """
        self._api_key = settings.ANTHROPIC_API_KEY.get_secret_value()
        self._model = model or settings.LLM_MODEL
        self._max_tokens = max_tokens if max_tokens is not None else settings.LLM_MAX_TOKENS
        self._temperature = (
            temperature if temperature is not None else settings.LLM_TEMPERATURE
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, prompt: str, expect_json: bool = False) -> str:
        """Send ``prompt`` and return the reply text.

        Args:
            prompt: Full prompt text.
            expect_json: Request a JSON object and verify the reply parses.
                The returned text then has any code fence removed.

        Returns:
            The model's reply.

        Raises:
            LLMError: If the call fails, the circuit is open, or a JSON
                reply was expected and the text is not a JSON object.
        """
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "api_key": self._api_key,
        }
        if expect_json:
            kwargs["response_format"] = {"type": "json_object"}

        logger.debug(
            "Calling LiteLLM",
            extra={"model": self._model, "prompt_length": len(prompt), "expect_json": expect_json},
        )

        start = time.time()
        try:
            response = await _llm_circuit_breaker.call_async(acompletion, **kwargs)
        except CircuitBreakerOpen as e:
            raise LLMError("model temporarily unavailable") from e
        except Exception as e:
            logger.warning("LLM call failed after %.0f ms: %s", (time.time() - start) * 1000, e)
            raise LLMError(str(e)) from e

        text = str(response.choices[0].message.content or "")
        logger.debug(
            "LLM response received",
            extra={"response_length": len(text), "latency_ms": int((time.time() - start) * 1000)},
        )

        if not expect_json:
            return text

        cleaned = strip_code_fences(text)
        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise LLMError(f"expected a JSON object, got malformed JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise LLMError(f"expected a JSON object, got {type(parsed).__name__}")
        return cleaned
