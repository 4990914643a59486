"""LLM adapters for marketing analysis generation.

Provides a base interface, an adapter for OpenAI-compatible chat APIs and a
deterministic mock for local runs. Transport failures are translated into the
adapter exception hierarchy below so callers never depend on SDK types.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

import openai

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = (
    "You are a marketing analytics expert. Analyze data and provide actionable "
    "insights in valid JSON format only. Do not include any text outside the JSON "
    "response."
)


class LLMAdapterError(Exception):
    """Base class for failures raised by an adapter's ``generate`` call."""


class LLMRateLimitError(LLMAdapterError):
    """The service rejected the call because of rate limits or quota."""


class LLMTimeoutError(LLMAdapterError):
    """The service did not answer within the configured timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"LLM request exceeded {timeout_seconds:g}s timeout")


class LLMAuthenticationError(LLMAdapterError):
    """The adapter is missing credentials or the service rejected them."""


class LLMServiceError(LLMAdapterError):
    """Any other failure reported by the service or the transport."""


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted prompt string.

        Returns:
            Raw free-text response from the model. It is expected, but not
            guaranteed, to contain a JSON object.

        Raises:
            LLMAdapterError: On any service or transport failure.
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Each call is bounded by ``timeout_seconds`` and is never retried.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2000,
        temperature: float = 0.3,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            temperature: Sampling temperature.
            api_key: API key for the endpoint.
            base_url: Optional base URL for OpenAI-compatible endpoints.
            timeout_seconds: Upper bound for one completion call.
        """
        if not api_key:
            raise LLMAuthenticationError("LLM API key is not configured")

        client_kwargs: dict = {
            "api_key": api_key,
            "timeout": timeout_seconds,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = openai.OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout_seconds = timeout_seconds

    def generate(self, prompt: str) -> str:
        """Call the chat completion API and return the message content.

        Args:
            prompt: The fully formatted prompt string.

        Returns:
            Raw string content from the model response.

        Raises:
            LLMRateLimitError: HTTP 429 from the service.
            LLMTimeoutError: The call exceeded the timeout.
            LLMAuthenticationError: Invalid or missing credentials.
            LLMServiceError: Any other API or connection failure.
        """
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_MESSAGE},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                stream=False,
            )
        except openai.RateLimitError as exc:
            raise LLMRateLimitError(str(exc)) from exc
        except openai.APITimeoutError as exc:
            raise LLMTimeoutError(self._timeout_seconds) from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise LLMAuthenticationError(str(exc)) from exc
        except openai.APIError as exc:
            logger.warning("LLM request failed model=%s error=%s", self._model, exc)
            raise LLMServiceError(str(exc)) from exc

        if not response.choices:
            raise LLMServiceError("LLM response contained no choices")
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Fixed mock response used for local testing.
# ---------------------------------------------------------------------------
_MOCK_RESPONSE = {
    "insights": [
        {
            "category": "Performance",
            "title": "Mock insight for testing purposes",
            "description": "Generated by the mock adapter; no model was called.",
            "impact": "low",
            "metrics": {},
        }
    ],
    "recommendations": [
        {
            "title": "Verify integration",
            "description": "Switch LLM_ADAPTER to openai to receive real analysis.",
            "priority": "low",
            "effort": "low",
            "expectedImpact": "Real insights once the live adapter is configured",
        }
    ],
    "summary": "Mock analysis summary.",
    "keyMetrics": {},
}

_MOCK_RESPONSE_JSON = json.dumps(_MOCK_RESPONSE, indent=2)


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed valid JSON response.

    Used for local runs and CI pipelines where no LLM API is available.
    """

    def generate(self, prompt: str) -> str:
        """Return a fixed JSON string regardless of input.

        Args:
            prompt: Ignored - present only to satisfy the interface.

        Returns:
            A JSON string that decodes into a valid analysis response.
        """
        return _MOCK_RESPONSE_JSON
