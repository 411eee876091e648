"""
Anthropic implementation of the LLMClient protocol.

Errors (auth, rate limit, timeout, network) propagate to the caller; the
candidate generator and relevance agent turn them into degraded results.
"""

import logging
from typing import Dict, Optional

from anthropic import APITimeoutError, AsyncAnthropic

logger = logging.getLogger(__name__)


class AnthropicLLMClient:
    """LLM client implementation using Anthropic."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        client: Optional[AsyncAnthropic] = None,
    ):
        self._client = client or AsyncAnthropic(api_key=api_key, max_retries=0)
        self._model = model
        self._usage = {
            'input_tokens': 0,
            'output_tokens': 0,
            'requests': 0,
            'failures': 0,
        }

    @property
    def model(self) -> str:
        return self._model

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.0,
        system: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system
        if timeout is not None:
            kwargs["timeout"] = timeout

        self._usage['requests'] += 1
        try:
            response = await self._client.messages.create(**kwargs)
        except APITimeoutError as e:
            self._usage['failures'] += 1
            raise TimeoutError(f"{self._model} request timed out after {timeout}s") from e
        except Exception:
            self._usage['failures'] += 1
            raise

        self._track_usage(response)

        for block in response.content or []:
            if getattr(block, 'type', None) == 'text':
                return block.text

        logger.warning(f"[{self._model}] LLM returned no text content")
        return ""

    def get_usage_stats(self) -> Dict[str, int]:
        return self._usage.copy()

    def reset_usage_stats(self) -> None:
        self._usage = {k: 0 for k in self._usage}

    def _track_usage(self, response) -> None:
        usage = getattr(response, 'usage', None)
        if usage is not None:
            self._usage['input_tokens'] += getattr(usage, 'input_tokens', 0) or 0
            self._usage['output_tokens'] += getattr(usage, 'output_tokens', 0) or 0
