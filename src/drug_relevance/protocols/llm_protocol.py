"""
LLM Client Protocol

Defines the interface the pipeline needs from a generative model, allowing
different implementations (Anthropic, OpenAI, test fakes) to be swapped.
The pipeline owns all parsing and validation of the returned text.
"""

from typing import Protocol, Optional, Dict


class LLMClient(Protocol):
    """Protocol for LLM client implementations."""

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.0,
        system: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Generate a completion for the given prompt.

        Args:
            prompt: The user prompt to complete
            max_tokens: Maximum tokens in the response
            temperature: Sampling temperature (0.0 = deterministic)
            system: Optional system prompt
            timeout: Optional per-call timeout in seconds

        Returns:
            The generated text response

        Raises:
            Any transport, auth or timeout error; callers degrade on failure.
        """
        ...

    def get_usage_stats(self) -> Dict[str, int]:
        """
        Get cumulative token usage statistics.

        Returns:
            Dict with keys: input_tokens, output_tokens, requests, failures
        """
        ...
