"""LLM client adapters."""

from src.drug_relevance.llm.anthropic_client import AnthropicLLMClient

__all__ = ["AnthropicLLMClient"]
