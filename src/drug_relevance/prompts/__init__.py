"""Jinja2 prompt templates for candidate generation and relevance scoring."""

from src.drug_relevance.prompts.manager import (
    PromptManager,
    get_prompt_manager,
    CANDIDATE_GENERATION,
    RELEVANCE_SYSTEM,
    RELEVANCE_USER,
)

__all__ = [
    "PromptManager",
    "get_prompt_manager",
    "CANDIDATE_GENERATION",
    "RELEVANCE_SYSTEM",
    "RELEVANCE_USER",
]
