"""
Prompt Manager for loading and rendering Jinja2 templates.

Templates live in prompts/templates/ and are addressed by name without
the .j2 suffix:
- candidate_generation: Tier 3 drug list request
- relevance_system: scoring rubric (system prompt)
- relevance_user: per-request scoring prompt
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

logger = logging.getLogger(__name__)

CANDIDATE_GENERATION = "candidate_generation"
RELEVANCE_SYSTEM = "relevance_system"
RELEVANCE_USER = "relevance_user"


class PromptManager:
    """
    Manages prompt templates with Jinja2 rendering.

    Example:
        manager = PromptManager()
        prompt = manager.render(
            "candidate_generation",
            condition_name="Psoriasis vulgaris",
            max_drugs=15,
        )
    """

    def __init__(
        self,
        templates_dir: Optional[Path] = None,
        cache_enabled: bool = True,
        max_cache_size: int = 64,
    ):
        """
        Initialize the PromptManager.

        Args:
            templates_dir: Path to templates directory
            cache_enabled: Cache rendered templates
            max_cache_size: Rendered prompts kept; the oldest is dropped beyond this
        """
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"

        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

        self.max_cache_size = max_cache_size
        self._cache: Optional[Dict[str, str]] = {} if cache_enabled else None

    def render(self, template_name: str, **variables) -> str:
        """
        Render a prompt template with variables.

        Args:
            template_name: Template path relative to templates_dir (without .j2)
            **variables: Template variables

        Returns:
            Rendered prompt string

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        if not template_name.endswith('.j2'):
            template_name = f"{template_name}.j2"

        cache_key = f"{template_name}:{json.dumps(variables, sort_keys=True, default=repr)}"

        if self._cache is not None and cache_key in self._cache:
            return self._cache[cache_key]

        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound:
            logger.error(f"Template not found: {template_name}")
            raise

        rendered = template.render(**variables).strip()

        if self._cache is not None:
            # Keys include free-text condition names; oldest entries go first
            while self._cache and len(self._cache) >= self.max_cache_size:
                self._cache.pop(next(iter(self._cache)))
            self._cache[cache_key] = rendered

        logger.debug(f"Rendered prompt: {template_name} ({len(rendered)} chars)")
        return rendered

    def list_templates(self) -> List[str]:
        """List available template names."""
        if not self.templates_dir.exists():
            return []
        return sorted(path.stem for path in self.templates_dir.glob("*.j2"))

    def clear_cache(self):
        """Clear the rendered-prompt cache."""
        if self._cache is not None:
            self._cache.clear()


# Singleton instance for convenience
_default_manager: Optional[PromptManager] = None


def get_prompt_manager() -> PromptManager:
    """Get the default PromptManager instance."""
    global _default_manager
    if _default_manager is None:
        _default_manager = PromptManager()
    return _default_manager
