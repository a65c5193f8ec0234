"""PromptRegistry — loads instruction templates from YAML, caches, renders with Jinja2.

Centralizes all text sent to the completion gateway. Templates are defined in
configs/instructions.yaml:

    prompts:           named Jinja2 templates (system, follow_up, refinement, ...)
    domain_guidance:   domain name -> guidance block appended to "system"
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from jinja2 import BaseLoader, ChainableUndefined, Environment, TemplateSyntaxError, UndefinedError

logger = logging.getLogger("fixprompt.prompt_registry")

_DEFAULT_INSTRUCTIONS_PATH = Path(__file__).parent / "configs" / "instructions.yaml"

REQUIRED_PROMPTS = frozenset({"system", "follow_up", "refinement", "standard_context", "user_message"})


class PromptNotFoundError(KeyError):
    """Raised when a prompt name is not found in the registry."""


class PromptRenderError(ValueError):
    """Raised when a prompt template fails to render."""


class PromptRegistry:
    """Loads instruction templates from YAML and renders them.

    Usage:
        registry = PromptRegistry()
        text = registry.get("standard_context", topic="Python", previous_prompts=[...])
        registry.guidance("technical")   # "### Domain-Specific Guidance (Technical)..."
    """

    def __init__(self, instructions_path: Path | str | None = None):
        self._path = Path(instructions_path) if instructions_path else _DEFAULT_INSTRUCTIONS_PATH
        self._templates: dict[str, str] = {}
        self._guidance: dict[str, str] = {}
        self._jinja_env = Environment(
            loader=BaseLoader(),
            undefined=ChainableUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()

    def _load(self) -> None:
        if not self._path.exists():
            logger.warning(f"Instructions file not found: {self._path}, using empty registry")
            self._loaded = True
            return

        with open(self._path) as f:
            raw = yaml.safe_load(f) or {}

        for name, data in (raw.get("prompts") or {}).items():
            if isinstance(data, dict):
                self._templates[name] = data.get("system", "")
            elif isinstance(data, str):
                self._templates[name] = data

        for domain, text in (raw.get("domain_guidance") or {}).items():
            self._guidance[domain] = (text or "").strip()

        self._loaded = True
        logger.debug(
            f"Loaded {len(self._templates)} prompts and {len(self._guidance)} guidance blocks from {self._path}"
        )

    def get(self, prompt_name: str, **variables: Any) -> str:
        """Render a named template.

        Raises:
            PromptNotFoundError: If the prompt name doesn't exist.
            PromptRenderError: If Jinja2 rendering fails.
        """
        self._ensure_loaded()
        template = self._templates.get(prompt_name)
        if template is None:
            raise PromptNotFoundError(f"Prompt '{prompt_name}' not found in registry. Available: {self.list_prompts()}")
        return self._render(template, variables).strip()

    def guidance(self, domain: str | None) -> str:
        """Guidance block for an exact domain match, or "" when there is none."""
        self._ensure_loaded()
        if not domain:
            return ""
        return self._guidance.get(domain, "")

    def list_prompts(self) -> list[str]:
        self._ensure_loaded()
        return sorted(self._templates.keys())

    def list_guidance(self) -> list[str]:
        self._ensure_loaded()
        return sorted(self._guidance.keys())

    def validate(self) -> list[str]:
        """Validate required templates exist and parse. Returns list of error messages."""
        self._ensure_loaded()
        errors: list[str] = []

        missing = REQUIRED_PROMPTS - set(self._templates)
        if missing:
            errors.append(f"Missing required prompts: {sorted(missing)}")

        for name, template in self._templates.items():
            if not template.strip():
                errors.append(f"Prompt '{name}' has empty template")
            try:
                self._jinja_env.parse(template)
            except TemplateSyntaxError as e:
                errors.append(f"Prompt '{name}' has invalid Jinja2 syntax: {e}")

        return errors

    def register(self, name: str, template: str) -> None:
        """Register a template programmatically."""
        self._ensure_loaded()
        self._templates[name] = template

    def register_guidance(self, domain: str, text: str) -> None:
        self._ensure_loaded()
        self._guidance[domain] = text.strip()

    def _render(self, template_str: str, variables: dict[str, Any]) -> str:
        try:
            template = self._jinja_env.from_string(template_str)
            return template.render(**variables)
        except UndefinedError as e:
            raise PromptRenderError(f"Missing template variable: {e}") from e
        except TemplateSyntaxError as e:
            raise PromptRenderError(f"Invalid template syntax: {e}") from e
