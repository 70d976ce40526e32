"""
quotesmith.llm.templates - Prompt template loading and rendering.

Uses Jinja2 to load and render prompt templates from the package's
prompts/ directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template

from quotesmith.llm.builder import LENGTH_TARGETS
from quotesmith.models import GenerationRequest

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"
INSTRUCTION_TEMPLATE = "generate.txt"
SYSTEM_TEMPLATE = "system.txt"
QUOTES_PER_SET = 3


class PromptTemplateManager:
    """Manages loading and rendering of prompt templates."""

    def __init__(self, prompts_dir: Path = PROMPTS_DIR) -> None:
        self.prompts_dir = prompts_dir
        self.env = Environment(
            loader=FileSystemLoader(str(prompts_dir)),
            autoescape=False,
            keep_trailing_newline=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._cache: dict[str, Template] = {}

    def get_template(self, name: str) -> Template:
        """Load a template by name.

        Raises:
            FileNotFoundError: If template doesn't exist
        """
        if name not in self._cache:
            template_path = self.prompts_dir / name
            if not template_path.exists():
                raise FileNotFoundError(f"Template not found: {template_path}")
            self._cache[name] = self.env.get_template(name)
        return self._cache[name]

    def render(self, template_name: str, variables: dict[str, Any]) -> str:
        template = self.get_template(template_name)
        return template.render(**variables)

    def compose_instruction(self, request: GenerationRequest) -> str:
        return compose_instruction(request, self)

    def system_prompt(self) -> str:
        return self.render(SYSTEM_TEMPLATE, {"QUOTE_COUNT": QUOTES_PER_SET})


def format_avoid_list(avoid: tuple[str, ...] | list[str]) -> str:
    """Serialize the avoid list as a JSON array, keeping CJK text readable."""
    return json.dumps(list(avoid), ensure_ascii=False)


def compose_instruction(
    request: GenerationRequest,
    template_manager: PromptTemplateManager | None = None,
) -> str:
    """Render the natural-language instruction for a request.

    The avoid list, when present, becomes an explicit "do not repeat"
    constraint. The model may still overlap; nothing checks for it here.
    """
    template_manager = template_manager or PromptTemplateManager()
    target = LENGTH_TARGETS[request.length_bucket]
    variables = {
        "HAS_VIDEO": request.media is not None,
        "TOPIC": request.topic,
        "QUOTE_COUNT": QUOTES_PER_SET,
        "LENGTH_DIRECTIVE": target.directive,
        "AVOID": format_avoid_list(request.avoid) if request.avoid else "",
    }
    return template_manager.render(INSTRUCTION_TEMPLATE, variables).strip()
