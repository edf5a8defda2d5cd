"""Sehat Sathi – Prompt Templates.

Every text sent to the LLM (safety preamble, symptom and open-question
prompts, classifier instructions) is a Jinja2 template under
``app/prompts/templates``.

Usage:
    from app.prompts.engine import get_engine

    preamble = get_engine().render("assistant/system.j2", language="hi")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

logger = structlog.get_logger()

TEMPLATE_DIR = Path(__file__).parent / "templates"


class PromptEngine:
    """Renders prompt templates to stripped plain text.

    Undefined variables are an error, so a template and its caller cannot
    silently drift apart.
    """

    def __init__(self, template_dir: str | Path = TEMPLATE_DIR) -> None:
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, **context: Any) -> str:
        try:
            rendered = self.env.get_template(template_name).render(**context)
        except TemplateError as exc:
            logger.error("prompts.render_failed", template=template_name, error=str(exc))
            raise
        return rendered.strip()


_engine: PromptEngine | None = None


def get_engine() -> PromptEngine:
    """Shared engine for the default template directory."""
    global _engine
    if _engine is None:
        _engine = PromptEngine()
    return _engine
