"""Template Renderer — async Jinja2 rendering of the wiki's HTML templates.

Invariants:
    - render() is an await point (Jinja2 async mode), never blocks the event loop on IO
    - Autoescape on for .html templates; rendered markdown is passed through |safe
    - Every Jinja2 failure (missing template, undefined variable, syntax) is RenderError
"""

import logging
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment, FileSystemLoader, StrictUndefined, TemplateError,
    select_autoescape,
)

from wiki.core.errors import ErrorContext, RenderError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateRenderer:
    """Named template + context -> HTML string."""

    def __init__(self, templates_dir: Path | str = TEMPLATES_DIR):
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "htm"]),
            undefined=StrictUndefined,
            enable_async=True,
        )

    async def render(self, name: str, context: dict[str, Any]) -> str:
        try:
            template = self._env.get_template(name)
            return await template.render_async(**context)
        except TemplateError as e:
            logger.error(f"Template {name} failed: {e}")
            raise RenderError(
                f"template {name}: {e}",
                ErrorContext(debug_info={"template": name}),
            ) from e
