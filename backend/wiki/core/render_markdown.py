"""Markdown Rendering — pure markdown -> HTML transform applied at page view time.

Invariants:
    - Same input always yields byte-identical HTML (fresh Markdown instance per call,
      no state carried between renders)
    - Any failure inside the markdown library surfaces as RenderError
    - Content is never stored rendered; this runs on every GET /wiki/{page}
"""

import markdown

from wiki.core.errors import RenderError

MARKDOWN_EXTENSIONS = ("fenced_code", "tables")


def render_markdown(text: str) -> str:
    try:
        return markdown.markdown(text, extensions=list(MARKDOWN_EXTENSIONS))
    except Exception as e:
        raise RenderError(f"markdown: {e}") from e
