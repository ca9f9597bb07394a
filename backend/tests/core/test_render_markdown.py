"""Markdown Rendering — purity and failure mapping."""

import pytest

from wiki.core.domain_types import EMPTY_PAGE_MARKDOWN
from wiki.core.errors import RenderError
import wiki.core.render_markdown as render_module
from wiki.core.render_markdown import render_markdown


def test_heading_renders_as_h1():
    assert render_markdown("# Hi") == "<h1>Hi</h1>"


def test_rendering_twice_is_byte_identical():
    text = "# Title\n\nSome *emphasis* and a [link](/wiki/Other).\n\n```\ncode\n```\n"
    assert render_markdown(text) == render_markdown(text)


def test_default_page_renders_placeholder():
    html = render_markdown(EMPTY_PAGE_MARKDOWN)
    assert "<h1>A new page</h1>" in html
    assert "Feel-free to write in Markdown!" in html


def test_empty_markdown_renders_empty():
    assert render_markdown("") == ""


def test_library_failure_becomes_render_error(monkeypatch):
    def explode(*args, **kwargs):
        raise ValueError("bad extension")

    monkeypatch.setattr(render_module.markdown, "markdown", explode)
    with pytest.raises(RenderError) as exc:
        render_markdown("# Hi")
    assert exc.value.code == "RENDER_FAILED"
