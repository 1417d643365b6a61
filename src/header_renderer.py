"""Header Renderer — renders a normalized post header as HTML."""

from __future__ import annotations

import logging
import os

from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.post_template import PostTemplateData

log = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_TEMPLATES_DIR = os.path.join(PROJECT_ROOT, "templates")


class HeaderRenderer:
    """Renders PostTemplateData into the header block markup.

    The output uses the same structure legacy posts embedded in their body,
    so ``split_template_from_html`` reads it back into an equal template.
    """

    def __init__(self, templates_dir=DEFAULT_TEMPLATES_DIR, template_name="post_header.html"):
        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html"]),
        )
        self.template_name = template_name

    def render(self, template: PostTemplateData, post_title: str = "", author_fallback: str = "") -> str:
        """Render the header block, or "" when the header is disabled."""
        if not template.header_enabled:
            return ""

        title = template.title or (post_title or "").strip()
        author = template.author_name or (author_fallback or "").strip()

        return self.env.get_template(self.template_name).render(
            template=template,
            title=title,
            meta_line=self.meta_line(author, template.date),
        )

    @staticmethod
    def meta_line(author: str | None, date: str | None) -> str:
        """Build "By Author • Date" from whichever parts are present."""
        parts = []
        if author:
            parts.append(f"By {author}")
        if date:
            parts.append(date)
        return " • ".join(parts)
