"""Post Reader — the read path from stored post rows to render-ready posts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from slugify import slugify

from src.header_renderer import HeaderRenderer
from src.legacy_header import split_template_from_html
from src.post_template import PostTemplateData, clean_text, normalize_template

log = logging.getLogger(__name__)

UNTITLED = "Untitled Post"
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@dataclass
class BlogUser:
    id: str
    name: str | None = None
    subdomain: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "BlogUser":
        return cls(id=str(row.get("id", "")), name=row.get("name"), subdomain=row.get("subdomain"))


@dataclass
class Post:
    id: str
    title: str = ""
    content: str = ""
    created_at: str = ""
    status: str = "draft"
    is_draft: bool = True
    user_id: str | None = None
    post_slug: str | None = None
    template_data: dict | None = None  # None and {} mean different things

    @classmethod
    def from_row(cls, row: dict) -> "Post":
        return cls(
            id=str(row.get("id", "")),
            title=clean_text(row.get("title")) or "",
            content=row.get("content") or "",
            created_at=row.get("created_at") or "",
            status=row.get("status") or "draft",
            is_draft=row.get("is_draft", True) is not False,
            user_id=row.get("user_id"),
            post_slug=row.get("post_slug"),
            template_data=row.get("template_data"),
        )

    @property
    def is_public(self) -> bool:
        return self.status == "published" and not self.is_draft

    @property
    def public_path(self) -> str:
        return self.post_slug or self.id


@dataclass
class RenderedPost:
    post: Post
    header: PostTemplateData
    body: str
    display_title: str
    author_line: str | None = None
    header_html: str = ""
    from_legacy_html: bool = False


@dataclass
class BlogIndexEntry:
    path: str
    title: str
    subtitle: str | None = None
    date: str | None = None
    created_at: str = ""


def resolve_template(post: Post) -> tuple[PostTemplateData, str, bool]:
    """Return (header, body, from_legacy_html) for a post.

    Structured ``template_data`` always wins when it is not None, even if
    it is empty; the body HTML is only parsed for rows without it.
    """
    if post.template_data is not None:
        return normalize_template(post.template_data, post.created_at), post.content, False

    split = split_template_from_html(post.content, post.created_at)
    if split.header_found:
        log.debug(f"Recovered legacy header for post {post.id}", extra={"post_id": post.id})
    return split.template, split.body, split.header_found


def resolve_post_header(post: Post, user: BlogUser | None = None,
                        renderer: HeaderRenderer | None = None) -> RenderedPost:
    """Resolve a post into its canonical header, body, and header markup."""
    header, body, from_legacy = resolve_template(post)

    display_title = header.title or post.title.strip() or UNTITLED
    author_line = header.author_name
    if author_line is None and user is not None:
        author_line = (user.name or "").strip() or user.subdomain or None

    header_html = ""
    if renderer is not None:
        header_html = renderer.render(header, post_title=display_title, author_fallback=author_line or "")

    return RenderedPost(
        post=post,
        header=header,
        body=body,
        display_title=display_title,
        author_line=author_line,
        header_html=header_html,
        from_legacy_html=from_legacy,
    )


def build_blog_index(posts: list[Post]) -> list[BlogIndexEntry]:
    """List a tenant's public posts, newest first."""
    public = [post for post in posts if post.is_public]
    public.sort(key=lambda post: post.created_at, reverse=True)

    entries = []
    for post in public:
        header, _, _ = resolve_template(post)
        entries.append(BlogIndexEntry(
            path=post.public_path,
            title=header.title or post.title.strip() or UNTITLED,
            subtitle=header.subtitle,
            date=header.date,
            created_at=post.created_at,
        ))
    return entries


def looks_like_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value or ""))


def is_valid_post_slug(slug: str) -> bool:
    """Slugs are lowercase letters and digits joined by single hyphens."""
    return bool(SLUG_PATTERN.match(slug or ""))


def suggest_post_slug(title: str, max_length: int = 60) -> str:
    return slugify(title or "", max_length=max_length, word_boundary=True)
