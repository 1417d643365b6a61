"""Legacy Header — recover the header block embedded in old post HTML.

Posts written before ``template_data`` existed carry their header as literal
markup at the top of the body::

    <header class="post-header">
      <div>Series Name • Volume 2</div>      optional, before the title
      <h1>Title</h1>                          required
      <p>Subtitle</p>                         optional
      <div>By Author • January 5, 2024</div>  optional meta line
    </header>

The container may also be a ``<div>`` or ``<section>`` whose class mentions
"header", or any of those tags with a ``data-template-header`` attribute.
Matching is by element role and position; classes and inline styles on the
children are ignored. Anything outside this shape is left alone.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from src.post_template import MONTH_NAMES, PostTemplateData, clean_text, normalize_template

log = logging.getLogger(__name__)

CONTAINER_TAGS = ("header", "div", "section")
TITLE_TAGS = ("h1",)
SERIES_TAGS = ("div", "p", "span")
TRAILING_TAGS = ("p", "div")
MAX_TRAILING = 2

SEPARATOR = re.compile(r"\s*[•·|]\s*")
BYLINE = re.compile(r"^by\s+", re.IGNORECASE)
DISPLAY_DATE = re.compile(r"^(%s)\s+\d{1,2},\s*\d{4}$" % "|".join(MONTH_NAMES))


@dataclass(frozen=True)
class LegacySplit:
    template: PostTemplateData
    body: str
    header_found: bool = False


def split_template_from_html(html, fallback_created_at) -> LegacySplit:
    """Split a legacy post body into its header template and remaining HTML.

    When no header block leads the body the HTML comes back unchanged with a
    default template. Never raises.
    """
    if not isinstance(html, str):
        return LegacySplit(template=normalize_template(None, fallback_created_at), body="")

    try:
        match = _match_header(html)
    except Exception:
        log.warning("Legacy header parse failed, treating content as body", exc_info=True)
        match = None

    if match is None:
        return LegacySplit(template=normalize_template(None, fallback_created_at), body=html)

    fields, body = match
    fields["headerEnabled"] = True
    return LegacySplit(
        template=normalize_template(fields, fallback_created_at),
        body=body,
        header_found=True,
    )


def _match_header(html: str) -> tuple[dict, str] | None:
    soup = BeautifulSoup(html, "html.parser")

    container = _leading_node(soup.contents)
    if not isinstance(container, Tag) or not _is_container(container):
        return None

    roles = _assign_roles(container)
    if roles is None:
        return None

    fields = {"title": _text(roles["title"])}
    if roles.get("series") is not None:
        fields["seriesName"], fields["volume"] = _split_series(_text(roles["series"]))
    if roles.get("subtitle") is not None:
        fields["subtitle"] = _text(roles["subtitle"])
    if roles.get("meta") is not None:
        fields["authorName"], fields["date"] = _split_meta(_text(roles["meta"]))

    return fields, _body_without(html, soup, container)


def _leading_node(nodes):
    """First top-level node that is not whitespace or a comment."""
    for node in nodes:
        if isinstance(node, Comment):
            continue
        if isinstance(node, NavigableString) and not node.strip():
            continue
        return node
    return None


def _is_container(tag: Tag) -> bool:
    if tag.name not in CONTAINER_TAGS:
        return False
    if tag.name == "header" or tag.has_attr("data-template-header"):
        return True
    classes = tag.get("class") or []
    return any("header" in cls.lower() for cls in classes)


def _assign_roles(container: Tag) -> dict | None:
    """Map the container's children onto series/title/subtitle/meta roles.

    Returns None when the children don't fit the expected order.
    """
    children = []
    for node in container.contents:
        if isinstance(node, Comment):
            continue
        if isinstance(node, NavigableString):
            if node.strip():
                return None
            continue
        children.append(node)

    titles = [i for i, child in enumerate(children) if child.name in TITLE_TAGS]
    if len(titles) != 1:
        return None
    title_index = titles[0]

    before = children[:title_index]
    after = children[title_index + 1:]
    if len(before) > 1 or len(after) > MAX_TRAILING:
        return None
    if any(child.name not in SERIES_TAGS for child in before):
        return None
    if any(child.name not in TRAILING_TAGS for child in after):
        return None

    roles = {"title": children[title_index], "series": before[0] if before else None}
    if len(after) == 2:
        roles["subtitle"], roles["meta"] = after
    elif len(after) == 1:
        if _looks_like_meta(_text(after[0])):
            roles["meta"] = after[0]
        else:
            roles["subtitle"] = after[0]
    return roles


def _looks_like_meta(text: str) -> bool:
    """A line is the meta line when one of its parts is a byline or a display date."""
    return any(BYLINE.match(part) or DISPLAY_DATE.match(part) for part in _parts(text))


def _parts(text: str) -> list[str]:
    return [part.strip() for part in SEPARATOR.split(text) if part.strip()]


def _text(tag: Tag) -> str:
    return " ".join(tag.get_text().split())


def _split_series(text: str) -> tuple[str | None, str | None]:
    parts = SEPARATOR.split(text, maxsplit=1)
    series = clean_text(parts[0])
    volume = clean_text(parts[1]) if len(parts) > 1 else None
    return series, volume


def _split_meta(text: str) -> tuple[str | None, str | None]:
    """Pull the author and date out of a meta line.

    The author is the "By ..." part, or else the first part that is not a
    display date when the line has more than one part. Every other part
    stays in the date, in its original order.
    """
    parts = _parts(text)
    author_index = next((i for i, part in enumerate(parts) if BYLINE.match(part)), None)
    if author_index is None and len(parts) > 1:
        author_index = next((i for i, part in enumerate(parts) if not DISPLAY_DATE.match(part)), None)

    author = None
    if author_index is not None:
        author = clean_text(BYLINE.sub("", parts[author_index]))
    rest = [part for i, part in enumerate(parts) if i != author_index]
    return author, clean_text(" • ".join(rest))


def _body_without(html: str, soup: BeautifulSoup, container: Tag) -> str:
    """Return the original HTML minus the container, preserving source text.

    The parser's source positions locate the container and the node after
    it, so everything else is sliced verbatim from ``html``.
    """
    start = _offset(html, container)
    following = container.next_sibling
    while isinstance(following, NavigableString) and not isinstance(following, Comment) and not following.strip():
        following = following.next_sibling

    prefix = html[:start] if start is not None and html[:start].strip() else ""

    if following is None:
        return prefix
    end = _offset(html, following) if isinstance(following, Tag) else None
    if start is not None and end is not None:
        return prefix + html[end:]

    # No source position for what follows; re-serialize the remaining tree
    container.decompose()
    return str(soup).lstrip()


def _offset(html: str, tag: Tag) -> int | None:
    line = getattr(tag, "sourceline", None)
    column = getattr(tag, "sourcepos", None)
    if line is None or column is None:
        return None
    index = 0
    for _ in range(line - 1):
        index = html.find("\n", index) + 1
        if index == 0:
            return None
    return index + column
