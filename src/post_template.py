"""Post Template — the canonical post header and its normalizer.

A post's header (series line, title override, subtitle, byline, date) is
stored as a JSON column on the post row. Whatever is stored there, possibly
sparse, blank or badly typed, is turned into a fully populated
``PostTemplateData`` by ``normalize_template``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone

# US English, independent of the process locale
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_DATE_PREFIX = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})")

# JSON column key -> dataclass attribute
STRING_FIELDS = {
    "title": "title",
    "subtitle": "subtitle",
    "authorName": "author_name",
    "seriesName": "series_name",
    "volume": "volume",
    "date": "date",
}


@dataclass(frozen=True)
class PostTemplateData:
    title: str | None = None
    subtitle: str | None = None
    author_name: str | None = None
    series_name: str | None = None
    volume: str | None = None
    date: str | None = None
    header_enabled: bool = True
    use_green_template: bool = False

    def to_json(self) -> dict:
        """Serialize to the camelCase shape the editor stores in ``template_data``."""
        data = {}
        for key, attr in STRING_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        data["headerEnabled"] = self.header_enabled
        data["useGreenTemplate"] = self.use_green_template
        return data

    @property
    def has_content(self) -> bool:
        """True when any header line would be shown."""
        return any(getattr(self, attr) for attr in STRING_FIELDS.values())


def clean_text(value) -> str | None:
    """Trim a raw field value; blanks and non-text values become None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            value = str(value)
        except ValueError:
            # ints past the interpreter's digit limit
            return None
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def format_display_date(created_at) -> str | None:
    """Format an ISO-8601 timestamp as "Month D, YYYY", in UTC.

    Returns None when no calendar date can be read from the value.
    """
    if isinstance(created_at, datetime):
        parsed = created_at
    elif isinstance(created_at, str):
        parsed = _parse_timestamp(created_at)
    else:
        return None

    if parsed is not None:
        if parsed.tzinfo is not None:
            try:
                parsed = parsed.astimezone(timezone.utc)
            except OverflowError:
                pass
        return f"{MONTH_NAMES[parsed.month - 1]} {parsed.day}, {parsed.year}"

    # Timestamp unreadable as a whole; fall back to its date portion
    match = _DATE_PREFIX.match(created_at)
    if not match:
        return None
    try:
        day = date(*(int(part) for part in match.groups()))
    except ValueError:
        return None
    return f"{MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


def _parse_timestamp(value: str) -> datetime | None:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _raw_value(raw: Mapping, key: str, attr: str):
    if key in raw:
        return raw[key]
    return raw.get(attr)


def normalize_template(raw, fallback_created_at) -> PostTemplateData:
    """Build a fully populated header from whatever is stored for a post.

    ``raw`` may be None, a mapping using the JSON column keys (or the
    attribute names), or a PostTemplateData. Never raises.
    """
    if isinstance(raw, PostTemplateData):
        raw = raw.to_json()
    if not isinstance(raw, Mapping):
        raw = {}

    fields = {attr: clean_text(_raw_value(raw, key, attr)) for key, attr in STRING_FIELDS.items()}

    if fields["date"] is None:
        fields["date"] = format_display_date(fallback_created_at)

    return PostTemplateData(
        header_enabled=_raw_value(raw, "headerEnabled", "header_enabled") is not False,
        use_green_template=_raw_value(raw, "useGreenTemplate", "use_green_template") is True,
        **fields,
    )
