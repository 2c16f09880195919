"""Parsing utilities shared by the statement parser and renderers."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from markupsafe import escape

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
PARTIAL_DATE_DEFAULT = datetime(2000, 1, 1)

# Epoch milliseconds representable by ``datetime`` (years 1 through 9999).
MIN_EPOCH_MS = (datetime(1, 1, 1, tzinfo=timezone.utc) - EPOCH) / timedelta(milliseconds=1)
MAX_EPOCH_MS = (datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc) - EPOCH) / timedelta(milliseconds=1)

_SLUG_STRIP_RE = re.compile(r"[^A-Za-z0-9_\s-]")
_SLUG_SEPARATOR_RE = re.compile(r"[\s_-]+")

DEFAULT_ALLOWED_TAGS: Sequence[str] = (
    "a",
    "p",
    "ul",
    "ol",
    "li",
    "em",
    "strong",
    "blockquote",
    "code",
    "pre",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
    "span",
    "div",
    "br",
    "img",
    "figure",
    "figcaption",
)

DEFAULT_ALLOWED_ATTRIBUTES: Dict[str, Iterable[str]] = {
    "a": ("href", "title", "rel", "target"),
    "img": ("src", "alt", "title", "loading"),
    "*": ("class", "id"),
}


@dataclass(frozen=True)
class DateResult:
    """Outcome of resolving a loosely typed date value.

    Either ``value`` holds a timezone-aware UTC datetime, or ``reason``
    describes why the input could not be used.
    """

    value: Optional[datetime] = None
    reason: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.value is not None

    @classmethod
    def valid(cls, value: datetime) -> "DateResult":
        return cls(value=value)

    @classmethod
    def invalid(cls, reason: str) -> "DateResult":
        return cls(reason=reason)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_date_string(text: str) -> DateResult:
    try:
        # Missing month or day components resolve to the first of the period
        parsed = date_parser.parse(text, default=PARTIAL_DATE_DEFAULT)
        return DateResult.valid(_as_utc(parsed))
    except (ValueError, OverflowError) as exc:
        return DateResult.invalid(f"unparseable date string {text!r}: {exc}")


def parse_date(value: Any) -> DateResult:
    """Resolve ``value`` to a UTC instant without raising.

    Accepts datetimes (naive values are taken as UTC), dates (midnight UTC),
    numeric epoch values in milliseconds and parseable strings.
    """
    if value is None:
        return DateResult.invalid("missing date")

    # bool is an int subclass but never a timestamp
    if isinstance(value, bool):
        return DateResult.invalid(f"unsupported date type: {type(value).__name__}")

    if isinstance(value, datetime):
        try:
            return DateResult.valid(_as_utc(value))
        except OverflowError as exc:
            return DateResult.invalid(f"datetime out of range: {exc}")

    if isinstance(value, date):
        return DateResult.valid(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return DateResult.invalid(f"non-finite epoch value: {value}")
        if not MIN_EPOCH_MS <= value <= MAX_EPOCH_MS:
            return DateResult.invalid(f"epoch value out of range: {value}")
        return DateResult.valid(EPOCH + timedelta(milliseconds=value))

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return DateResult.invalid("blank date string")
        return _parse_date_string(text)

    return DateResult.invalid(f"unsupported date type: {type(value).__name__}")


def to_iso_timestamp(value: datetime) -> str:
    """Format a datetime as ISO8601 UTC with millisecond precision and a Z suffix."""
    dt_utc = _as_utc(value)
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt_utc.microsecond // 1000:03d}Z"


def slugify(title: Optional[str]) -> str:
    """Derive a URL slug from a title.

    Only ASCII word characters, whitespace and hyphens survive; separator
    runs collapse to a single hyphen.
    """
    if not title:
        return ""
    slug = title.lower().strip()
    slug = _SLUG_STRIP_RE.sub("", slug)
    slug = _SLUG_SEPARATOR_RE.sub("-", slug)
    return slug.strip("-")


def coerce_flag(value: Any) -> Optional[bool]:
    """Interpret a publish flag, returning None when the value has no say."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true" or value == "1"
    return None


def ensure_string_list(value: Any) -> List[str]:
    """Return string entries of a list, or a one-element list for a string."""
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    if isinstance(value, str) and value:
        return [value]
    return []


def strip_hyphens(value: str) -> str:
    return value.replace("-", "")


def sanitize_html(
    html: Optional[str],
    *,
    allowed_tags: Sequence[str] = DEFAULT_ALLOWED_TAGS,
    allowed_attributes: Optional[Dict[str, Iterable[str]]] = None,
) -> str:
    """Strip unsafe tags and attributes from an HTML-bearing statement body."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")

    for tag in soup(["script", "style", "iframe", "object"]):
        tag.decompose()

    if allowed_attributes is None:
        allowed_attributes = DEFAULT_ALLOWED_ATTRIBUTES

    allowed_tags_set = set(allowed_tags)

    for tag in soup.find_all(True):
        if tag.name in ("html", "body", "head"):
            continue
        if tag.name not in allowed_tags_set:
            tag.unwrap()
            continue
        allowed_attrs = set(allowed_attributes.get(tag.name, [])) | set(allowed_attributes.get("*", []))
        for attr in list(tag.attrs):
            if attr not in allowed_attrs:
                del tag.attrs[attr]
        href = tag.attrs.get("href") or tag.attrs.get("src")
        if isinstance(href, str) and href.strip().lower().startswith("javascript:"):
            tag.attrs.pop("href", None)
            tag.attrs.pop("src", None)

    # Extract inner HTML without surrounding <html><body> wrappers
    body = soup.body
    if body:
        sanitized = body.decode_contents()
    else:
        sanitized = str(soup)
    return sanitized.strip()


def escape_html(text: Any) -> str:
    """Escape text for interpolation into HTML content or attribute values."""
    if text is None:
        return ""
    return str(escape(text if isinstance(text, str) else str(text)))
