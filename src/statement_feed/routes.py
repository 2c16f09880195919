"""Route codec mapping statement slugs to page URLs and back.

Two addressing schemes are understood: the query form
``./poli-statements.html?statement=<slug>`` (always produced by
:meth:`RouteCodec.encode`) and the hash form ``#/statement/<slug>``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, quote, unquote, urlsplit

# Same unreserved set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "!~*'()"

PAGE_LIST = "list"
PAGE_DETAIL = "detail"


@dataclass(frozen=True)
class Route:
    """Resolved navigation target."""

    slug: Optional[str] = None

    @property
    def page(self) -> str:
        return PAGE_DETAIL if self.slug else PAGE_LIST


class RouteCodec:
    """Pure slug <-> URL mapping for the statements page."""

    DEFAULT_PAGE_PATH = "./poli-statements.html"
    DEFAULT_QUERY_PARAM = "statement"
    DEFAULT_HASH_PREFIX = "#/statement/"

    def __init__(
        self,
        page_path: str = DEFAULT_PAGE_PATH,
        query_param: str = DEFAULT_QUERY_PARAM,
        hash_prefix: str = DEFAULT_HASH_PREFIX,
        list_title: str = "성명공유",
        detail_title_format: str = "성명 상세 - {slug}",
    ) -> None:
        self.page_path = page_path
        self.query_param = query_param
        self.hash_prefix = hash_prefix if hash_prefix.startswith("#") else f"#{hash_prefix}"
        self.list_title = list_title
        self.detail_title_format = detail_title_format

    def decode(self, url: Any) -> Optional[str]:
        """Extract the statement slug from ``url``; None means the list view."""
        if not url or not isinstance(url, str):
            return None

        try:
            parts = urlsplit(url)
        except ValueError:
            return None

        values = parse_qs(parts.query).get(self.query_param)
        if values and values[0]:
            return values[0]

        fragment = f"#{parts.fragment}" if parts.fragment else ""
        if fragment.startswith(self.hash_prefix):
            slug = unquote(fragment[len(self.hash_prefix):])
            return slug or None

        return None

    def encode(self, slug: Optional[str], use_hash: bool = False) -> str:
        """Build the URL for ``slug``; a missing slug yields the list URL."""
        if not slug:
            return self.list_url()

        encoded = quote(slug, safe=_URI_COMPONENT_SAFE)
        if use_hash:
            return f"{self.page_path}{self.hash_prefix}{encoded}"
        return f"{self.page_path}?{self.query_param}={encoded}"

    def list_url(self) -> str:
        return self.page_path

    def route_for(self, url: Any) -> Route:
        return Route(slug=self.decode(url))

    def state_for(self, slug: Optional[str]) -> Dict[str, Optional[str]]:
        """History state object for a navigation to ``slug``."""
        return {"slug": slug, "page": Route(slug=slug).page}

    def title_for(self, slug: Optional[str]) -> str:
        if not slug:
            return self.list_title
        return self.detail_title_format.format(slug=slug)
