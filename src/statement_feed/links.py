"""Post-processing pass for links in rendered fragments.

Rendering produces a final string; this pass runs over that string once and
marks links leaving the site so they open in a new tab with an accessible
label.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .logging_config import get_logger

logger = get_logger("links")

NEW_WINDOW_LABEL = "{text}, 새 창에서 열림"
FALLBACK_LINK_TEXT = "링크"


class SourceOrderFormatter(HTMLFormatter):
    """HTML output that keeps attributes in source order and void tags unslashed."""

    def __init__(self):
        super().__init__(
            entity_substitution=EntitySubstitution.substitute_xml,
            void_element_close_prefix=None,
        )

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


SOURCE_ORDER_FORMATTER = SourceOrderFormatter()


def _origin(url: str) -> Optional[tuple]:
    parts = urlsplit(url)
    if parts.scheme in ("http", "https") and parts.netloc:
        return parts.scheme, parts.netloc.lower()
    return None


def is_external_link(url: Optional[str], site_url: Optional[str] = None) -> bool:
    """Return True when ``url`` points outside the site at ``site_url``.

    Relative paths are always internal. Without a site URL, any absolute or
    protocol-relative URL counts as external.
    """
    if not url:
        return False

    try:
        if site_url:
            target = urlsplit(urljoin(site_url, url))
            site = urlsplit(site_url)
        else:
            target = urlsplit(url)
            site = None
    except ValueError:
        return False

    if not target.scheme and not target.netloc:
        return False

    if site is None:
        return bool(target.netloc) or target.scheme not in ("", "http", "https")

    if target.scheme not in ("http", "https"):
        # mailto:, tel: and friends have no origin of their own
        return True

    return _origin(target.geturl()) != _origin(site.geturl())


def enhance_external_links(html: str, site_url: Optional[str] = None) -> str:
    """Add ``target``, ``rel`` and ``aria-label`` to external links in ``html``.

    Links that already declare a target are left alone.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    enhanced = 0

    for link in soup.find_all("a", href=True):
        if link.has_attr("target"):
            continue
        if not is_external_link(link["href"], site_url):
            continue

        link["target"] = "_blank"
        link["rel"] = "noopener noreferrer"
        if not link.get("aria-label"):
            text = link.get_text().strip() or link.get("title") or FALLBACK_LINK_TEXT
            link["aria-label"] = NEW_WINDOW_LABEL.format(text=text)
        enhanced += 1

    if enhanced:
        logger.debug(f"Marked {enhanced} external links")
    return soup.decode(formatter=SOURCE_ORDER_FORMATTER)
