"""Presentation formatters for statements.

Renders HTML fragments for the list view, the detail view and the empty,
loading, error and not-found notices using Jinja2 templates. Autoescaping is
on for every template, so user-supplied fields are escaped exactly once by
the same primitive; only the rendered statement body is marked safe.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Union
from urllib.parse import unquote, urlsplit

from dateutil import tz
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .logging_config import get_logger
from .markdown import MarkdownRenderer, render_body
from .models import Statement, SyncMetadata
from .parser_utils import escape_html, parse_date, to_iso_timestamp
from .routes import RouteCodec

logger = get_logger("formatters")

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
DEFAULT_DATE_FORMAT = "{year}년 {month}월 {day}일"
DEFAULT_TIMEZONE = "Asia/Seoul"

__all__ = [
    "DisplayConfig",
    "RenderResult",
    "StatementFormatter",
    "escape_html",
]


@dataclass
class DisplayConfig:
    """Locale settings for rendered dates."""

    date_format: str = DEFAULT_DATE_FORMAT
    timezone: str = DEFAULT_TIMEZONE

    @classmethod
    def from_env(cls) -> "DisplayConfig":
        """Load display settings from environment variables."""
        return cls(
            date_format=os.environ.get("STATEMENTS_DATE_FORMAT", DEFAULT_DATE_FORMAT),
            timezone=os.environ.get("STATEMENTS_TIMEZONE", DEFAULT_TIMEZONE),
        )


@dataclass
class RenderResult:
    """An HTML fragment plus whether the requested content was shown."""

    html: str
    success: bool


def _attachment_name(url: str) -> str:
    path = urlsplit(url).path
    name = unquote(path.rstrip("/").rsplit("/", 1)[-1]) if path else ""
    return name or url


class StatementFormatter:
    """Builds HTML fragments for statements."""

    def __init__(
        self,
        routes: Optional[RouteCodec] = None,
        config: Optional[DisplayConfig] = None,
        renderer: Optional[MarkdownRenderer] = None,
        template_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self.routes = routes or RouteCodec()
        self.config = config or DisplayConfig()
        self.renderer = renderer or MarkdownRenderer()

        self.template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.jinja_env.filters["localdate"] = self.format_date
        self.jinja_env.filters["isodate"] = to_iso_timestamp
        self.jinja_env.filters["detail_url"] = self.routes.encode
        self.jinja_env.filters["basename"] = _attachment_name

        self._tzinfo = tz.gettz(self.config.timezone)
        if self._tzinfo is None:
            logger.warning(f"Unknown display timezone {self.config.timezone!r}, using UTC")
            self._tzinfo = tz.UTC

    def _render(self, template_name: str, **context: Any) -> str:
        template = self.jinja_env.get_template(template_name)
        return template.render(list_url=self.routes.list_url(), **context).strip()

    def format_date(self, value: Any) -> str:
        """Format a date in the display locale; invalid input renders as ""."""
        result = parse_date(value)
        if not result.is_valid:
            return ""
        try:
            local = result.value.astimezone(self._tzinfo)
        except OverflowError:
            logger.debug(f"Date {result.value} is out of range in {self.config.timezone}")
            return ""
        return self.config.date_format.format(year=local.year, month=local.month, day=local.day)

    def render_card(self, statement: Optional[Statement]) -> str:
        if statement is None:
            return ""
        return self._render("card.html", statement=statement)

    def render_list(self, statements: Optional[Sequence[Statement]]) -> RenderResult:
        """Render the list view; an empty collection renders the empty notice."""
        if not statements:
            return RenderResult(html=self.render_empty(), success=True)
        return RenderResult(html=self._render("list.html", statements=statements), success=True)

    def render_list_for_sync(
        self,
        statements: Optional[Sequence[Statement]],
        metadata: Optional[SyncMetadata],
    ) -> RenderResult:
        """Render the list view, telling a failed sync apart from an empty one."""
        if not statements and metadata is not None and metadata.is_failure:
            return RenderResult(
                html=self.render_error(metadata.error_message, metadata.last_updated_at),
                success=False,
            )
        return self.render_list(statements)

    def render_detail(self, statement: Optional[Statement]) -> RenderResult:
        """Render the detail view; unpublished or missing statements are withheld."""
        if statement is None or not statement.published:
            return RenderResult(html=self._render("unpublished.html"), success=False)

        body = Markup(render_body(statement.body, self.renderer))
        return RenderResult(html=self._render("detail.html", statement=statement, body=body), success=True)

    def render_empty(self) -> str:
        return self._render("empty.html")

    def render_loading(self) -> str:
        return self._render("loading.html")

    def render_error(self, message: Optional[str] = None, last_updated: Any = None) -> str:
        """Render the list error notice, optionally with the last good update time."""
        formatted = self.format_date(last_updated) if last_updated else ""
        return self._render("error.html", message=message, last_updated=formatted)

    def render_detail_error(self, message: Optional[str] = None) -> str:
        return self._render("detail_error.html", message=message)

    def render_not_found(self, message: Optional[str] = None) -> str:
        return self._render("not_found.html", message=message)
