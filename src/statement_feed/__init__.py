"""Statement feed package namespace."""

from importlib import import_module
from typing import Any

__all__ = [
    "Statement",
    "ParseError",
    "ParseOutcome",
    "SyncMetadata",
    "StatementParser",
    "parse_statement",
    "StatementCollection",
    "MarkdownRenderer",
    "render_markdown",
    "render_body",
    "StatementFormatter",
    "DisplayConfig",
    "RouteCodec",
    "enhance_external_links",
    "StatementStore",
    "SiteConfig",
    "StatementSiteBuilder",
]

_EXPORTS = {
    "Statement": "models",
    "ParseError": "models",
    "ParseOutcome": "models",
    "SyncMetadata": "models",
    "StatementParser": "statement_parser",
    "parse_statement": "statement_parser",
    "StatementCollection": "collection",
    "MarkdownRenderer": "markdown",
    "render_markdown": "markdown",
    "render_body": "markdown",
    "StatementFormatter": "formatters",
    "DisplayConfig": "formatters",
    "RouteCodec": "routes",
    "enhance_external_links": "links",
    "StatementStore": "store",
    "SiteConfig": "config",
    "StatementSiteBuilder": "runner",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(f"src.statement_feed.{_EXPORTS[name]}")
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(__all__)
