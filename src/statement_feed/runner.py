"""Static site build runner for statements.

Loads the synced payload, parses and orders the published statements, and
writes the list fragment, one detail fragment per statement and a JSON
catalog into an output directory.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import quote

from .collection import StatementCollection
from .config import SiteConfig
from .formatters import StatementFormatter
from .links import enhance_external_links
from .logging_config import get_logger, setup_logging
from .markdown import has_html_tags
from .models import SYNC_ERROR, SYNC_SUCCESS, Statement, SyncMetadata
from .parser_utils import sanitize_html, to_iso_timestamp
from .store import PayloadError, StatementStore

INDEX_FILE = "index.html"
CATALOG_FILE = "catalog.json"
DETAIL_DIR = "statements"


def _now_iso() -> str:
    return to_iso_timestamp(datetime.now(timezone.utc))


def detail_filename(slug: str) -> str:
    """File name for a statement's detail fragment."""
    return f"{quote(slug, safe='')}.html"


@dataclass
class BuildSummary:
    """Summary of a site build."""

    started_at: str
    completed_at: str = ""
    total_records: int = 0
    statements_rendered: int = 0
    records_failed: int = 0
    records_unpublished: int = 0
    sync_status: Optional[str] = None
    output_dir: Optional[str] = None
    failed_records: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def exit_code(self) -> int:
        """0 for a clean build, 1 on build errors, 2 when records were skipped."""
        if self.errors:
            return 1
        if self.failed_records:
            return 2
        return 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "total_records": self.total_records,
            "statements_rendered": self.statements_rendered,
            "records_failed": self.records_failed,
            "records_unpublished": self.records_unpublished,
            "sync_status": self.sync_status,
            "output_dir": self.output_dir,
            "failed_records": self.failed_records,
            "errors": self.errors,
            "exit_code": self.exit_code(),
        }


class StatementSiteBuilder:
    """Builds the statement list and detail fragments from the payload store."""

    def __init__(
        self,
        config: Optional[SiteConfig] = None,
        store: Optional[StatementStore] = None,
        collection: Optional[StatementCollection] = None,
        formatter: Optional[StatementFormatter] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or SiteConfig()
        self.store = store or StatementStore(self.config.data_path)
        self.collection = collection or StatementCollection()
        self.formatter = formatter or self.config.formatter()
        self.logger = logger or get_logger("runner")

    def build(self, output_dir: Union[str, Path]) -> BuildSummary:
        """Render every fragment into ``output_dir``.

        Args:
            output_dir: Directory to write index.html, statements/ and catalog.json

        Returns:
            BuildSummary with counts and any errors
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        summary = BuildSummary(started_at=_now_iso(), output_dir=str(output_path))
        self.logger.info(f"Building statement pages into {output_path}")

        try:
            payload = self.store.load()
        except (OSError, PayloadError) as e:
            error_msg = f"Failed to load statements: {e}"
            self.logger.error(error_msg)
            summary.errors.append(error_msg)
            summary.sync_status = SYNC_ERROR
            self._write(output_path / INDEX_FILE, self.formatter.render_error())
            summary.completed_at = _now_iso()
            return summary

        metadata = payload.sync_metadata
        summary.sync_status = metadata.sync_status if metadata else None

        report = self.collection.parse_all_with_report(payload.statements)
        summary.total_records = report.total
        summary.records_failed = len(report.failed)
        summary.records_unpublished = report.unpublished
        summary.failed_records = [failure.describe() for failure in report.failed]

        statements = self.collection.sort_by_date(self._prepare(report.statements))

        listing = self.formatter.render_list_for_sync(statements, metadata)
        self._write(output_path / INDEX_FILE, self._post_process(listing.html))
        if not listing.success:
            self.logger.warning("Sync reported an error with no statements; wrote error notice")

        detail_dir = output_path / DETAIL_DIR
        detail_dir.mkdir(parents=True, exist_ok=True)
        for statement in statements:
            result = self.formatter.render_detail(statement)
            if not result.success:
                continue
            self._write(detail_dir / detail_filename(statement.slug), self._post_process(result.html))
            summary.statements_rendered += 1

        self._write_catalog(output_path / CATALOG_FILE, statements, metadata)

        summary.completed_at = _now_iso()
        self.logger.info(
            f"Rendered {summary.statements_rendered} of {summary.total_records} records "
            f"({summary.records_failed} failed, {summary.records_unpublished} unpublished)"
        )
        return summary

    def _prepare(self, statements: Sequence[Statement]) -> List[Statement]:
        if not self.config.sanitize_html_bodies:
            return list(statements)
        return [
            replace(statement, body=sanitize_html(statement.body))
            if has_html_tags(statement.body)
            else statement
            for statement in statements
        ]

    def _post_process(self, html: str) -> str:
        return enhance_external_links(html, self.config.site_url)

    def _write_catalog(
        self,
        path: Path,
        statements: Sequence[Statement],
        metadata: Optional[SyncMetadata],
    ) -> None:
        if metadata is None:
            metadata = SyncMetadata(
                last_updated=_now_iso(),
                sync_status=SYNC_SUCCESS,
                statements_count=len(statements),
            )
        catalog = {
            "_metadata": metadata.to_dict(),
            "statements": [
                dict(statement.to_dict(), url=self.formatter.routes.encode(statement.slug))
                for statement in statements
            ],
        }
        self._write(path, json.dumps(catalog, ensure_ascii=False, indent=2, default=str))

    def _write(self, path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")
        self.logger.debug(f"Wrote {path}")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the statement site builder."""
    parser = argparse.ArgumentParser(
        description="Statement site builder - renders statement list and detail pages from synced data"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to site configuration YAML file (default: config/statements.yaml)",
    )

    parser.add_argument(
        "--data",
        type=Path,
        help="Path to statements JSON file (default: data/statements.json)",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("build/statements"),
        help="Output directory for rendered pages (default: build/statements)",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write logs to file",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output summary as JSON",
    )

    args = parser.parse_args(argv)

    logger = setup_logging(
        log_file=args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
        console=not args.json,
    )

    try:
        config = SiteConfig.from_env(args.config)
        store = StatementStore(args.data) if args.data else StatementStore(config.data_path)

        builder = StatementSiteBuilder(config=config, store=store, logger=logger)
        summary = builder.build(args.output)

        if args.json:
            print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
        else:
            logger.info(f"Build summary: {summary.statements_rendered}/{summary.total_records} statements rendered")
            if summary.failed_records:
                logger.warning(f"Skipped records: {len(summary.failed_records)}")
            if summary.errors:
                logger.error(f"Errors: {len(summary.errors)}")

        return summary.exit_code()

    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
