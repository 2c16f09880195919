"""Collection assembly for parsed statements.

Batch-parses raw records, keeps published statements, orders them by date and
resolves a single statement from a slug taken out of a URL.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

from .logging_config import get_logger
from .models import Statement, StatementPayload
from .parser_utils import EPOCH, strip_hyphens
from .statement_parser import StatementParser

logger = get_logger("collection")


@dataclass
class RecordFailure:
    """A raw record that was skipped during batch parsing."""

    index: int
    errors: List[str]

    def describe(self) -> str:
        return f"Statement {self.index} failed to parse: {', '.join(self.errors)}"


@dataclass
class BatchReport:
    """Statements kept from one batch plus what happened to the rest."""

    statements: List[Statement] = field(default_factory=list)
    total: int = 0
    failed: List[RecordFailure] = field(default_factory=list)
    unpublished: int = 0
    warnings: int = 0

    @property
    def valid(self) -> int:
        return self.total - len(self.failed)


def _sort_key(statement: Statement) -> datetime:
    value = getattr(statement, "date", None)
    if not isinstance(value, datetime):
        return EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


class StatementCollection:
    """Assembles the ordered, published-only statement list."""

    def __init__(self, parser: Optional[StatementParser] = None) -> None:
        self.parser = parser or StatementParser()

    def parse_all_with_report(self, raws: Any) -> BatchReport:
        """Parse every record independently and report per-batch counts."""
        report = BatchReport()

        if not _is_sequence(raws):
            logger.error("Statement data is not a list; nothing to parse")
            return report

        report.total = len(raws)

        for position, raw in enumerate(raws, start=1):
            outcome = self.parser.parse(raw)

            if outcome.is_valid and outcome.statement is not None:
                if outcome.statement.published:
                    report.statements.append(outcome.statement)
                else:
                    report.unpublished += 1
            else:
                report.failed.append(RecordFailure(index=position, errors=outcome.error_messages))

            if outcome.warnings:
                report.warnings += 1
                logger.warning(f"Statement {position} warnings: {outcome.warnings}")

        if report.failed:
            logger.error(
                "Statement parse errors: "
                + "; ".join(failure.describe() for failure in report.failed)
            )

        return report

    def parse_all(self, raws: Any) -> List[Statement]:
        """Parse raw records, returning only published statements in input order."""
        return self.parse_all_with_report(raws).statements

    @staticmethod
    def sort_by_date(statements: Any) -> List[Statement]:
        """Return a new list sorted newest first; ties keep their input order."""
        if not _is_sequence(statements):
            return []
        return sorted(statements, key=_sort_key, reverse=True)

    @staticmethod
    def find_by_slug(statements: Any, slug: Optional[str]) -> Optional[Statement]:
        """Find a statement by slug, tolerating hyphen drift and truncated ids.

        Slugs are compared first, verbatim and with hyphens removed. Only when
        no slug matches are ids tried (hyphens removed), accepting equality or
        a prefix relation in either direction. The first hit in collection
        order is returned, even when several ids share the query as a prefix.
        """
        if not _is_sequence(statements) or slug is None:
            return None

        query = str(slug).strip()
        if not query:
            return None
        query_bare = strip_hyphens(query)

        for statement in statements:
            candidate_slug = str(statement.slug or "").strip()
            if candidate_slug == query or strip_hyphens(candidate_slug) == query_bare:
                return statement

        if not query_bare:
            return None

        for statement in statements:
            candidate_id = strip_hyphens(str(statement.id or ""))
            if candidate_id and (
                candidate_id in (query_bare, query)
                or candidate_id.startswith(query_bare)
                or query_bare.startswith(candidate_id)
            ):
                return statement

        return None

    @staticmethod
    def normalize_payload(payload: Any) -> StatementPayload:
        """Accept a bare record list or a ``{statements, _metadata}`` wrapper."""
        if isinstance(payload, list):
            return StatementPayload(statements=list(payload), metadata=None)

        if isinstance(payload, Mapping):
            statements = payload.get("statements")
            metadata = payload.get("_metadata")
            return StatementPayload(
                statements=list(statements) if isinstance(statements, list) else [],
                metadata=dict(metadata) if isinstance(metadata, Mapping) else None,
            )

        return StatementPayload()

    def load(self, payload: Any) -> List[Statement]:
        """Normalize, parse and sort a payload in one step."""
        normalized = self.normalize_payload(payload)
        return self.sort_by_date(self.parse_all(normalized.statements))
