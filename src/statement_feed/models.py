"""Data models for the statement feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .parser_utils import parse_date, to_iso_timestamp

RawRecord = Mapping[str, Any]

SYNC_SUCCESS = "success"
SYNC_PARTIAL = "partial"
SYNC_ERROR = "error"
SYNC_STATUSES = (SYNC_SUCCESS, SYNC_PARTIAL, SYNC_ERROR)

METADATA_VERSION = "1.0"


@dataclass(frozen=True)
class Statement:
    """Canonical published statement built from one raw record.

    Instances only exist with a non-blank ``title`` and ``slug`` and a valid
    ``date``; the parser never constructs one otherwise.
    """

    title: str
    date: datetime
    summary: str
    body: str
    slug: str
    published: bool = True
    id: Optional[str] = None
    image: Optional[str] = None
    attachments: Tuple[str, ...] = ()
    category: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable mapping."""
        return {
            "title": self.title,
            "date": to_iso_timestamp(self.date),
            "summary": self.summary,
            "body": self.body,
            "slug": self.slug,
            "published": self.published,
            "id": self.id,
            "image": self.image,
            "attachments": list(self.attachments),
            "category": self.category,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ParseError:
    """A single reason a raw record could not become a statement."""

    MALFORMED_INPUT = "malformed_input"
    REQUIRED_FIELD_MISSING = "required_field_missing"
    INTERNAL_PARSE_FAILURE = "internal_parse_failure"

    code: str
    message: str
    field_name: Optional[str] = None

    def __str__(self) -> str:
        return self.message


@dataclass
class ParseOutcome:
    """Result of parsing one raw record."""

    statement: Optional[Statement] = None
    errors: List[ParseError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.statement is not None and not self.errors

    @property
    def error_messages(self) -> List[str]:
        return [error.message for error in self.errors]


@dataclass
class SyncMetadata:
    """Batch-level status of the last content sync."""

    last_updated: Optional[str] = None
    sync_status: str = SYNC_SUCCESS
    error_message: Optional[str] = None
    statements_count: int = 0
    version: str = METADATA_VERSION

    @property
    def last_updated_at(self) -> Optional[datetime]:
        return parse_date(self.last_updated).value

    @property
    def is_failure(self) -> bool:
        return self.sync_status == SYNC_ERROR

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["SyncMetadata"]:
        """Read the camelCase metadata record, tolerating missing keys."""
        if not isinstance(data, Mapping):
            return None

        status = data.get("syncStatus", SYNC_SUCCESS)
        if status not in SYNC_STATUSES:
            status = SYNC_ERROR

        count = data.get("statementsCount", data.get("count", 0))
        if isinstance(count, bool) or not isinstance(count, int):
            count = 0

        last_updated = data.get("lastUpdated")
        error_message = data.get("errorMessage")

        return cls(
            last_updated=last_updated if isinstance(last_updated, str) else None,
            sync_status=status,
            error_message=error_message if isinstance(error_message, str) else None,
            statements_count=count,
            version=str(data.get("version", METADATA_VERSION)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastUpdated": self.last_updated,
            "syncStatus": self.sync_status,
            "errorMessage": self.error_message,
            "statementsCount": self.statements_count,
            "version": self.version,
        }


@dataclass
class StatementPayload:
    """Normalized payload: raw records plus optional sync metadata."""

    statements: List[Any] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    @property
    def sync_metadata(self) -> Optional[SyncMetadata]:
        return SyncMetadata.from_dict(self.metadata)
