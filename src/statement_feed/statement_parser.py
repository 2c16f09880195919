"""Statement parser and validator.

Turns one loosely structured record from the content source into a canonical
:class:`~.models.Statement`, or into a list of :class:`~.models.ParseError`
values explaining why it could not be used. Field names vary between sources,
so each logical field is resolved through an ordered table of candidate keys;
the first candidate whose value passes its validator wins. Values of the wrong
type are treated as absent rather than as errors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from .logging_config import get_logger
from .models import ParseError, ParseOutcome, Statement
from .parser_utils import (
    coerce_flag,
    ensure_string_list,
    parse_date,
    slugify,
    to_iso_timestamp,
)

logger = get_logger("statement_parser")


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _is_date_input(value: Any) -> bool:
    # Falsy values and NaN fall through to the next key
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value) and not isinstance(value, bool)


def _accept_any(value: Any) -> bool:
    return True


@dataclass(frozen=True)
class FieldCandidate:
    """One source key that may supply a logical field."""

    name: str
    validator: Callable[[Any], bool] = _is_text


FieldTable = Dict[str, Tuple[FieldCandidate, ...]]

DEFAULT_FIELD_TABLE: FieldTable = {
    "title": (FieldCandidate("title"), FieldCandidate("name")),
    "summary": (FieldCandidate("summary"), FieldCandidate("description")),
    "body": (FieldCandidate("body"), FieldCandidate("content")),
    "slug": (FieldCandidate("slug"), FieldCandidate("id")),
    "id": (FieldCandidate("id"),),
    "image": (FieldCandidate("image"), FieldCandidate("cover")),
    "category": (FieldCandidate("category"), FieldCandidate("type")),
    "date": (
        FieldCandidate("date", _is_date_input),
        FieldCandidate("created_time", _is_date_input),
        FieldCandidate("last_edited_time", _is_date_input),
    ),
    "published": (
        FieldCandidate("published", _accept_any),
        FieldCandidate("public", _accept_any),
    ),
}


def resolve_field(
    raw: Mapping[str, Any],
    candidates: Sequence[FieldCandidate],
    default: Any = None,
) -> Any:
    """Return the first candidate value accepted by its validator."""
    for candidate in candidates:
        value = raw.get(candidate.name)
        if candidate.validator(value):
            return value
    return default


class StatementParser:
    """Parses raw records into canonical statements."""

    MSG_NO_DATA = "Statement data is missing."
    MSG_NOT_OBJECT = "Statement data is not a valid object."
    MSG_TITLE_REQUIRED = "Statement title is required."
    MSG_DATE_INVALID = "Statement date is missing or invalid."
    MSG_SLUG_REQUIRED = "Statement slug or id is required."
    MSG_SUMMARY_MISSING = "Statement summary is empty; falling back to the title."
    MSG_BODY_MISSING = "Statement body is empty."

    def __init__(self, field_table: Optional[FieldTable] = None) -> None:
        self.field_table = dict(DEFAULT_FIELD_TABLE)
        if field_table:
            self.field_table.update(field_table)

    def _resolve(self, raw: Mapping[str, Any], name: str, default: Any = None) -> Any:
        return resolve_field(raw, self.field_table.get(name, ()), default)

    def resolve_published(self, raw: Mapping[str, Any]) -> bool:
        """Resolve the publish flag; the first key present decides, default True."""
        for candidate in self.field_table["published"]:
            if candidate.name in raw and candidate.validator(raw[candidate.name]):
                flag = coerce_flag(raw[candidate.name])
                return True if flag is None else flag
        return True

    def parse(self, raw: Any) -> ParseOutcome:
        """Parse one raw record.

        Required-field problems are all collected before giving up, so a
        record missing both title and date reports both.
        """
        outcome = ParseOutcome()

        if raw is None:
            outcome.errors.append(ParseError(ParseError.MALFORMED_INPUT, self.MSG_NO_DATA))
            return outcome

        if not isinstance(raw, Mapping):
            outcome.errors.append(ParseError(ParseError.MALFORMED_INPUT, self.MSG_NOT_OBJECT))
            return outcome

        try:
            return self._parse_mapping(raw, outcome)
        except Exception as exc:
            logger.exception(f"Unexpected failure while parsing statement: {exc}")
            outcome.statement = None
            outcome.errors.append(
                ParseError(
                    ParseError.INTERNAL_PARSE_FAILURE,
                    f"Failed to parse statement data: {exc}",
                )
            )
            return outcome

    def _parse_mapping(self, raw: Mapping[str, Any], outcome: ParseOutcome) -> ParseOutcome:
        title = self._resolve(raw, "title", "")
        summary = self._resolve(raw, "summary", "")
        body = self._resolve(raw, "body", "")
        slug = self._resolve(raw, "slug") or slugify(title)
        date_input = self._resolve(raw, "date")
        published = self.resolve_published(raw)

        if not title.strip():
            outcome.errors.append(
                ParseError(ParseError.REQUIRED_FIELD_MISSING, self.MSG_TITLE_REQUIRED, "title")
            )

        date_result = parse_date(date_input)
        if not date_result.is_valid:
            logger.debug(f"Date resolution failed: {date_result.reason}")
            outcome.errors.append(
                ParseError(ParseError.REQUIRED_FIELD_MISSING, self.MSG_DATE_INVALID, "date")
            )

        if not summary.strip():
            outcome.warnings.append(self.MSG_SUMMARY_MISSING)

        if not body.strip():
            outcome.warnings.append(self.MSG_BODY_MISSING)

        if not slug.strip():
            outcome.errors.append(
                ParseError(ParseError.REQUIRED_FIELD_MISSING, self.MSG_SLUG_REQUIRED, "slug")
            )

        if outcome.errors:
            return outcome

        parsed_date = date_result.value
        parsed_iso = to_iso_timestamp(parsed_date)

        raw_metadata = raw.get("metadata")
        metadata: Dict[str, Any] = dict(raw_metadata) if isinstance(raw_metadata, Mapping) else {}
        metadata["createdAt"] = raw.get("created_time") or parsed_iso
        metadata["updatedAt"] = raw.get("last_edited_time") or parsed_iso

        clean_title = title.strip()
        clean_summary = summary.strip() or clean_title

        outcome.statement = Statement(
            title=clean_title,
            date=parsed_date,
            summary=clean_summary,
            body=body.strip() or summary.strip() or clean_title,
            slug=slug.strip(),
            published=published,
            id=self._resolve(raw, "id"),
            image=self._resolve(raw, "image"),
            attachments=tuple(ensure_string_list(raw.get("attachments"))),
            category=self._resolve(raw, "category"),
            metadata=metadata,
        )
        return outcome


_default_parser = StatementParser()


def parse_statement(raw: Any) -> ParseOutcome:
    """Parse a raw record with the default field table."""
    return _default_parser.parse(raw)
