"""Tests for statement data models."""

from datetime import datetime, timezone

import pytest

from src.statement_feed.models import ParseError, ParseOutcome, Statement, SyncMetadata


def test_sync_metadata_from_dict():
    metadata = SyncMetadata.from_dict(
        {
            "lastUpdated": "2024-01-15T01:00:00.000Z",
            "syncStatus": "partial",
            "errorMessage": "No statements found in database",
            "statementsCount": 3,
            "version": "1.0",
        }
    )
    assert metadata.sync_status == "partial"
    assert metadata.error_message == "No statements found in database"
    assert metadata.statements_count == 3
    assert metadata.last_updated_at == datetime(2024, 1, 15, 1, 0, tzinfo=timezone.utc)
    assert not metadata.is_failure


def test_sync_metadata_count_synonym():
    assert SyncMetadata.from_dict({"count": 7}).statements_count == 7


def test_sync_metadata_defaults_for_missing_keys():
    metadata = SyncMetadata.from_dict({})
    assert metadata.sync_status == "success"
    assert metadata.last_updated is None
    assert metadata.last_updated_at is None
    assert metadata.statements_count == 0
    assert metadata.version == "1.0"


def test_sync_metadata_unknown_status_is_error():
    assert SyncMetadata.from_dict({"syncStatus": "exploded"}).is_failure


@pytest.mark.parametrize("count", ["3", True, None, 2.5])
def test_sync_metadata_bad_count_is_zero(count):
    assert SyncMetadata.from_dict({"statementsCount": count}).statements_count == 0


@pytest.mark.parametrize("data", [None, [], "text"])
def test_sync_metadata_from_non_mapping(data):
    assert SyncMetadata.from_dict(data) is None


def test_sync_metadata_to_dict_round_trip():
    metadata = SyncMetadata(
        last_updated="2024-01-15T01:00:00.000Z",
        sync_status="error",
        error_message="boom",
        statements_count=0,
    )
    assert SyncMetadata.from_dict(metadata.to_dict()) == metadata


def test_parse_error_str_is_message():
    error = ParseError(ParseError.REQUIRED_FIELD_MISSING, "Statement title is required.", "title")
    assert str(error) == "Statement title is required."
    assert error.field_name == "title"


def test_parse_outcome_validity():
    statement = Statement(
        title="T",
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        summary="T",
        body="T",
        slug="t",
    )
    assert ParseOutcome(statement=statement).is_valid
    assert not ParseOutcome().is_valid
    assert not ParseOutcome(
        statement=statement,
        errors=[ParseError(ParseError.MALFORMED_INPUT, "bad")],
    ).is_valid
