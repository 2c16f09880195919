"""JSON payload store for synced statements.

Reads and writes ``data/statements.json`` in the wrapper format
``{"_metadata": {...}, "statements": [...]}`` and applies the fallback policy
used when a sync from the content source fails or comes back empty: a
previously saved, non-empty statement list is never replaced by nothing.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Union

from .collection import StatementCollection
from .logging_config import get_logger
from .models import (
    SYNC_ERROR,
    SYNC_PARTIAL,
    SYNC_SUCCESS,
    StatementPayload,
    SyncMetadata,
)
from .parser_utils import to_iso_timestamp

logger = get_logger("store")

MSG_INVALID_FORMAT = "Invalid data format: expected array"
MSG_NO_STATEMENTS = "No statements found in database"
MSG_KEPT_PREVIOUS = "No statements from content source; kept previous data"


class PayloadError(ValueError):
    """Raised when a stored payload cannot be read as JSON."""


@dataclass
class SyncResolution:
    """Statements to save after a sync attempt, with the resulting status."""

    statements: List[Any] = field(default_factory=list)
    sync_status: str = SYNC_SUCCESS
    error_message: Optional[str] = None


class StatementStore:
    """File-backed store for the statements payload."""

    DEFAULT_PATH = Path("data/statements.json")

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        data_path = Path(path) if path else self.DEFAULT_PATH
        if not data_path.is_absolute():
            data_path = Path.cwd() / data_path
        self.path = data_path

    def load(self) -> StatementPayload:
        """Read and normalize the payload; a missing file is an empty payload."""
        if not self.path.exists():
            logger.warning(f"Statements file not found: {self.path}")
            return StatementPayload()

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as exc:
            raise PayloadError(f"Invalid UTF-8 in {self.path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise PayloadError(f"Invalid JSON in {self.path}: {exc}") from exc

        return StatementCollection.normalize_payload(payload)

    def existing_statements(self) -> List[Any]:
        """Return previously saved raw statements, or [] if none can be read."""
        if not self.path.exists():
            return []
        try:
            return self.load().statements
        except (OSError, PayloadError) as exc:
            logger.error(f"Failed to read existing statements: {exc}")
            return []

    def save(
        self,
        statements: Any,
        *,
        sync_status: str = SYNC_SUCCESS,
        error_message: Optional[str] = None,
        last_updated: Optional[str] = None,
    ) -> SyncMetadata:
        """Write statements with a fresh metadata record."""
        records = statements if isinstance(statements, list) else []
        metadata = SyncMetadata(
            last_updated=last_updated or to_iso_timestamp(datetime.now(timezone.utc)),
            sync_status=sync_status,
            error_message=error_message,
            statements_count=len(records),
        )

        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"_metadata": metadata.to_dict(), "statements": records}
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2, default=str), encoding="utf-8")

        logger.info(f"Saved {len(records)} statements to {self.path}")
        if sync_status in (SYNC_PARTIAL, SYNC_ERROR):
            logger.warning(f"Sync completed with status: {sync_status}")
            if error_message:
                logger.warning(f"  Error: {error_message}")
        return metadata

    def resolve_sync(self, statements: Any, *, error: Optional[BaseException] = None) -> SyncResolution:
        """Decide what to save after a sync attempt.

        Args:
            statements: Records returned by the content source
            error: Exception raised by the sync, if any

        Returns:
            SyncResolution with the records to save and the sync status
        """
        resolution = SyncResolution(statements=statements if isinstance(statements, list) else [])

        if error is not None:
            resolution.sync_status = SYNC_ERROR
            resolution.error_message = str(error)
            cached = self.existing_statements()
            if cached:
                logger.info(f"Using {len(cached)} cached statements as fallback")
                resolution.statements = cached
                resolution.sync_status = SYNC_PARTIAL
                resolution.error_message = f"Sync failed, using cached data: {error}"
        else:
            if not isinstance(statements, list):
                logger.warning("Statements data is not a list, discarding it")
                resolution.sync_status = SYNC_PARTIAL
                resolution.error_message = MSG_INVALID_FORMAT
            if not resolution.statements:
                logger.warning("No statements found. This might indicate a problem.")
                resolution.sync_status = SYNC_PARTIAL
                resolution.error_message = MSG_NO_STATEMENTS

        if not resolution.statements and (
            resolution.sync_status != SYNC_SUCCESS or resolution.error_message
        ):
            existing = self.existing_statements()
            if existing:
                logger.info(f"Keeping {len(existing)} existing statements (sync returned 0)")
                resolution.statements = existing
                if resolution.sync_status == SYNC_SUCCESS:
                    resolution.sync_status = SYNC_PARTIAL
                if not resolution.error_message:
                    resolution.error_message = MSG_KEPT_PREVIOUS

        return resolution

    def sync(self, statements: Any, *, error: Optional[BaseException] = None) -> SyncMetadata:
        """Resolve a sync attempt and persist the outcome."""
        resolution = self.resolve_sync(statements, error=error)
        return self.save(
            resolution.statements,
            sync_status=resolution.sync_status,
            error_message=resolution.error_message,
        )
