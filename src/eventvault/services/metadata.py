"""
Metadata service for the asset catalogue.

Every uploaded file has exactly one row in the DuckDB ``assets`` table. The
service owns that table: it assigns ids and upload timestamps, answers the
paginated listing used by the gallery, the structured search used by the
REST API, and the aggregate numbers shown on the dashboard.

All values reach SQL as bound parameters; nothing user-supplied is ever
formatted into a query string.

Usage Examples:
    service = MetadataService("./data/eventvault.duckdb")

    asset = service.create({"event": "Gala", "date": "2024-05-01", "filename": "assets/1-a.jpg", ...})
    page = service.list_assets(page_size=100)
    more = service.list_assets(page_size=100, cursor=page.next_cursor)
    hits = service.search(SearchCriteria(event="Gala", tags=["stage"]))
"""

import base64
import binascii
import json
import threading
import time
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import duckdb

from ..errors import DatabaseError, EventVaultError, ValidationError
from ..logging_config import get_logger, log_performance
from ..models.asset import (
    Asset,
    AssetPage,
    PhotographerCount,
    SearchCriteria,
    StatsData,
    derive_file_type,
    validate_event_fields,
)
from ..models.database import DatabaseManager, get_database_manager
from ..models.schema import ASSET_COLUMNS

logger = get_logger(__name__)

_SELECT_COLUMNS = ", ".join(ASSET_COLUMNS)
_CURSOR_PREFIX = "offset:"

TOP_PHOTOGRAPHERS_LIMIT = 5
RECENT_UPLOADS_LIMIT = 5


def encode_cursor(offset: int) -> str:
    return base64.urlsafe_b64encode(f"{_CURSOR_PREFIX}{offset}".encode()).decode("ascii")


def decode_cursor(cursor: str) -> int:
    """
    Turn an opaque listing cursor back into a row offset.

    Raises:
        ValidationError: If the cursor was not produced by ``encode_cursor``
    """
    try:
        text = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("ascii")
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValidationError(f"Invalid cursor: {cursor}", code="invalid_cursor") from e

    if not text.startswith(_CURSOR_PREFIX) or not text[len(_CURSOR_PREFIX) :].isdigit():
        raise ValidationError(f"Invalid cursor: {cursor}", code="invalid_cursor")
    return int(text[len(_CURSOR_PREFIX) :])


def _tag_needle(tag: str) -> str:
    # Tags are stored as a JSON array, so match the JSON-escaped text
    return json.dumps(tag)[1:-1]


class MetadataService:
    """
    Service for reading and writing asset records in DuckDB.

    Thread Safety:
        Public methods serialize on an internal lock; the connection is opened
        and closed around each operation.
    """

    def __init__(self, db_path: str, clock: Callable[[], datetime] | None = None):
        """
        Initialize the metadata service.

        Args:
            db_path: Path to the DuckDB database file (created if missing)
            clock: Source of upload timestamps (defaults to the current UTC time)
        """
        self.db_path = db_path
        self._clock = clock or Asset.now
        self._lock = threading.RLock()
        self._db_manager: DatabaseManager | None = None

        logger.info("metadata_service_initialized", db_path=db_path)

    @classmethod
    def from_settings(cls, settings) -> "MetadataService":
        return cls(settings.metadata_db_path)

    @property
    def db_manager(self) -> DatabaseManager:
        """Get database manager, creating the database if needed."""
        if self._db_manager is None:
            try:
                self._db_manager = get_database_manager(self.db_path, create_if_missing=True)
            except Exception as e:
                raise DatabaseError(f"Failed to open metadata database: {e}", original_exception=e) from e
        return self._db_manager

    def _now(self) -> datetime:
        now = self._clock()
        # Stored as ISO text, so every timestamp must share one offset to sort correctly
        if now.tzinfo is None:
            return now.replace(tzinfo=UTC)
        return now.astimezone(UTC)

    @staticmethod
    def _row_to_asset(row: tuple) -> Asset:
        record = dict(zip(ASSET_COLUMNS, row, strict=True))
        return Asset(
            id=record["id"],
            filename=record["filename"],
            original_filename=record["original_filename"],
            url=record["url"],
            file_type=record["file_type"],
            mime_type=record["mime_type"],
            size=int(record["size"]),
            uploaded_at=datetime.fromisoformat(record["uploaded_at"]),
            event=record["event"],
            date=record["event_date"],
            photographer=record["photographer"] or "",
            tags=json.loads(record["tags"]) if record["tags"] else [],
            description=record["description"] or "",
            location=record["location"] or "",
            width=record["width"],
            height=record["height"],
            duration=record["duration"],
        )

    def create(self, fields: dict[str, Any]) -> Asset:
        """
        Create an asset record.

        ``fields`` may use snake_case or the API's camelCase names. ``event``
        and ``date`` are required; every other field defaults to its empty
        value. The id and upload timestamp are assigned here.

        Args:
            fields: File and event metadata for the new record

        Returns:
            Asset: The stored record

        Raises:
            ValidationError: If event or date is missing, or the date is not YYYY-MM-DD
            DatabaseError: If the insert fails
        """
        draft = Asset.from_dict(
            {
                **fields,
                "id": Asset.new_id(),
                "uploaded_at": self._now(),
            }
        )
        draft.event = str(draft.event or "").strip()
        draft.date = str(draft.date or "").strip()
        validate_event_fields(draft.event, draft.date)
        if not fields.get("file_type") and not fields.get("fileType"):
            draft.file_type = derive_file_type(draft.mime_type, draft.original_filename or draft.filename)

        try:
            with self._lock, self.db_manager as db:
                db.execute_query(
                    f"INSERT INTO assets ({_SELECT_COLUMNS}) VALUES ({', '.join('?' for _ in ASSET_COLUMNS)})",
                    (
                        draft.id,
                        draft.filename,
                        draft.original_filename,
                        draft.url,
                        draft.file_type,
                        draft.mime_type,
                        draft.size,
                        draft.width,
                        draft.height,
                        draft.duration,
                        draft.uploaded_at.isoformat(timespec="microseconds"),
                        draft.event,
                        draft.date,
                        draft.location,
                        draft.photographer,
                        json.dumps(draft.tags) if draft.tags else None,
                        draft.description,
                    ),
                )

            logger.info(
                "asset_record_created",
                asset_id=draft.id,
                filename=draft.filename,
                event_name=draft.event,
                file_type=draft.file_type,
            )
            return draft

        except EventVaultError:
            raise
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to create asset record: {e}", details={"filename": draft.filename}, original_exception=e
            ) from e

    def list_assets(self, page_size: int = 100, cursor: str | None = None) -> AssetPage:
        """
        One page of assets, most recently uploaded first.

        A continuation cursor is returned only when the page came back full;
        a full final page therefore yields one extra, empty request.

        Args:
            page_size: Maximum number of records in the page
            cursor: Opaque position returned by a previous call

        Returns:
            AssetPage: Records plus the cursor for the next page, if any

        Raises:
            ValidationError: If page_size is below 1 or the cursor is malformed
            DatabaseError: If the query fails
        """
        if page_size < 1:
            raise ValidationError(f"page_size must be at least 1, got {page_size}", code="invalid_page_size")
        offset = decode_cursor(cursor) if cursor else 0

        start = time.perf_counter()
        try:
            with self._lock, self.db_manager as db:
                rows = db.execute_query(
                    f"""SELECT {_SELECT_COLUMNS} FROM assets
                        ORDER BY uploaded_at DESC, id DESC
                        LIMIT ? OFFSET ?""",
                    (page_size, offset),
                )
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to list assets: {e}", original_exception=e) from e

        records = [self._row_to_asset(row) for row in rows]
        next_cursor = encode_cursor(offset + len(records)) if len(records) == page_size else None

        log_performance("list_assets", time.perf_counter() - start, count=len(records), offset=offset)
        return AssetPage(records=records, next_cursor=next_cursor)

    def search(self, criteria: SearchCriteria) -> list[Asset]:
        """
        Structured search, most recently uploaded first.

        Constraints are combined with AND:
        - event / photographer: case-sensitive substring match
        - tags: at least one of the given tags appears
        - date_from / date_to: strictly after / strictly before (both bounds exclusive)

        Raises:
            DatabaseError: If the query fails
        """
        clauses: list[str] = []
        params: list[Any] = []

        if criteria.event:
            clauses.append("strpos(event, ?) > 0")
            params.append(criteria.event)
        if criteria.photographer:
            clauses.append("strpos(photographer, ?) > 0")
            params.append(criteria.photographer)
        if criteria.tags:
            clauses.append("(" + " OR ".join("strpos(coalesce(tags, ''), ?) > 0" for _ in criteria.tags) + ")")
            params.extend(_tag_needle(tag) for tag in criteria.tags)
        if criteria.date_from:
            clauses.append("event_date > ?")
            params.append(criteria.date_from)
        if criteria.date_to:
            clauses.append("event_date < ?")
            params.append(criteria.date_to)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        start = time.perf_counter()
        try:
            with self._lock, self.db_manager as db:
                rows = db.execute_query(
                    f"SELECT {_SELECT_COLUMNS} FROM assets {where} ORDER BY uploaded_at DESC, id DESC",
                    params,
                )
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to search assets: {e}", original_exception=e) from e

        records = [self._row_to_asset(row) for row in rows]
        log_performance("search_assets", time.perf_counter() - start, count=len(records), filters=len(clauses))
        return records

    def get_by_id(self, asset_id: str) -> Asset | None:
        """
        Get an asset by ID.

        Returns:
            Asset instance or None if not found

        Raises:
            DatabaseError: If retrieval fails
        """
        try:
            with self._lock, self.db_manager as db:
                rows = db.execute_query(f"SELECT {_SELECT_COLUMNS} FROM assets WHERE id = ?", (asset_id,))
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to get asset {asset_id}: {e}", original_exception=e) from e

        return self._row_to_asset(rows[0]) if rows else None

    def get_by_filename(self, filename: str) -> Asset | None:
        """The record whose stored object key is ``filename``, if any."""
        try:
            with self._lock, self.db_manager as db:
                rows = db.execute_query(
                    f"SELECT {_SELECT_COLUMNS} FROM assets WHERE filename = ? LIMIT 1", (filename,)
                )
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to look up {filename}: {e}", original_exception=e) from e

        return self._row_to_asset(rows[0]) if rows else None

    def stats(self) -> StatsData:
        """
        Aggregate totals for the dashboard.

        This is a full scan of the catalogue. Photographers are ranked by asset
        count with ties kept in upload order. Records without a photographer are
        counted under the empty name like any other. Recent uploads are the five
        newest records.

        Raises:
            DatabaseError: If the scan fails
        """
        start = time.perf_counter()
        try:
            with self._lock, self.db_manager as db:
                rows = db.execute_query(f"SELECT {_SELECT_COLUMNS} FROM assets ORDER BY uploaded_at ASC, id ASC")
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to compute stats: {e}", original_exception=e) from e

        assets = [self._row_to_asset(row) for row in rows]

        photographers = Counter(asset.photographer for asset in assets)
        events = {asset.event for asset in assets if asset.event}
        recent = sorted(assets, key=lambda asset: asset.uploaded_at, reverse=True)[:RECENT_UPLOADS_LIMIT]

        stats = StatsData(
            total_assets=len(assets),
            total_events=len(events),
            top_photographers=[
                PhotographerCount(name=name, count=count)
                for name, count in photographers.most_common(TOP_PHOTOGRAPHERS_LIMIT)
            ],
            recent_uploads=recent,
        )

        log_performance("compute_stats", time.perf_counter() - start, total_assets=stats.total_assets)
        return stats

    def delete(self, asset_id: str) -> bool:
        """
        Delete an asset record by ID. The stored object is left alone.

        Returns:
            True if deleted, False if not found

        Raises:
            DatabaseError: If deletion fails
        """
        try:
            with self._lock, self.db_manager as db:
                existing = db.execute_query("SELECT id FROM assets WHERE id = ?", (asset_id,))
                if not existing:
                    logger.warning("asset_not_found_for_deletion", asset_id=asset_id)
                    return False

                db.execute_query("DELETE FROM assets WHERE id = ?", (asset_id,))

            logger.info("asset_record_deleted", asset_id=asset_id)
            return True

        except duckdb.Error as e:
            raise DatabaseError(f"Failed to delete asset {asset_id}: {e}", original_exception=e) from e

    def list_filenames(self) -> set[str]:
        """Object keys referenced by any record."""
        try:
            with self._lock, self.db_manager as db:
                rows = db.execute_query("SELECT filename FROM assets")
        except duckdb.Error as e:
            raise DatabaseError(f"Failed to list filenames: {e}", original_exception=e) from e
        return {row[0] for row in rows}

    def check_health(self) -> bool:
        """
        Check that the catalogue can be opened and queried.

        Returns:
            bool: True if a trivial query succeeds
        """
        try:
            with self._lock, self.db_manager as db:
                db.execute_query("SELECT COUNT(*) FROM assets")
            return True
        except Exception as e:
            logger.error("metadata_health_check_failed", db_path=self.db_path, error=str(e))
            return False
