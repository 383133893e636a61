"""
Orphan sweep for the assets bucket.

An object becomes an orphan when its bytes were stored but the metadata
record was never created (for example the client died between the PUT and
the metadata call). The sweep deletes objects under ``assets/`` that no
record references, once they are older than a grace period so uploads that
are still in flight are left alone.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from ..errors import ValidationError
from ..logging_config import get_logger
from .metadata import MetadataService
from .storage import ASSET_KEY_PREFIX, StorageService

logger = get_logger(__name__)


@dataclass
class SweepReport:
    scanned: int = 0
    orphans: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    dry_run: bool = False


def discard_unreferenced(storage: StorageService, metadata: MetadataService, key: str) -> None:
    """
    Delete a stored upload whose record was never created.

    Raises:
        ValidationError: If the key is outside ``assets/`` or a record still
            references it; storage is left untouched
    """
    if not key.startswith(ASSET_KEY_PREFIX):
        raise ValidationError("Only uploaded asset objects can be discarded", code="invalid_key")
    if metadata.get_by_filename(key) is not None:
        raise ValidationError(
            f"Object is still referenced by an asset record: {key}", code="key_in_use", details={"key": key}
        )

    storage.delete(key)
    logger.info("orphan_object_discarded", key=key)


def find_orphans(
    storage: StorageService,
    metadata: MetadataService,
    grace_hours: int = 24,
    now: datetime | None = None,
) -> tuple[int, list[str]]:
    """
    List unreferenced object keys older than the grace period.

    Returns:
        tuple: (objects scanned, orphan keys)
    """
    cutoff = (now or datetime.now(UTC)) - timedelta(hours=grace_hours)
    referenced = metadata.list_filenames()
    objects = storage.list_keys(ASSET_KEY_PREFIX)

    orphans = [
        obj.key
        for obj in objects
        if obj.key not in referenced and (obj.created_at is None or obj.created_at <= cutoff)
    ]
    return len(objects), orphans


def sweep_orphans(
    storage: StorageService,
    metadata: MetadataService,
    grace_hours: int = 24,
    dry_run: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> SweepReport:
    """
    Delete orphaned objects.

    Args:
        storage: Storage service for the assets bucket
        metadata: Metadata service holding the records
        grace_hours: Minimum object age before it may be deleted
        dry_run: Only report what would be deleted

    Returns:
        SweepReport: What was found and what happened to it
    """
    now = clock() if clock else None
    scanned, orphans = find_orphans(storage, metadata, grace_hours, now)
    report = SweepReport(scanned=scanned, orphans=orphans, dry_run=dry_run)

    logger.info("orphan_sweep_started", scanned=scanned, orphans=len(orphans), grace_hours=grace_hours, dry_run=dry_run)

    if dry_run:
        return report

    for key in orphans:
        try:
            storage.delete(key)
            report.deleted.append(key)
        except Exception as e:
            logger.error("orphan_delete_failed", key=key, error=str(e))
            report.failed.append(key)

    logger.info("orphan_sweep_completed", deleted=len(report.deleted), failed=len(report.failed))
    return report
