"""
Sequential upload orchestrator.

Uploading a file is a three step exchange: ask for a signed upload URL, PUT
the raw bytes straight to object storage, then register the metadata record.
``UploadOrchestrator`` drives that exchange for a batch of files, one file at
a time, and publishes per-file progress as it goes.

The steps themselves go through an ``UploadGateway``:

- ``HttpUploadGateway`` talks to the REST API (used by the CLI and by the UI
  when ``API_BASE_URL`` is configured)
- ``ServiceUploadGateway`` calls the storage and metadata services in-process

Failure semantics: the first failing file stops the batch. Files that already
completed stay stored; files not yet completed are marked as failed. If the
bytes were stored but the record could not be created, the stored object is
discarded again on a best-effort basis.
"""

import io
import mimetypes
import os
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, BinaryIO

import requests

from ..errors import NetworkError, UploadError, ValidationError, error_message
from ..logging_config import get_logger, log_performance, log_user_action
from ..models.asset import Asset, AssetMetadata, derive_file_type
from .metadata import MetadataService
from .reconcile import discard_unreferenced
from .storage import StorageService

logger = get_logger(__name__)

PENDING = "pending"
UPLOADING = "uploading"
COMPLETED = "completed"
ERROR = "error"

LARGE_FILE_BYTES = 100 * 1024 * 1024
VERY_LARGE_FILE_BYTES = 500 * 1024 * 1024

CHUNK_SIZE = 1024 * 1024
API_TIMEOUT = 30

# Progress checkpoints per file
PROGRESS_URL_REQUESTED = 5
PROGRESS_URL_RECEIVED = 20
PROGRESS_TRANSFER_SPAN = 70
PROGRESS_SAVING_METADATA = 95
PROGRESS_DONE = 100


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        str: Formatted file size (e.g., "1.5 MB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


@dataclass
class UploadItem:
    """One file selected for upload, held in memory or on disk."""

    filename: str
    mime_type: str
    size: int
    data: bytes | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        if self.data is None and self.path is None:
            raise ValueError(f"UploadItem '{self.filename}' needs either data or a path")

    @classmethod
    def from_path(cls, path: str | os.PathLike) -> "UploadItem":
        file_path = Path(path)
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            filename=file_path.name,
            mime_type=mime_type or "application/octet-stream",
            size=file_path.stat().st_size,
            path=str(file_path),
        )

    @classmethod
    def from_bytes(cls, filename: str, data: bytes, mime_type: str | None = None) -> "UploadItem":
        if not mime_type:
            mime_type, _ = mimetypes.guess_type(filename)
        return cls(filename=filename, mime_type=mime_type or "application/octet-stream", size=len(data), data=data)

    def open(self) -> BinaryIO:
        if self.data is not None:
            return io.BytesIO(self.data)
        return open(self.path, "rb")  # type: ignore[arg-type]


class ProgressReader:
    """
    Read-only stream that reports how many bytes have been consumed.

    ``requests`` uses ``__len__`` for the Content-Length header and pulls the
    body through ``read``, so the callback fires as the PUT goes out.
    """

    def __init__(self, stream: BinaryIO, total: int, callback: Callable[[int, int], None] | None = None):
        self._stream = stream
        self.total = total
        self.sent = 0
        self._callback = callback

    def __len__(self) -> int:
        return self.total

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size if size and size > 0 else CHUNK_SIZE)
        if chunk:
            self.sent += len(chunk)
            if self._callback:
                self._callback(self.sent, self.total)
        return chunk

    def __iter__(self):
        while True:
            chunk = self.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    def seek(self, offset: int, whence: int = 0) -> int:
        position = self._stream.seek(offset, whence)
        if offset == 0 and whence == 0:
            self.sent = 0
        return position

    def tell(self) -> int:
        return self._stream.tell()

    def close(self) -> None:
        self._stream.close()


@dataclass
class FileProgress:
    filename: str
    progress: int = 0
    status: str = PENDING
    error: str | None = None


@dataclass
class UploadTicket:
    """Where to send the bytes for one file."""

    upload_url: str
    key: str
    public_url: str


@dataclass
class BatchUploadResult:
    success: bool
    assets: list[Asset] = field(default_factory=list)
    error: str | None = None
    progress: list[FileProgress] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def size_warnings(items: Iterable[UploadItem]) -> list[str]:
    """
    Advisory messages for large selections. These never block an upload.

    Returns:
        list[str]: At most one message; the very-large tier wins over the large one
    """
    items = list(items)
    very_large = [item for item in items if item.size > VERY_LARGE_FILE_BYTES]
    large = [item for item in items if item.size > LARGE_FILE_BYTES]

    if very_large:
        names = ", ".join(f"{item.filename} ({format_file_size(item.size)})" for item in very_large)
        return [f"Very large files detected: {names}. Upload may take 10-20 minutes per file."]
    if large:
        names = ", ".join(f"{item.filename} ({format_file_size(item.size)})" for item in large)
        return [f"Large files detected: {names}. Upload may take 3-8 minutes per file."]
    return []


def build_record_fields(item: UploadItem, ticket: UploadTicket, metadata: AssetMetadata) -> dict[str, Any]:
    """Metadata record for a file whose bytes are stored under ``ticket.key``."""
    return {
        "filename": ticket.key,
        "original_filename": item.filename,
        "url": ticket.public_url,
        "file_type": derive_file_type(item.mime_type, item.filename),
        "mime_type": item.mime_type,
        "size": item.size,
        **metadata.to_dict(),
    }


class UploadGateway(ABC):
    """The three upload steps plus the compensating discard."""

    @abstractmethod
    def request_upload_url(self, item: UploadItem) -> UploadTicket: ...

    @abstractmethod
    def put_bytes(self, ticket: UploadTicket, body: ProgressReader, mime_type: str) -> None:
        """Send the raw bytes. Raises ``UploadError`` on a non-2xx answer."""

    @abstractmethod
    def create_metadata(self, fields: dict[str, Any]) -> Asset: ...

    @abstractmethod
    def discard(self, key: str) -> None: ...


class HttpUploadGateway(UploadGateway):
    """Runs the upload steps against the REST API."""

    def __init__(self, api_base_url: str, session: requests.Session | None = None):
        self.api_base_url = api_base_url.rstrip("/")
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.api_base_url}{path}"
        try:
            response = self.session.post(url, json=payload, timeout=API_TIMEOUT)
        except requests.RequestException as e:
            raise NetworkError(f"Request to {path} failed: {e}", original_exception=e) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok or body.get("success") is False:
            detail = body.get("error") or response.text or response.reason
            raise UploadError(f"{response.status_code} - {detail}", details={"path": path})
        return body

    def request_upload_url(self, item: UploadItem) -> UploadTicket:
        body = self._post(
            "/api/upload/presigned-url",
            {"fileName": item.filename, "fileType": item.mime_type, "fileSize": item.size},
        )
        return UploadTicket(upload_url=body["presignedUrl"], key=body["key"], public_url=body["publicUrl"])

    def put_bytes(self, ticket: UploadTicket, body: ProgressReader, mime_type: str) -> None:
        # No timeout: large videos can take many minutes
        try:
            response = self.session.put(ticket.upload_url, data=body, headers={"Content-Type": mime_type})
        except requests.RequestException as e:
            raise NetworkError(f"Network error during upload: {e}", original_exception=e) from e

        if not 200 <= response.status_code < 300:
            raise UploadError(
                f"Upload failed with status: {response.status_code}", details={"key": ticket.key}
            )

    def create_metadata(self, fields: dict[str, Any]) -> Asset:
        body = self._post(
            "/api/upload/metadata",
            {
                "key": fields["filename"],
                "originalFilename": fields["original_filename"],
                "publicUrl": fields["url"],
                "fileType": fields["file_type"],
                "mimeType": fields["mime_type"],
                "size": fields["size"],
                "metadata": AssetMetadata.from_dict(fields).to_dict(),
            },
        )
        return Asset.from_dict(body["asset"])

    def discard(self, key: str) -> None:
        self._post("/api/upload/discard", {"key": key})


class ServiceUploadGateway(UploadGateway):
    """Runs the upload steps in-process against the services."""

    def __init__(self, storage: StorageService, metadata: MetadataService):
        self.storage = storage
        self.metadata = metadata

    def request_upload_url(self, item: UploadItem) -> UploadTicket:
        key = self.storage.generate_key(item.filename)
        return UploadTicket(
            upload_url=self.storage.issue_upload_url(key, item.mime_type),
            key=key,
            public_url=self.storage.public_url(key),
        )

    def put_bytes(self, ticket: UploadTicket, body: ProgressReader, mime_type: str) -> None:
        self.storage.put(ticket.key, body, mime_type)  # type: ignore[arg-type]

    def create_metadata(self, fields: dict[str, Any]) -> Asset:
        return self.metadata.create(fields)

    def discard(self, key: str) -> None:
        discard_unreferenced(self.storage, self.metadata, key)


class _FileFailure(Exception):
    """A step failed for the current file; carries the message shown for it."""

    def __init__(self, message: str, cause: Exception):
        super().__init__(message)
        self.message = message
        self.cause = cause


class UploadOrchestrator:
    """
    Uploads a batch of files strictly one after another.

    ``on_progress`` receives a fresh ``list[FileProgress]`` on every change, so
    a consumer can simply replace whatever it rendered last.
    """

    def __init__(
        self,
        gateway: UploadGateway,
        on_progress: Callable[[list[FileProgress]], None] | None = None,
    ):
        self.gateway = gateway
        self.on_progress = on_progress
        self._progress: list[FileProgress] = []

    def _publish(self) -> None:
        if self.on_progress:
            self.on_progress([replace(entry) for entry in self._progress])

    def _update(self, index: int, **changes: Any) -> None:
        entry = self._progress[index]
        updated = replace(entry, **changes)
        if updated != entry:
            self._progress[index] = updated
            self._publish()

    def run(self, items: list[UploadItem], metadata: AssetMetadata | dict[str, Any]) -> BatchUploadResult:
        """
        Upload every item with the shared metadata.

        Args:
            items: Files to upload, in order
            metadata: Event metadata applied to every file

        Returns:
            BatchUploadResult: Outcome, created assets and final progress

        Raises:
            ValidationError: If there are no files, event/date is missing or the date is
                not YYYY-MM-DD (nothing is sent)
        """
        if not items:
            raise ValidationError("No files provided", code="no_files")
        if not isinstance(metadata, AssetMetadata):
            metadata = AssetMetadata.from_dict(metadata)
        metadata.validate()

        warnings = size_warnings(items)
        for warning in warnings:
            logger.warning("large_upload_selected", message=warning)

        self._progress = [FileProgress(filename=item.filename) for item in items]
        self._publish()

        log_user_action("batch_upload_started", file_count=len(items), event_name=metadata.event)
        start = time.perf_counter()
        assets: list[Asset] = []

        for index, item in enumerate(items):
            try:
                assets.append(self._upload_one(index, item, metadata))
            except _FileFailure as failure:
                batch_error = f"Upload failed: {failure.message}"
                self._update(index, status=ERROR, error=failure.message)
                for other, entry in enumerate(self._progress):
                    if other != index and entry.status != COMPLETED:
                        self._update(other, status=ERROR, error=batch_error)

                logger.error(
                    "batch_upload_failed",
                    filename=item.filename,
                    error=failure.message,
                    completed=len(assets),
                    total=len(items),
                )
                return BatchUploadResult(
                    success=False,
                    assets=assets,
                    error=batch_error,
                    progress=[replace(entry) for entry in self._progress],
                    warnings=warnings,
                )

        log_performance("batch_upload", time.perf_counter() - start, file_count=len(items))
        log_user_action("batch_upload_completed", file_count=len(items), event_name=metadata.event)
        return BatchUploadResult(
            success=True,
            assets=assets,
            progress=[replace(entry) for entry in self._progress],
            warnings=warnings,
        )

    def _upload_one(self, index: int, item: UploadItem, metadata: AssetMetadata) -> Asset:
        self._update(index, status=UPLOADING, progress=PROGRESS_URL_REQUESTED)
        try:
            ticket = self.gateway.request_upload_url(item)
        except Exception as e:
            raise _FileFailure(f"Failed to get upload URL: {error_message(e)}", e) from e

        self._update(index, progress=PROGRESS_URL_RECEIVED)

        def on_bytes(sent: int, total: int) -> None:
            fraction = sent / total if total else 1.0
            self._update(index, progress=PROGRESS_URL_RECEIVED + round(fraction * PROGRESS_TRANSFER_SPAN))

        try:
            with item.open() as stream:
                self.gateway.put_bytes(ticket, ProgressReader(stream, item.size, on_bytes), item.mime_type)
        except Exception as e:
            raise _FileFailure(error_message(e), e) from e

        fields = build_record_fields(item, ticket, metadata)
        self._update(index, progress=PROGRESS_SAVING_METADATA)

        try:
            asset = self.gateway.create_metadata(fields)
        except Exception as e:
            self._discard(ticket.key)
            raise _FileFailure(f"Failed to save metadata: {error_message(e)}", e) from e

        self._update(index, status=COMPLETED, progress=PROGRESS_DONE)
        logger.info("file_uploaded", filename=item.filename, key=ticket.key, asset_id=asset.id, size=item.size)
        return asset

    def _discard(self, key: str) -> None:
        try:
            self.gateway.discard(key)
            logger.info("orphan_object_discarded", key=key)
        except Exception as e:
            logger.warning("orphan_object_discard_failed", key=key, error=str(e))
