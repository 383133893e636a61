"""
Asset model for eventvault.

``Asset`` is the only domain entity: one uploaded photo or video plus the
event metadata it was filed under. Python attributes are snake_case; the
REST surface speaks camelCase via ``to_api_dict``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import PurePosixPath
from typing import Any

from ..errors import ValidationError

IMAGE = "image"
VIDEO = "video"
FILE_TYPES = (IMAGE, VIDEO)

# Containers browsers commonly report without a video/* MIME type
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "wmv", "flv", "webm", "mkv"})


def file_extension(filename: str) -> str:
    """
    Lowercase text after the last dot of a filename.

    Returns:
        str: Extension without the dot, or "" when there is none
    """
    name = PurePosixPath(filename.replace("\\", "/")).name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def derive_file_type(mime_type: str | None, filename: str) -> str:
    """
    Classify an upload as image or video.

    The MIME type prefix wins; when it is missing or generic, a short list of
    video container extensions decides and everything else is an image.
    """
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("image/"):
        return IMAGE
    if mime_type.startswith("video/"):
        return VIDEO
    return VIDEO if file_extension(filename) in VIDEO_EXTENSIONS else IMAGE


def is_iso_date(text: str) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if len(text) != 10:
        return False
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True


def validate_event_fields(event: str, event_date: str) -> None:
    """
    Check the metadata every record must carry.

    Event dates are compared as text by both the search and the gallery
    filters, so only the zero-padded ISO form is accepted.

    Raises:
        ValidationError: If event or date is empty, or the date is not YYYY-MM-DD
    """
    missing = [name for name, value in (("event", event), ("date", event_date)) if not value.strip()]
    if missing:
        raise ValidationError("Missing required metadata fields", code="missing_metadata", details={"missing": missing})
    if not is_iso_date(event_date.strip()):
        raise ValidationError(
            f"Invalid date '{event_date}', expected YYYY-MM-DD", code="invalid_date", details={"date": event_date}
        )


def _clean_tags(tags: Any) -> list[str]:
    """Normalize tags to a list of non-empty strings, keeping first-seen order."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    cleaned: list[str] = []
    for tag in tags:
        text = str(tag).strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


@dataclass
class AssetMetadata:
    """User-entered metadata shared by every file in an upload batch."""

    event: str = ""
    date: str = ""
    photographer: str = ""
    tags: list[str] = field(default_factory=list)
    description: str = ""
    location: str = ""

    def __post_init__(self) -> None:
        self.tags = _clean_tags(self.tags)

    def missing_required_fields(self) -> list[str]:
        """Names of required fields that are empty."""
        return [name for name in ("event", "date") if not str(getattr(self, name) or "").strip()]

    def is_valid(self) -> bool:
        return not self.missing_required_fields() and is_iso_date(self.date.strip())

    def validate(self) -> None:
        """Raise ``ValidationError`` unless event and a YYYY-MM-DD date are set."""
        validate_event_fields(self.event, self.date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event,
            "date": self.date,
            "photographer": self.photographer,
            "tags": list(self.tags),
            "description": self.description,
            "location": self.location,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AssetMetadata":
        data = data or {}
        return cls(
            event=str(data.get("event") or "").strip(),
            date=str(data.get("date") or "").strip(),
            photographer=str(data.get("photographer") or ""),
            tags=data.get("tags") or [],
            description=str(data.get("description") or ""),
            location=str(data.get("location") or ""),
        )


@dataclass
class Asset:
    """
    A stored photo or video and its event metadata.

    ``id`` and ``uploaded_at`` are assigned by the metadata store when the
    record is created and never change afterwards. ``width``, ``height`` and
    ``duration`` are reserved and currently always ``None``.
    """

    id: str
    filename: str
    original_filename: str
    url: str
    file_type: str
    mime_type: str
    size: int
    uploaded_at: datetime
    event: str
    date: str
    photographer: str = ""
    tags: list[str] = field(default_factory=list)
    description: str = ""
    location: str = ""
    width: int | None = None
    height: int | None = None
    duration: float | None = None

    @property
    def public_url(self) -> str:
        """Resolvable address of the stored binary."""
        return self.url

    @property
    def display_name(self) -> str:
        return self.original_filename or self.filename

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def now() -> datetime:
        return datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert Asset to a dictionary for database storage.

        Returns:
            Dictionary keyed by column name
        """
        return {
            "id": self.id,
            "filename": self.filename,
            "original_filename": self.original_filename,
            "url": self.url,
            "file_type": self.file_type,
            "mime_type": self.mime_type,
            "size": self.size,
            "width": self.width,
            "height": self.height,
            "duration": self.duration,
            "uploaded_at": self.uploaded_at.isoformat(),
            "event": self.event,
            "date": self.date,
            "location": self.location,
            "photographer": self.photographer,
            "tags": list(self.tags),
            "description": self.description,
        }

    def to_api_dict(self) -> dict[str, Any]:
        """Wire representation used by the REST API."""
        payload: dict[str, Any] = {
            "id": self.id,
            "filename": self.filename,
            "originalFilename": self.original_filename,
            "url": self.url,
            "publicUrl": self.public_url,
            "fileType": self.file_type,
            "mimeType": self.mime_type,
            "size": self.size,
            "uploadedAt": self.uploaded_at.isoformat(),
            "event": self.event,
            "date": self.date,
            "location": self.location,
            "photographer": self.photographer,
            "tags": list(self.tags),
            "description": self.description,
        }
        for name in ("width", "height", "duration"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Asset":
        """
        Create an Asset from a dictionary in either snake_case or API camelCase.

        Args:
            data: Dictionary containing asset fields

        Returns:
            Asset instance
        """

        def pick(snake: str, camel: str | None = None, default: Any = None) -> Any:
            if snake in data and data[snake] is not None:
                return data[snake]
            if camel and camel in data and data[camel] is not None:
                return data[camel]
            return default

        uploaded_at = pick("uploaded_at", "uploadedAt")
        if isinstance(uploaded_at, str):
            uploaded_at = datetime.fromisoformat(uploaded_at)
        if uploaded_at is None:
            uploaded_at = cls.now()

        filename = pick("filename", default="")
        return cls(
            id=pick("id", default=""),
            filename=filename,
            original_filename=pick("original_filename", "originalFilename", default=filename),
            url=pick("url", default="") or pick("public_url", "publicUrl", default=""),
            file_type=pick("file_type", "fileType", default=IMAGE),
            mime_type=pick("mime_type", "mimeType", default=""),
            size=int(pick("size", default=0)),
            uploaded_at=uploaded_at,
            event=pick("event", default=""),
            date=pick("date", default=""),
            photographer=pick("photographer", default=""),
            tags=_clean_tags(pick("tags", default=[])),
            description=pick("description", default=""),
            location=pick("location", default=""),
            width=pick("width"),
            height=pick("height"),
            duration=pick("duration"),
        )


@dataclass
class PhotographerCount:
    name: str
    count: int

    def to_api_dict(self) -> dict[str, Any]:
        return {"name": self.name, "count": self.count}


@dataclass
class StatsData:
    """Aggregate numbers for the dashboard."""

    total_assets: int
    total_events: int
    top_photographers: list[PhotographerCount]
    recent_uploads: list[Asset]

    def to_api_dict(self) -> dict[str, Any]:
        return {
            "totalAssets": self.total_assets,
            "totalEvents": self.total_events,
            "topPhotographers": [p.to_api_dict() for p in self.top_photographers],
            "recentUploads": [a.to_api_dict() for a in self.recent_uploads],
        }


@dataclass
class AssetPage:
    """One page of the uploaded-at ordered listing."""

    records: list[Asset]
    next_cursor: str | None = None


@dataclass
class SearchCriteria:
    """Structured backend search. Empty values mean "no constraint"."""

    event: str | None = None
    photographer: str | None = None
    tags: list[str] = field(default_factory=list)
    date_from: str | None = None
    date_to: str | None = None

    def __post_init__(self) -> None:
        self.tags = _clean_tags(self.tags)

    def is_empty(self) -> bool:
        return not (self.event or self.photographer or self.tags or self.date_from or self.date_to)
