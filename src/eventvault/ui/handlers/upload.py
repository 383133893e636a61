"""Upload handlers for eventvault application."""

from collections.abc import Callable
from typing import Any

import streamlit as st
import structlog

from eventvault.models.asset import AssetMetadata
from eventvault.services.upload import (
    BatchUploadResult,
    FileProgress,
    UploadGateway,
    UploadItem,
    UploadOrchestrator,
    size_warnings,
)
from eventvault.ui.handlers.services import get_app_services

logger = structlog.get_logger(__name__)

COMMON_TAGS = [
    "Headshot",
    "Keynote",
    "Presentation",
    "Networking",
    "Panel",
    "Workshop",
    "Conference",
    "Speaking",
    "Audience",
    "Backstage",
    "Award",
    "Group Photo",
    "Candid",
]

UPLOAD_STATE_KEYS = ("upload_in_progress", "upload_progress", "upload_result", "upload_warnings")


def initialize_upload_state() -> None:
    """Initialize upload-related session state variables."""
    if "upload_in_progress" not in st.session_state:
        st.session_state.upload_in_progress = False
    if "upload_progress" not in st.session_state:
        st.session_state.upload_progress = []
    if "upload_result" not in st.session_state:
        st.session_state.upload_result = None
    if "upload_warnings" not in st.session_state:
        st.session_state.upload_warnings = []


def clear_upload_session_state() -> None:
    for key in UPLOAD_STATE_KEYS:
        if key in st.session_state:
            del st.session_state[key]
    logger.info("upload_session_state_cleared")


def build_upload_items(uploaded_files: list | None) -> list[UploadItem]:
    """
    Convert Streamlit uploaded files into upload items.

    Args:
        uploaded_files: Files returned by ``st.file_uploader``

    Returns:
        list[UploadItem]: One item per file, in selection order
    """
    items = []
    for uploaded_file in uploaded_files or []:
        data = uploaded_file.getvalue()
        items.append(UploadItem.from_bytes(uploaded_file.name, data, getattr(uploaded_file, "type", None)))
    return items


def parse_custom_tags(text: str) -> list[str]:
    return [tag.strip() for tag in (text or "").split(",") if tag.strip()]


def collect_metadata(
    event: str,
    date: Any,
    photographer: str = "",
    location: str = "",
    selected_tags: list[str] | None = None,
    custom_tags: str = "",
    description: str = "",
) -> AssetMetadata:
    """Build the shared metadata from the form values. ``date`` may be a ``datetime.date``."""
    date_text = date.isoformat() if hasattr(date, "isoformat") else str(date or "")
    return AssetMetadata(
        event=(event or "").strip(),
        date=date_text,
        photographer=(photographer or "").strip(),
        location=(location or "").strip(),
        tags=list(selected_tags or []) + parse_custom_tags(custom_tags),
        description=(description or "").strip(),
    )


def is_form_valid(items: list[UploadItem], metadata: AssetMetadata) -> bool:
    return bool(items) and metadata.is_valid()


def get_size_warnings(items: list[UploadItem]) -> list[str]:
    return size_warnings(items)


def run_batch_upload(
    items: list[UploadItem],
    metadata: AssetMetadata,
    on_progress: Callable[[list[FileProgress]], None] | None = None,
    gateway: UploadGateway | None = None,
) -> BatchUploadResult:
    """
    Upload the selected files and remember the outcome in session state.

    Raises:
        ValidationError: If there are no files or event/date is missing
    """
    gateway = gateway or get_app_services().upload_gateway()

    def publish(progress: list[FileProgress]) -> None:
        st.session_state.upload_progress = progress
        if on_progress:
            on_progress(progress)

    st.session_state.upload_in_progress = True
    try:
        result = UploadOrchestrator(gateway, on_progress=publish).run(items, metadata)
    finally:
        st.session_state.upload_in_progress = False

    st.session_state.upload_result = result
    st.session_state.upload_warnings = result.warnings
    logger.info(
        "upload_batch_finished",
        success=result.success,
        uploaded=len(result.assets),
        total=len(items),
        error=result.error,
    )
    return result


def summarize_result(result: BatchUploadResult) -> dict[str, int]:
    """Counts per final file status."""
    summary = {"total": len(result.progress), "completed": 0, "error": 0}
    for entry in result.progress:
        if entry.status in summary:
            summary[entry.status] += 1
    return summary
