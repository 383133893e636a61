"""Gallery handlers for eventvault application."""

from datetime import UTC, datetime

import streamlit as st
import structlog

from eventvault.models.asset import Asset, StatsData
from eventvault.services.gallery import ALL, FilterState, apply_filters, load_gallery_assets
from eventvault.ui.handlers.services import get_app_services

logger = structlog.get_logger(__name__)

FILTER_STATE_KEYS = (
    "gallery_query",
    "gallery_event",
    "gallery_photographer",
    "gallery_file_type",
    "gallery_tags",
    "gallery_date_from",
    "gallery_date_to",
)


@st.cache_data(ttl=300, show_spinner=False)
def load_gallery(page_size: int, rerun_counter: int = 0) -> list[Asset]:
    """
    Load the gallery's single page of assets.

    ``rerun_counter`` only busts the cache after an upload.
    """
    services = get_app_services()
    assets = load_gallery_assets(services.metadata, page_size)
    logger.info("gallery_loaded", count=len(assets), page_size=page_size, rerun_counter=rerun_counter)
    return assets


@st.cache_data(ttl=60, show_spinner=False)
def load_stats(rerun_counter: int = 0) -> StatsData:
    return get_app_services().metadata.stats()


def _date_text(value) -> str | None:
    if not value:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def filter_state_from_session() -> FilterState:
    """Read the filter widget values from session state."""
    state = st.session_state
    return FilterState(
        query=state.get("gallery_query", "") or "",
        event=state.get("gallery_event", ALL),
        photographer=state.get("gallery_photographer", ALL),
        file_type=state.get("gallery_file_type", ALL),
        tags=list(state.get("gallery_tags", []) or []),
        date_from=_date_text(state.get("gallery_date_from")),
        date_to=_date_text(state.get("gallery_date_to")),
    )


def reset_filters() -> None:
    for key in FILTER_STATE_KEYS:
        if key in st.session_state:
            del st.session_state[key]
    logger.info("gallery_filters_reset")


def get_filtered_assets(assets: list[Asset]) -> list[Asset]:
    return apply_filters(assets, filter_state_from_session())


def get_download_url(asset: Asset) -> str | None:
    """
    Signed download link for an asset.

    Returns:
        str | None: The URL, or None when it could not be issued
    """
    try:
        return get_app_services().storage.issue_download_url(asset.filename, asset.original_filename)
    except Exception as e:
        logger.error("download_url_failed", asset_id=asset.id, key=asset.filename, error=str(e))
        return None


def format_upload_time(uploaded_at: datetime) -> str:
    if uploaded_at.tzinfo is None:
        uploaded_at = uploaded_at.replace(tzinfo=UTC)
    return uploaded_at.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC")


def format_event_date(date_text: str) -> str:
    """Render ``YYYY-MM-DD`` as e.g. ``May 1, 2024``; anything else is shown as is."""
    try:
        parsed = datetime.strptime(date_text, "%Y-%m-%d")
    except (TypeError, ValueError):
        return date_text or ""
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"
