"""Gallery page for eventvault application."""

import streamlit as st
import structlog

from eventvault.models.asset import VIDEO, Asset
from eventvault.services.gallery import ALL, filter_options, has_active_filters
from eventvault.services.upload import format_file_size
from eventvault.ui.components.common import render_empty_state, render_error_message
from eventvault.ui.handlers.gallery import (
    filter_state_from_session,
    format_event_date,
    format_upload_time,
    get_download_url,
    get_filtered_assets,
    load_gallery,
    reset_filters,
)
from eventvault.ui.handlers.services import get_app_services

logger = structlog.get_logger(__name__)

GRID_COLUMNS = 4


def render_gallery_page() -> None:
    """Render the searchable asset gallery."""
    try:
        settings = get_app_services().settings
        assets = load_gallery(settings.gallery_page_size, st.session_state.get("gallery_rerun_counter", 0))
    except Exception as e:
        logger.error("gallery_page_error", error=str(e))
        render_error_message("Gallery Error", "Failed to load assets. Please check your connection.", str(e))
        return

    if not assets:
        render_empty_state(
            title="No assets yet",
            description="Upload photos and videos from your events to fill the gallery.",
            icon="📷",
            action_text="Upload assets",
            action_page="upload",
        )
        return

    render_filters(assets)
    filtered = get_filtered_assets(assets)

    st.caption(f"Showing {len(filtered)} of {len(assets)} assets")
    if not filtered:
        st.info("No assets match the current filters.")
        return

    render_asset_grid(filtered)


def render_filters(assets: list[Asset]) -> None:
    options = filter_options(assets)

    st.text_input("🔍 Search", key="gallery_query", placeholder="Filename, event, photographer, tag...")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.selectbox("Event", [ALL, *options.events], key="gallery_event")
    with col2:
        st.selectbox("Photographer", [ALL, *options.photographers], key="gallery_photographer")
    with col3:
        st.selectbox("Type", [ALL, "image", "video"], key="gallery_file_type")

    col4, col5, col6 = st.columns(3)
    with col4:
        st.multiselect("Tags", options.tags, key="gallery_tags")
    with col5:
        st.date_input("From", value=None, key="gallery_date_from")
    with col6:
        st.date_input("To", value=None, key="gallery_date_to")

    if has_active_filters(filter_state_from_session()):
        st.button("Clear filters", on_click=reset_filters)

    st.divider()


def render_asset_grid(assets: list[Asset]) -> None:
    for row_start in range(0, len(assets), GRID_COLUMNS):
        columns = st.columns(GRID_COLUMNS)
        for column, asset in zip(columns, assets[row_start : row_start + GRID_COLUMNS], strict=False):
            with column:
                render_asset_card(asset)


def render_asset_card(asset: Asset) -> None:
    if asset.file_type == VIDEO:
        st.video(asset.public_url)
    else:
        st.image(asset.public_url, use_container_width=True)

    st.markdown(f"**{asset.display_name}**")
    st.caption(f"{asset.event} · {format_event_date(asset.date)}")

    with st.expander("Details"):
        st.write(f"**Photographer:** {asset.photographer or '-'}")
        if asset.location:
            st.write(f"**Location:** {asset.location}")
        st.write(f"**Size:** {format_file_size(asset.size)}")
        st.write(f"**Uploaded:** {format_upload_time(asset.uploaded_at)}")
        if asset.tags:
            st.write("**Tags:** " + ", ".join(asset.tags))
        if asset.description:
            st.write(asset.description)

        if st.button("⬇️ Prepare download", key=f"download_{asset.id}"):
            url = get_download_url(asset)
            if url:
                st.link_button("Download", url)
            else:
                st.error("Failed to generate download URL")
