"""Dashboard page for eventvault application."""

import streamlit as st
import structlog

from eventvault.ui.components.common import render_empty_state, render_error_message
from eventvault.ui.handlers.gallery import format_event_date, load_stats

logger = structlog.get_logger(__name__)


def render_dashboard_page() -> None:
    try:
        stats = load_stats(st.session_state.get("gallery_rerun_counter", 0))
    except Exception as e:
        logger.error("dashboard_page_error", error=str(e))
        render_error_message("Dashboard Error", "Failed to load statistics.", str(e))
        return

    if stats.total_assets == 0:
        render_empty_state(
            title="Nothing uploaded yet",
            description="Your library is empty. Upload assets from your first event.",
            icon="📊",
            action_text="Upload assets",
            action_page="upload",
        )
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total assets", stats.total_assets)
    with col2:
        st.metric("Events", stats.total_events)
    with col3:
        st.metric("Photographers", len(stats.top_photographers))

    left, right = st.columns(2)
    with left:
        st.markdown("#### 📷 Top photographers")
        for photographer in stats.top_photographers:
            st.write(f"**{photographer.name or 'Unknown'}**: {photographer.count} asset(s)")

    with right:
        st.markdown("#### 🕒 Recent uploads")
        for asset in stats.recent_uploads:
            st.write(f"**{asset.display_name}** · {asset.event} · {format_event_date(asset.date)}")
