"""Reusable UI components for eventvault application."""

import streamlit as st
import structlog

from eventvault import __version__
from eventvault.services.upload import COMPLETED, ERROR, FileProgress

logger = structlog.get_logger()

PAGES = {
    "📊 Dashboard": "dashboard",
    "📤 Upload": "upload",
    "🖼️ Gallery": "gallery",
    "🔧 Setup": "setup",
}

_STATUS_ICONS = {"pending": "⏳", "uploading": "⬆️", COMPLETED: "✅", ERROR: "❌"}


def render_empty_state(
    title: str,
    description: str,
    icon: str = "📭",
    action_text: str | None = None,
    action_page: str | None = None,
) -> None:
    """
    Render an empty state message with optional action button.

    Args:
        title: Main title for the empty state
        description: Description text
        icon: Emoji icon to display
        action_text: Text for action button (optional)
        action_page: Page to navigate to when action button is clicked (optional)
    """
    col1, col2, col3 = st.columns([1, 2, 1])

    with col2:
        st.markdown(
            f"""
        <div style='text-align: center; padding: 2rem 0;'>
            <div style='font-size: 4rem; margin-bottom: 1rem;'>{icon}</div>
            <h3 style='color: #666; margin-bottom: 1rem;'>{title}</h3>
            <p style='color: #888; margin-bottom: 2rem;'>{description}</p>
        </div>
        """,
            unsafe_allow_html=True,
        )

        if action_text and action_page:
            if st.button(action_text, use_container_width=True, type="primary"):
                st.session_state.current_page = action_page
                st.rerun()


def render_error_message(error_type: str, message: str, details: str | None = None) -> None:
    """
    Render a standardized error message.

    Args:
        error_type: Type of error (e.g., "Upload Error")
        message: Main error message
        details: Additional error details (optional)
    """
    st.error(f"**{error_type}:** {message}")

    if details:
        with st.expander("🔍 Error details"):
            st.code(details)


def render_file_progress(progress: list[FileProgress]) -> None:
    """Render one progress bar per file."""
    for entry in progress:
        icon = _STATUS_ICONS.get(entry.status, "")
        st.progress(entry.progress / 100, text=f"{icon} {entry.filename} ({entry.status})")
        if entry.status == ERROR and entry.error:
            st.caption(f"❌ {entry.error}")


def render_header() -> None:
    st.markdown("# 📸 eventvault")
    st.caption("Photos and videos from your speaking events")
    st.divider()


def render_sidebar() -> None:
    """Render the navigation sidebar."""
    with st.sidebar:
        st.markdown("### 📸 eventvault")
        st.divider()

        st.subheader("Navigation")
        current_page = st.session_state.current_page

        for page_name, page_key in PAGES.items():
            if st.button(
                page_name,
                key=f"nav_{page_key}",
                use_container_width=True,
                type="primary" if page_key == current_page else "secondary",
            ):
                logger.info("page_navigation", from_page=current_page, to_page=page_key)
                st.session_state.next_page = page_key
                st.rerun()


def render_footer() -> None:
    st.divider()
    st.markdown(
        f"""
    <div style='text-align: center; color: #666; font-size: 0.8em;'>
        <strong>eventvault v{__version__}</strong>
    </div>
    """,
        unsafe_allow_html=True,
    )
