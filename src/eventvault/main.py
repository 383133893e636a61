"""
Main Streamlit application for eventvault.

This is the entry point for the asset manager web application:

    streamlit run src/eventvault/main.py
"""

import streamlit as st

from eventvault.config import Config
from eventvault.logging_config import configure_structured_logging, get_logger
from eventvault.ui.components.common import render_error_message, render_footer, render_header, render_sidebar
from eventvault.ui.handlers.upload import clear_upload_session_state
from eventvault.ui.pages.dashboard import render_dashboard_page
from eventvault.ui.pages.gallery import render_gallery_page
from eventvault.ui.pages.setup import render_setup_page
from eventvault.ui.pages.upload import render_upload_page

configure_structured_logging()
logger = get_logger(__name__)

PAGE_RENDERERS = {
    "dashboard": render_dashboard_page,
    "upload": render_upload_page,
    "gallery": render_gallery_page,
    "setup": render_setup_page,
}


def initialize_session_state() -> None:
    """Initialize session state variables."""
    if "current_page" not in st.session_state:
        st.session_state.current_page = "dashboard"

    if "gallery_rerun_counter" not in st.session_state:
        st.session_state.gallery_rerun_counter = 0


def apply_pending_navigation() -> None:
    """Switch to ``next_page`` if the sidebar requested it."""
    next_page = st.session_state.get("next_page")
    if not next_page:
        return

    previous_page = st.session_state.current_page
    st.session_state.current_page = next_page
    del st.session_state.next_page
    logger.info("page_navigated", from_page=previous_page, to_page=next_page)

    # Leaving the upload page resets it and refreshes the gallery
    if previous_page == "upload":
        clear_upload_session_state()
        st.session_state.gallery_rerun_counter += 1


def render_main_content() -> None:
    current_page = st.session_state.current_page
    renderer = PAGE_RENDERERS.get(current_page)

    if renderer is None:
        st.warning(f"Page '{current_page}' not found.")
        if st.button("📊 Back to dashboard", type="primary"):
            st.session_state.current_page = "dashboard"
            st.rerun()
        return

    renderer()


def main() -> None:
    """Main application entry point."""
    logger.info("application_starting", page="main")

    try:
        st.set_page_config(
            page_title="eventvault - Event Asset Manager",
            page_icon="📸",
            layout="wide",
            initial_sidebar_state="expanded",
        )

        initialize_session_state()
        apply_pending_navigation()

        render_header()
        render_sidebar()

        with st.container():
            render_main_content()

        render_footer()

        if Config().get("DEBUG", False, bool):
            with st.expander("Debug Info"):
                st.write("Session State:", st.session_state)

    except Exception as e:
        logger.error("critical_application_error", error=str(e))
        render_error_message("Application Error", "An unexpected error occurred.", str(e))

        if st.button("🔄 Restart application", type="primary"):
            st.rerun()


if __name__ == "__main__":
    main()
