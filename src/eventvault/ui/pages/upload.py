"""Upload page for eventvault application."""

import streamlit as st
import structlog

from eventvault.errors import EventVaultError, ValidationError
from eventvault.services.upload import format_file_size
from eventvault.ui.components.common import render_error_message, render_file_progress
from eventvault.ui.handlers.upload import (
    COMMON_TAGS,
    build_upload_items,
    collect_metadata,
    get_size_warnings,
    initialize_upload_state,
    is_form_valid,
    run_batch_upload,
    summarize_result,
)

logger = structlog.get_logger(__name__)


def render_upload_page() -> None:
    """Render the upload page: file picker, event metadata, progress and result."""
    initialize_upload_state()

    st.markdown("### 📤 Upload Assets")
    st.caption("Upload photos and videos from your speaking events")

    left, right = st.columns([2, 1])

    with left:
        uploaded_files = st.file_uploader(
            "Select files",
            accept_multiple_files=True,
            type=None,
            help="Images and videos of any size. Large videos can take several minutes.",
        )
        items = build_upload_items(uploaded_files)

        if items:
            st.markdown(f"**{len(items)} file(s) selected** ({format_file_size(sum(i.size for i in items))})")
            for item in items:
                st.write(f"• {item.filename} ({format_file_size(item.size)})")
            for warning in get_size_warnings(items):
                st.warning(warning)

    with right:
        st.markdown("#### Asset Information")
        event = st.text_input("Event Name *", placeholder="TechConf 2024")
        date = st.date_input("Event Date *", value=None)
        photographer = st.text_input("Photographer", placeholder="Jane Doe Photography")
        location = st.text_input("Location")
        selected_tags = st.multiselect("Tags", COMMON_TAGS)
        custom_tags = st.text_input("Custom tags", help="Comma-separated")
        description = st.text_area("Description", placeholder="Additional notes about these assets...")

    metadata = collect_metadata(event, date, photographer, location, selected_tags, custom_tags, description)

    uploading = st.session_state.upload_in_progress
    label = "Uploading..." if uploading else f"Upload {len(items)} File(s)"
    if st.button(label, type="primary", disabled=uploading or not is_form_valid(items, metadata)):
        placeholder = st.empty()

        def show_progress(progress) -> None:
            with placeholder.container():
                render_file_progress(progress)

        try:
            with st.spinner(f"Uploading {len(items)} file(s)... This may take several minutes for large files."):
                result = run_batch_upload(items, metadata, on_progress=show_progress)
        except ValidationError as e:
            render_error_message("Upload Error", e.message)
            return
        except EventVaultError as e:
            logger.error("upload_page_error", error=str(e))
            render_error_message("Upload Error", e.user_message, str(e))
            return

        summary = summarize_result(result)
        if result.success:
            st.success(f"🎉 Successfully uploaded {summary['completed']} file(s)!")
            st.session_state.gallery_rerun_counter = st.session_state.get("gallery_rerun_counter", 0) + 1
        else:
            render_error_message(
                "Upload Error",
                result.error or "Upload failed",
                f"Completed: {summary['completed']} / {summary['total']}",
            )
