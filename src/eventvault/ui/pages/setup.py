"""Setup page: configuration and connectivity diagnostics."""

import streamlit as st

from eventvault.ui.handlers.setup import run_diagnostics


def render_setup_page() -> None:
    st.markdown("### 🔧 Setup")
    st.caption("Check that storage and the metadata catalogue are configured and reachable.")

    if st.button("Test Connections", type="primary") or "setup_diagnostics" not in st.session_state:
        with st.spinner("Checking..."):
            st.session_state.setup_diagnostics = run_diagnostics()

    diagnostics = st.session_state.setup_diagnostics

    if diagnostics["healthy"]:
        st.success("✅ All connections are working.")
    else:
        st.error("Some connections have errors. Please check your configuration.")

    for name, check in diagnostics["checks"].items():
        with st.expander(name.title(), expanded=check["status"] != "healthy"):
            if check["status"] == "healthy":
                st.success(check["message"])
            else:
                st.error(check["message"])

    st.markdown("#### Configuration")
    for key, status in diagnostics["configuration"].items():
        st.write(f"{'✅' if status == 'SET' else '⚪'} `{key}`: {status}")

    application = diagnostics["application"]
    st.caption(
        f"{application['name']} v{application['version']} · {application['environment']} · "
        f"Python {application['python_version']}"
    )
