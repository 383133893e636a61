"""Process-wide services for the Streamlit app."""

import streamlit as st

from eventvault.config import load_settings
from eventvault.context import AppServices, create_services


@st.cache_resource
def get_app_services() -> AppServices:
    """Build the services once per Streamlit server process."""
    return create_services(load_settings())
