"""Configuration for UI unit tests."""

from unittest.mock import MagicMock, patch

import pytest
import streamlit as st


class FakeSessionState(dict):
    """Dict with the attribute access ``st.session_state`` offers."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        del self[name]


@pytest.fixture(autouse=True)
def disable_streamlit_caching():
    """Start every test with empty Streamlit caches."""
    st.cache_data.clear()
    st.cache_resource.clear()
    yield
    st.cache_data.clear()
    st.cache_resource.clear()


@pytest.fixture
def session_state():
    state = FakeSessionState()
    with patch("streamlit.session_state", state):
        yield state


@pytest.fixture
def app_services(metadata_service):
    """Services with a mocked storage backend and a real metadata store."""
    services = MagicMock()
    services.metadata = metadata_service
    services.storage.bucket_name = "test-assets-bucket"
    return services
