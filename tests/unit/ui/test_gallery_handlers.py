"""Tests for gallery handlers."""

from datetime import UTC, date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from eventvault.errors import StorageError
from eventvault.services.gallery import ALL
from eventvault.ui.handlers.gallery import (
    filter_state_from_session,
    format_event_date,
    format_upload_time,
    get_download_url,
    get_filtered_assets,
    load_gallery,
    load_stats,
    reset_filters,
)
from eventvault.ui.handlers.setup import run_diagnostics


class TestFilterSessionState:
    def test_defaults_when_session_is_empty(self, session_state):
        state = filter_state_from_session()

        assert state.query == ""
        assert state.event == ALL
        assert state.tags == []
        assert state.date_from is None

    def test_reads_widget_values(self, session_state):
        session_state.update(
            {
                "gallery_query": "keynote",
                "gallery_event": "TechConf",
                "gallery_tags": ["Stage"],
                "gallery_date_from": date(2024, 5, 1),
                "gallery_date_to": None,
            }
        )

        state = filter_state_from_session()

        assert state.query == "keynote"
        assert state.event == "TechConf"
        assert state.tags == ["Stage"]
        assert state.date_from == "2024-05-01"
        assert state.date_to is None

    def test_reset_filters(self, session_state):
        session_state.update({"gallery_query": "x", "gallery_event": "Gala", "gallery_rerun_counter": 2})

        reset_filters()

        assert "gallery_query" not in session_state
        assert "gallery_event" not in session_state
        assert session_state["gallery_rerun_counter"] == 2

    def test_get_filtered_assets(self, session_state, asset_factory):
        assets = [
            asset_factory.asset(id="a", event="Gala", date="2024-05-01"),
            asset_factory.asset(id="b", event="Conf", date="2024-05-02"),
        ]
        session_state["gallery_event"] = "Gala"

        assert [asset.id for asset in get_filtered_assets(assets)] == ["a"]


class TestLoaders:
    def test_load_gallery(self, app_services, asset_factory):
        created = app_services.metadata.create(asset_factory.fields())

        with patch("eventvault.ui.handlers.gallery.get_app_services", return_value=app_services):
            assets = load_gallery(page_size=10, rerun_counter=1)

        assert [asset.id for asset in assets] == [created.id]

    def test_load_stats(self, app_services, asset_factory):
        app_services.metadata.create(asset_factory.fields())

        with patch("eventvault.ui.handlers.gallery.get_app_services", return_value=app_services):
            stats = load_stats(rerun_counter=7)

        assert stats.total_assets == 1


class TestDownloadUrl:
    def test_get_download_url(self, app_services, asset_factory):
        app_services.storage.issue_download_url.return_value = "https://signed/get"
        asset = asset_factory.asset()

        with patch("eventvault.ui.handlers.gallery.get_app_services", return_value=app_services):
            url = get_download_url(asset)

        assert url == "https://signed/get"
        app_services.storage.issue_download_url.assert_called_once_with(asset.filename, asset.original_filename)

    def test_get_download_url_failure_returns_none(self, app_services, asset_factory):
        app_services.storage.issue_download_url.side_effect = StorageError("denied")

        with patch("eventvault.ui.handlers.gallery.get_app_services", return_value=app_services):
            assert get_download_url(asset_factory.asset()) is None


class TestFormatting:
    def test_format_upload_time_converts_to_utc(self):
        jst = timezone(timedelta(hours=9))
        assert format_upload_time(datetime(2024, 5, 1, 21, 30, tzinfo=jst)) == "2024-05-01 12:30 UTC"

    def test_format_upload_time_naive_is_utc(self):
        assert format_upload_time(datetime(2024, 5, 1, 12, 30)) == "2024-05-01 12:30 UTC"

    @pytest.mark.parametrize(
        "text,expected",
        [("2024-05-01", "May 1, 2024"), ("2023-12-25", "Dec 25, 2023"), ("someday", "someday"), ("", "")],
    )
    def test_format_event_date(self, text, expected):
        assert format_event_date(text) == expected


class TestDiagnostics:
    def test_all_checks_healthy(self, app_services):
        app_services.storage.check_bucket_exists.return_value = True

        with patch("eventvault.ui.handlers.setup.get_app_services", return_value=app_services):
            result = run_diagnostics()

        assert result["healthy"] is True
        assert set(result["checks"]) == {"environment", "storage", "metadata"}
        assert result["configuration"]["GOOGLE_CLOUD_PROJECT"] == "SET"
        assert result["application"]["environment"] == "test"

    def test_missing_configuration_skips_service_checks(self, monkeypatch):
        monkeypatch.delenv("GCS_ASSETS_BUCKET")

        with patch("eventvault.ui.handlers.setup.get_app_services") as mock_services:
            result = run_diagnostics()

        mock_services.assert_not_called()
        assert result["healthy"] is False
        assert result["checks"]["environment"]["missing_vars"] == ["GCS_ASSETS_BUCKET"]

    def test_service_construction_failure(self):
        with patch("eventvault.ui.handlers.setup.get_app_services", side_effect=RuntimeError("no credentials")):
            result = run_diagnostics()

        assert result["healthy"] is False
        assert "no credentials" in result["checks"]["services"]["message"]
