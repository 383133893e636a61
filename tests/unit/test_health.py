"""Tests for health checks and service composition."""

from unittest.mock import MagicMock, patch

import pytest

from eventvault import health
from eventvault.context import AppServices, create_services
from eventvault.errors import ConfigurationError
from eventvault.services.upload import HttpUploadGateway, ServiceUploadGateway


class TestHealthChecks:
    def test_metadata_health(self, metadata_service):
        assert health.check_metadata_health(metadata_service)["status"] == "healthy"
        assert health.check_metadata_health(None)["status"] == "unhealthy"

    def test_storage_health_mentions_bucket(self):
        storage = MagicMock()
        storage.bucket_name = "test-assets-bucket"
        storage.check_bucket_exists.return_value = False

        result = health.check_storage_health(storage)

        assert result["status"] == "unhealthy"
        assert "test-assets-bucket" in result["message"]

    def test_environment_health_missing(self, monkeypatch):
        monkeypatch.delenv("GCS_ASSETS_BUCKET")

        result = health.check_environment_health()

        assert result["status"] == "unhealthy"
        assert result["missing_vars"] == ["GCS_ASSETS_BUCKET"]

    def test_readiness_lists_unhealthy_services(self, metadata_service):
        result = health.check_readiness(None, metadata_service)

        assert result["status"] == "not_ready"
        assert result["unhealthy_services"] == ["storage"]
        assert result["checks"]["metadata"]["status"] == "healthy"

    def test_liveness_and_application_info(self):
        assert health.check_liveness()["status"] == "alive"

        info = health.get_application_info("test")
        assert info["name"] == "eventvault"
        assert info["environment"] == "test"


class TestServiceComposition:
    def test_upload_gateway_selection(self, settings, metadata_service):
        services = AppServices(settings, MagicMock(), metadata_service)

        assert isinstance(services.upload_gateway(), ServiceUploadGateway)

        gateway = services.upload_gateway("http://api.local/")
        assert isinstance(gateway, HttpUploadGateway)
        assert gateway.api_base_url == "http://api.local"

    @patch("eventvault.context.StorageService.from_settings", side_effect=Exception("no credentials"))
    def test_create_services_storage_failure(self, mock_from_settings, settings):
        with pytest.raises(ConfigurationError, match="Failed to create storage service"):
            create_services(settings)

    @patch("eventvault.context.StorageService.from_settings")
    def test_create_services(self, mock_from_settings, settings):
        services = create_services(settings)

        assert services.storage is mock_from_settings.return_value
        assert services.metadata.db_path == settings.metadata_db_path
