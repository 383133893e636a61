"""
Pytest configuration and fixtures for eventvault tests.
"""

import tempfile
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from eventvault.config import Settings
from eventvault.models.asset import Asset
from eventvault.services.metadata import MetadataService


class FakeClock:
    """Deterministic clock: every call returns one second later than the previous one."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class AssetFactory:
    """Factory for asset test data."""

    @staticmethod
    def fields(**overrides: Any) -> dict[str, Any]:
        """Record fields as passed to ``MetadataService.create``."""
        fields = {
            "filename": "assets/1714557600000-abc123.jpg",
            "original_filename": "IMG_0001.jpg",
            "url": "https://cdn.example.com/assets/1714557600000-abc123.jpg",
            "file_type": "image",
            "mime_type": "image/jpeg",
            "size": 2048,
            "event": "TechConf 2024",
            "date": "2024-05-01",
            "photographer": "Jane Doe",
            "tags": ["Keynote"],
            "description": "",
            "location": "Berlin",
        }
        fields.update(overrides)
        return fields

    @staticmethod
    def asset(**overrides: Any) -> Asset:
        data = {
            "id": overrides.pop("id", Asset.new_id()),
            "uploaded_at": overrides.pop("uploaded_at", datetime(2024, 5, 1, 12, 0, tzinfo=UTC)),
            **AssetFactory.fields(),
        }
        data.update(overrides)
        return Asset.from_dict(data)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set up test environment variables."""
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "test-project")
    monkeypatch.setenv("GCS_ASSETS_BUCKET", "test-assets-bucket")
    monkeypatch.delenv("API_BASE_URL", raising=False)
    monkeypatch.delenv("ASSETS_PUBLIC_BASE_URL", raising=False)
    monkeypatch.delenv("METADATA_DB_PATH", raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    return Settings(
        project_id="test-project",
        assets_bucket="test-assets-bucket",
        public_base_url="https://cdn.example.com",
        metadata_db_path=str(temp_dir / "eventvault.duckdb"),
    )


@pytest.fixture
def metadata_service(temp_dir: Path, clock: FakeClock) -> MetadataService:
    """Metadata service backed by a real DuckDB file."""
    return MetadataService(str(temp_dir / "metadata.duckdb"), clock=clock)


@pytest.fixture
def asset_factory() -> type[AssetFactory]:
    return AssetFactory
