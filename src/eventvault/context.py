"""
Service composition.

``create_services`` wires the storage and metadata services from one
``Settings`` object. The REST API, the Streamlit UI and the CLI tasks all go
through it, so each process has a single instance of each service.
"""

from dataclasses import dataclass

from .config import Settings
from .errors import ConfigurationError
from .logging_config import get_logger
from .services.metadata import MetadataService
from .services.storage import StorageService
from .services.upload import HttpUploadGateway, ServiceUploadGateway, UploadGateway

logger = get_logger(__name__)


@dataclass
class AppServices:
    settings: Settings
    storage: StorageService
    metadata: MetadataService

    def upload_gateway(self, api_base_url: str | None = None) -> UploadGateway:
        """
        Gateway for the upload orchestrator.

        Uses the REST API when a base URL is given or configured, otherwise
        calls the services in-process.
        """
        base_url = api_base_url or self.settings.api_base_url
        if base_url:
            return HttpUploadGateway(base_url)
        return ServiceUploadGateway(self.storage, self.metadata)


def create_services(settings: Settings) -> AppServices:
    """
    Build the services for this process.

    Raises:
        ConfigurationError: If a service cannot be constructed from the settings
    """
    try:
        storage = StorageService.from_settings(settings)
    except Exception as e:
        raise ConfigurationError(f"Failed to create storage service: {e}", original_exception=e) from e

    metadata = MetadataService.from_settings(settings)
    logger.info("services_created", bucket=settings.assets_bucket, metadata_db_path=settings.metadata_db_path)
    return AppServices(settings=settings, storage=storage, metadata=metadata)
