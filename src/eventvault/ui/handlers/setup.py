"""Setup diagnostics handlers."""

from typing import Any

import structlog

from eventvault import health
from eventvault.config import Config, missing_required_settings
from eventvault.ui.handlers.services import get_app_services

logger = structlog.get_logger(__name__)


def run_diagnostics() -> dict[str, Any]:
    """
    Check configuration and, when it is complete, storage and metadata connectivity.

    Returns:
        dict: ``configuration`` (key -> SET / NOT SET), ``checks`` per component and ``application`` info
    """
    configuration = health.configuration_report()
    checks: dict[str, Any] = {"environment": health.check_environment_health()}

    if not missing_required_settings():
        try:
            services = get_app_services()
            checks["storage"] = health.check_storage_health(services.storage)
            checks["metadata"] = health.check_metadata_health(services.metadata)
        except Exception as e:
            logger.error("diagnostics_services_unavailable", error=str(e))
            checks["services"] = {"status": "unhealthy", "message": f"Services could not be created: {e}"}

    all_healthy = all(check["status"] == "healthy" for check in checks.values())
    logger.info("diagnostics_completed", healthy=all_healthy)
    application = health.get_application_info(Config().get("ENVIRONMENT", "development"))
    return {"configuration": configuration, "checks": checks, "healthy": all_healthy, "application": application}
