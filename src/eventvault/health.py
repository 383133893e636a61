"""
Health checks for eventvault.

Used by the ``/api/health`` routes and by the Streamlit setup page. Each check
returns a small dict with a ``status`` of ``healthy`` or ``unhealthy`` and a
human-readable ``message``; none of them reveal configuration values.
"""

import platform
import time
from typing import Any

from . import __version__
from .config import Config, missing_required_settings, required_settings_status
from .logging_config import get_logger

logger = get_logger(__name__)

_START_TIME = time.time()


def check_metadata_health(metadata) -> dict[str, Any]:
    """Check that the metadata catalogue answers queries."""
    if metadata is None:
        return {"status": "unhealthy", "message": "Metadata service not configured", "timestamp": time.time()}

    if metadata.check_health():
        return {"status": "healthy", "message": "Metadata database reachable", "timestamp": time.time()}
    return {"status": "unhealthy", "message": "Metadata database query failed", "timestamp": time.time()}


def check_storage_health(storage) -> dict[str, Any]:
    """Check that the assets bucket exists and is accessible."""
    if storage is None:
        return {"status": "unhealthy", "message": "Storage service not configured", "timestamp": time.time()}

    if storage.check_bucket_exists():
        return {
            "status": "healthy",
            "message": f"Storage connection successful to bucket: {storage.bucket_name}",
            "timestamp": time.time(),
        }
    return {
        "status": "unhealthy",
        "message": f"Bucket not reachable: {storage.bucket_name}",
        "timestamp": time.time(),
    }


def check_environment_health(config: Config | None = None) -> dict[str, Any]:
    """Check that every required configuration key is present."""
    missing = missing_required_settings(config)
    if missing:
        return {
            "status": "unhealthy",
            "message": f"Missing environment variables: {', '.join(missing)}",
            "timestamp": time.time(),
            "missing_vars": missing,
        }
    return {"status": "healthy", "message": "Environment configuration is valid", "timestamp": time.time()}


def get_application_info(environment: str = "unknown") -> dict[str, Any]:
    return {
        "name": "eventvault",
        "version": __version__,
        "environment": environment,
        "uptime": time.time() - _START_TIME,
        "python_version": platform.python_version(),
    }


def check_liveness() -> dict[str, Any]:
    return {"status": "alive", "timestamp": time.time(), "uptime": time.time() - _START_TIME}


def check_readiness(storage, metadata, config: Config | None = None) -> dict[str, Any]:
    """
    Run every dependency check.

    Returns:
        dict: ``status`` is ``ready`` only when every check is healthy
    """
    start_time = time.time()
    checks = {
        "environment": check_environment_health(config),
        "metadata": check_metadata_health(metadata),
        "storage": check_storage_health(storage),
    }
    unhealthy = [name for name, result in checks.items() if result["status"] != "healthy"]

    response: dict[str, Any] = {
        "status": "not_ready" if unhealthy else "ready",
        "timestamp": time.time(),
        "duration_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }
    if unhealthy:
        response["unhealthy_services"] = unhealthy

    logger.info("readiness_check_completed", status=response["status"], unhealthy_services=unhealthy)
    return response


def configuration_report(config: Config | None = None) -> dict[str, str]:
    """Which configuration keys are present, as SET / NOT SET."""
    return required_settings_status(config)
