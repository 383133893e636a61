"""
FastAPI application factory.

Every error response has the body ``{"success": false, "error": "..."}``.
Validation problems answer 400, unknown assets 404, anything else 500.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..context import AppServices, create_services
from ..errors import ErrorCategory, EventVaultError, error_message
from ..logging_config import configure_structured_logging, get_logger, log_error
from . import assets, health, upload

logger = get_logger(__name__)

_STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
}


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


async def handle_eventvault_error(request: Request, exc: EventVaultError) -> JSONResponse:
    status_code = _STATUS_BY_CATEGORY.get(exc.category, 500)
    logger.warning(
        "api_request_failed",
        path=request.url.path,
        status_code=status_code,
        category=exc.category.value,
        code=exc.code,
    )
    return _error_response(status_code, error_message(exc))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.warning("api_request_invalid", path=request.url.path, problems=problems)
    return _error_response(400, f"Invalid request: {problems}")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log_error(exc, {"path": request.url.path})
    return _error_response(500, error_message(exc))


def create_app(settings: Settings, services: AppServices | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Process settings
        services: Pre-built services (built from ``settings`` when omitted)

    Returns:
        FastAPI: Configured application
    """
    configure_structured_logging()

    app = FastAPI(title="eventvault", description="Event photo and video asset manager", version=__version__)
    app.state.settings = settings
    app.state.services = services or create_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.api_allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EventVaultError, handle_eventvault_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(upload.router, prefix="/api/upload", tags=["upload"])
    app.include_router(assets.router, prefix="/api", tags=["assets"])
    app.include_router(health.router, prefix="/api/health", tags=["health"])

    logger.info("api_app_created", environment=settings.environment, origins=list(settings.api_allowed_origins))
    return app
