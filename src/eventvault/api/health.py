from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .. import health
from ..context import AppServices
from .dependencies import get_services

router = APIRouter()


@router.get("")
def liveness():
    return health.check_liveness()


@router.get("/ready")
def readiness(services: AppServices = Depends(get_services)):
    result = health.check_readiness(services.storage, services.metadata)
    status_code = 200 if result["status"] == "ready" else 503
    return JSONResponse(result, status_code=status_code)


@router.get("/config")
def configuration():
    # Presence only; values are never returned
    return {"configuration": health.configuration_report()}
