"""Asset listing, search, lookup, download links and dashboard stats."""

from fastapi import APIRouter, Depends

from ..context import AppServices
from ..errors import NotFoundError, ValidationError
from ..logging_config import get_logger, log_user_action
from ..models.asset import SearchCriteria
from .dependencies import get_services
from .schemas import DownloadRequest

logger = get_logger(__name__)

router = APIRouter()


@router.get("/assets")
def list_assets(
    pageSize: int = 100,
    offset: str | None = None,
    event: str | None = None,
    photographer: str | None = None,
    tags: str | None = None,
    dateFrom: str | None = None,
    dateTo: str | None = None,
    services: AppServices = Depends(get_services),
):
    """
    List assets newest first, or search them when any filter is given.

    List mode answers ``{records, offset?}`` where ``offset`` is the cursor for
    the next page. Search mode answers ``{records}``; its date bounds are
    exclusive.
    """
    criteria = SearchCriteria(
        event=event or None,
        photographer=photographer or None,
        tags=[tag for tag in (tags or "").split(",") if tag.strip()],
        date_from=dateFrom or None,
        date_to=dateTo or None,
    )

    if not criteria.is_empty():
        records = services.metadata.search(criteria)
        log_user_action("assets_searched", results=len(records))
        return {"records": [asset.to_api_dict() for asset in records]}

    page = services.metadata.list_assets(page_size=pageSize, cursor=offset or None)
    response: dict = {"records": [asset.to_api_dict() for asset in page.records]}
    if page.next_cursor:
        response["offset"] = page.next_cursor
    return response


@router.get("/assets/{asset_id}")
def get_asset(asset_id: str, services: AppServices = Depends(get_services)):
    asset = services.metadata.get_by_id(asset_id)
    if asset is None:
        raise NotFoundError(f"Asset not found: {asset_id}", details={"asset_id": asset_id})
    return {"asset": asset.to_api_dict()}


@router.post("/download")
def download_url(body: DownloadRequest, services: AppServices = Depends(get_services)):
    if not body.filename:
        raise ValidationError("Filename is required", code="missing_filename")

    url = services.storage.issue_download_url(body.filename, body.originalFilename)
    log_user_action("download_url_requested", key=body.filename)
    return {"downloadUrl": url}


@router.get("/stats")
def stats(services: AppServices = Depends(get_services)):
    return services.metadata.stats().to_api_dict()
