"""
Client-side filtering for the gallery.

The gallery loads one bounded page of assets and narrows it down in memory.
All predicates are pure functions of the asset list and the filter state, so
applying the same state twice gives the same result.

Date bounds here are inclusive (``date_from <= date <= date_to``), unlike the
backend search in ``MetadataService.search`` whose bounds are exclusive.
"""

from dataclasses import dataclass, field

from ..logging_config import get_logger
from ..models.asset import Asset
from .metadata import MetadataService

logger = get_logger(__name__)

ALL = "all"


def _is_set(value: str | None) -> bool:
    return bool(value) and value != ALL


@dataclass
class FilterState:
    """Current gallery search box and filter widget values."""

    query: str = ""
    event: str | None = None
    photographer: str | None = None
    file_type: str | None = None
    tags: list[str] = field(default_factory=list)
    date_from: str | None = None
    date_to: str | None = None


@dataclass
class FilterOptions:
    events: list[str]
    photographers: list[str]
    tags: list[str]


def has_active_filters(state: FilterState) -> bool:
    return bool(
        state.query.strip()
        or _is_set(state.event)
        or _is_set(state.photographer)
        or _is_set(state.file_type)
        or state.tags
        or state.date_from
        or state.date_to
    )


def _matches_query(asset: Asset, query: str) -> bool:
    haystacks = [
        asset.filename,
        asset.original_filename,
        asset.event,
        asset.photographer,
        asset.description,
        *asset.tags,
    ]
    return any(query in (text or "").lower() for text in haystacks)


def apply_filters(assets: list[Asset], state: FilterState) -> list[Asset]:
    """
    Narrow ``assets`` to those matching every active filter.

    - query: case-insensitive substring over names, event, photographer, tags, description
    - event / photographer / file_type: exact match ("all" or empty disables)
    - tags: the asset carries at least one of the selected tags
    - date_from / date_to: inclusive string comparison on the event date

    The result is ordered by event date, newest first; assets sharing a date
    keep their input order.

    Args:
        assets: Assets to filter (not modified)
        state: Filter values

    Returns:
        list[Asset]: Matching assets
    """
    filtered = list(assets)

    query = state.query.strip().lower()
    if query:
        filtered = [asset for asset in filtered if _matches_query(asset, query)]

    if _is_set(state.event):
        filtered = [asset for asset in filtered if asset.event == state.event]

    if _is_set(state.photographer):
        filtered = [asset for asset in filtered if asset.photographer == state.photographer]

    if _is_set(state.file_type):
        filtered = [asset for asset in filtered if asset.file_type == state.file_type]

    if state.tags:
        wanted = set(state.tags)
        filtered = [asset for asset in filtered if wanted.intersection(asset.tags)]

    if state.date_from:
        filtered = [asset for asset in filtered if asset.date >= state.date_from]

    if state.date_to:
        filtered = [asset for asset in filtered if asset.date <= state.date_to]

    return sorted(filtered, key=lambda asset: asset.date, reverse=True)


def filter_options(assets: list[Asset]) -> FilterOptions:
    """Sorted distinct values for the filter widgets."""
    return FilterOptions(
        events=sorted({asset.event for asset in assets if asset.event}),
        photographers=sorted({asset.photographer for asset in assets if asset.photographer}),
        tags=sorted({tag for asset in assets for tag in asset.tags}),
    )


def load_gallery_assets(metadata: MetadataService, page_size: int = 1000) -> list[Asset]:
    """
    Fetch the single page of assets the gallery works on.

    Only the first ``page_size`` records (newest uploads first) are loaded;
    older assets are not reachable from the gallery.
    """
    page = metadata.list_assets(page_size=page_size)
    if page.next_cursor:
        logger.info("gallery_page_truncated", page_size=page_size)
    return page.records
