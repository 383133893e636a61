"""
Services module for eventvault.

This module contains all service classes that handle business logic:
- StorageService: Google Cloud Storage operations for asset binaries
- MetadataService: DuckDB asset catalogue
- UploadOrchestrator: Sequential direct-to-storage batch uploads
- gallery: In-memory filtering for the gallery view
- reconcile: Orphaned object sweep
"""

from .gallery import FilterOptions, FilterState, apply_filters, filter_options, has_active_filters, load_gallery_assets
from .metadata import MetadataService
from .reconcile import SweepReport, sweep_orphans
from .storage import StorageService, StoredObject
from .upload import (
    BatchUploadResult,
    FileProgress,
    HttpUploadGateway,
    ServiceUploadGateway,
    UploadGateway,
    UploadItem,
    UploadOrchestrator,
    format_file_size,
    size_warnings,
)

__all__ = [
    "BatchUploadResult",
    "FileProgress",
    "FilterOptions",
    "FilterState",
    "HttpUploadGateway",
    "MetadataService",
    "ServiceUploadGateway",
    "StorageService",
    "StoredObject",
    "SweepReport",
    "UploadGateway",
    "UploadItem",
    "UploadOrchestrator",
    "apply_filters",
    "filter_options",
    "format_file_size",
    "has_active_filters",
    "load_gallery_assets",
    "size_warnings",
    "sweep_orphans",
]
