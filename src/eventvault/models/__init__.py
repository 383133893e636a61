"""
Models module for eventvault.

This module contains data models and schemas:
- Asset: A stored photo or video and its event metadata
- AssetMetadata: User-entered metadata shared by an upload batch
- StatsData, AssetPage, SearchCriteria: Query results and inputs
- DatabaseManager: DuckDB connection and schema management
"""

from .asset import (
    FILE_TYPES,
    IMAGE,
    VIDEO,
    Asset,
    AssetMetadata,
    AssetPage,
    PhotographerCount,
    SearchCriteria,
    StatsData,
    derive_file_type,
    file_extension,
)
from .database import DatabaseManager, create_database, get_database_manager
from .schema import get_schema_statements, validate_schema_compatibility

__all__ = [
    "Asset",
    "AssetMetadata",
    "AssetPage",
    "PhotographerCount",
    "SearchCriteria",
    "StatsData",
    "FILE_TYPES",
    "IMAGE",
    "VIDEO",
    "derive_file_type",
    "file_extension",
    "DatabaseManager",
    "create_database",
    "get_database_manager",
    "get_schema_statements",
    "validate_schema_compatibility",
]
