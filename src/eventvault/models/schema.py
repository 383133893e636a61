"""
Database schema definitions for eventvault.

This module contains the DuckDB schema for the asset catalogue.
"""

ASSETS_TABLE = "assets"

# tags holds a JSON array; NULL when the asset has no tags
ASSETS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS assets (
    id VARCHAR PRIMARY KEY,
    filename VARCHAR NOT NULL,
    original_filename VARCHAR NOT NULL,
    url VARCHAR NOT NULL,
    file_type VARCHAR NOT NULL,
    mime_type VARCHAR NOT NULL,
    size BIGINT NOT NULL,
    width INTEGER,
    height INTEGER,
    duration DOUBLE,
    uploaded_at VARCHAR NOT NULL,
    event VARCHAR NOT NULL,
    event_date VARCHAR NOT NULL,
    location VARCHAR NOT NULL DEFAULT '',
    photographer VARCHAR NOT NULL DEFAULT '',
    tags VARCHAR,
    description VARCHAR NOT NULL DEFAULT ''
);
"""

ASSETS_TABLE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_assets_uploaded_at ON assets(uploaded_at);",
    "CREATE INDEX IF NOT EXISTS idx_assets_date ON assets(event_date);",
    "CREATE INDEX IF NOT EXISTS idx_assets_event ON assets(event);",
]

# Column order used by every SELECT; Asset rows are built from it
ASSET_COLUMNS = (
    "id",
    "filename",
    "original_filename",
    "url",
    "file_type",
    "mime_type",
    "size",
    "width",
    "height",
    "duration",
    "uploaded_at",
    "event",
    "event_date",
    "location",
    "photographer",
    "tags",
    "description",
)


def get_schema_statements() -> list[str]:
    """
    Get all database schema creation statements.

    Returns:
        List of SQL statements to create tables and indexes
    """
    return [ASSETS_TABLE_SCHEMA, *ASSETS_TABLE_INDEXES]


def get_required_columns() -> set[str]:
    return set(ASSET_COLUMNS)


def validate_schema_compatibility() -> bool:
    """
    Check that every column the Asset model reads is declared in the schema.

    Returns:
        True if schema is compatible, False otherwise
    """
    schema_lower = ASSETS_TABLE_SCHEMA.lower()
    return all(f"    {column} " in schema_lower for column in ASSET_COLUMNS)
