"""
eventvault - Media asset manager for event photographers

A web application for managing event photo and video collections with features including:
- Direct-to-storage uploads to Google Cloud Storage via signed URLs
- Event metadata (event, date, photographer, tags) stored in DuckDB
- Searchable, filterable gallery and dashboard built with Streamlit
- REST API for uploads, search, downloads and stats built with FastAPI
"""

__version__ = "0.1.0"
__author__ = "eventvault"
__description__ = "Media asset manager for event photographers"
