"""
app/connectors/catalog_factory.py

Builds the configured source catalog.
"""

from __future__ import annotations

from functools import lru_cache

from app.config import get_source_catalog_settings
from app.connectors.base import BaseSourceCatalog
from app.connectors.http_source_catalog import HTTPSourceCatalog
from app.connectors.local_source_catalog import LocalSourceCatalog


@lru_cache(maxsize=1)
def get_source_catalog() -> BaseSourceCatalog:
    """
    HTTP storage wins when both a base URL and a directory are configured.
    """

    settings = get_source_catalog_settings()
    if settings.base_url:
        return HTTPSourceCatalog(base_url=settings.base_url, settings=settings)
    if settings.directory:
        return LocalSourceCatalog(directory=settings.directory, file_names=settings.file_names)
    raise RuntimeError(
        "No migration source configured. Set MIGRATION_SOURCE_BASE_URL or MIGRATION_SOURCE_DIR."
    )
