"""
app/connectors package marker.
"""

from app.connectors.base import BaseSourceCatalog, SourceFetchError
from app.connectors.catalog_factory import get_source_catalog
from app.connectors.http_source_catalog import HTTPSourceCatalog
from app.connectors.local_source_catalog import LocalSourceCatalog

__all__ = [
    "BaseSourceCatalog",
    "HTTPSourceCatalog",
    "LocalSourceCatalog",
    "SourceFetchError",
    "get_source_catalog",
]
