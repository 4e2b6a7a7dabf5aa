"""Catalog files and loader exports."""

from .loader import CatalogLoadError, CatalogLoader, load_catalogs
from .models import CatalogFile

__all__ = ["CatalogFile", "CatalogLoadError", "CatalogLoader", "load_catalogs"]
