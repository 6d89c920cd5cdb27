"""Image stores for the reference catalogue and guest crops."""

from .base import BaseStore, CatalogueEntry, CatalogueScan
from .local import LocalStore
from .s3 import S3Store

__all__ = ["BaseStore", "CatalogueEntry", "CatalogueScan", "LocalStore", "S3Store"]
