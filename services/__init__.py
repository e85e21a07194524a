"""
Services layer for PisoPrint.

This module contains the business logic services:
- ImageCacheStore: letter/legal rendered-page partitions
- ConversionService: upload pipeline and cost requests
- LedgerService: transaction create/update

Thread Model:
    Request thread (Flask)
    └── ConversionService fan-out (Convert-letter, Convert-legal)
"""

from .cache_store import ImageCacheStore
from .conversion_service import ConversionService
from .ledger_service import LedgerService

__all__ = [
    "ImageCacheStore",
    "ConversionService",
    "LedgerService",
]
