"""
Core module for PisoPrint.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- raster_engine: pdf2image adapter (poppler rasterization engine)
- database: Ledger engine and session factory
"""

from .exceptions import (
    PisoPrintError,
    EngineNotFoundError,
    InvalidInputError,
    ConversionError,
    NormalizationError,
    RasterizationError,
    CacheMissError,
    LedgerError,
)
from .raster_engine import RasterEngine
from .database import Database

__all__ = [
    "PisoPrintError",
    "EngineNotFoundError",
    "InvalidInputError",
    "ConversionError",
    "NormalizationError",
    "RasterizationError",
    "CacheMissError",
    "LedgerError",
    "RasterEngine",
    "Database",
]
