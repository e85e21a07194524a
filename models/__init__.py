"""
Data models for PisoPrint.

This module contains:
- UploadSession / PageSet / CachedPage: what one upload leaves in the cache
- PaperSize / ColorMode: the fixed print options
- CostQuote: result of a cost request
- Transaction: ledger row (SQLAlchemy)

The session models are frozen dataclasses, safe to pass between the
conversion threads and the request thread.
"""

from .session import UploadSession, PageSet, CachedPage, PaperSize, ColorMode
from .quote import CostQuote
from .transaction import Transaction, TransactionStatus

__all__ = [
    # Session models
    "UploadSession",
    "PageSet",
    "CachedPage",
    "PaperSize",
    "ColorMode",
    # Quote
    "CostQuote",
    # Ledger
    "Transaction",
    "TransactionStatus",
]
