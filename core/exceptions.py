"""
Custom exceptions for PisoPrint.

Exception Hierarchy:
    PisoPrintError (base)
    ├── EngineNotFoundError     - poppler not installed (startup failure)
    ├── InvalidInputError       - bad mime type, basename or field (runtime, graceful)
    ├── ConversionError         - upload pipeline failed (runtime, graceful)
    │   ├── NormalizationError  - PDF could not be re-laid onto letter/legal
    │   └── RasterizationError  - engine failed or produced no pages
    ├── CacheMissError          - cost request found no cached pages
    └── LedgerError             - transaction validation/persistence failed

Usage:
    Startup errors (EngineNotFoundError) cause app to fail fast.
    Runtime errors are turned into {"success": false, "message": ...} responses.
"""

from typing import Optional, Dict, Any


class PisoPrintError(Exception):
    """
    Base exception for all PisoPrint errors.

    Routes catch this one class and turn it into a JSON failure response.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message (shown to the kiosk user)
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# STARTUP ERRORS - Application will not start if these occur
# =============================================================================

class EngineNotFoundError(PisoPrintError):
    """
    A poppler binary (pdfinfo or pdftoppm) could not be located.

    FATAL: without it no page can be rendered and no cost computed.

    Typical causes:
    - poppler-utils not installed
    - Incorrect POPPLER_PATH in .env
    """

    def __init__(self, binary: str):
        message = f"Rasterization engine not found: {binary}"
        details = {
            "binary": binary,
            "resolution": "Install poppler-utils or set POPPLER_PATH in .env"
        }
        super().__init__(message, details)
        self.binary = binary


# =============================================================================
# RUNTIME ERRORS - Request fails, application continues
# =============================================================================

class InvalidInputError(PisoPrintError):
    """Rejected request input. Nothing has been mutated."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, details)
        self.field = field


class ConversionError(PisoPrintError):
    """
    Base class for upload conversion failures.

    The upload is aborted and the transient source PDF is removed.
    Staged pages are never published, so the cache holds nothing for
    the failed basename.
    """

    def __init__(
        self,
        message: str,
        basename: Optional[str] = None,
        paper_size: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if basename:
            error_details["basename"] = basename
        if paper_size:
            error_details["paper_size"] = paper_size
        super().__init__(message, error_details)
        self.basename = basename
        self.paper_size = paper_size


class NormalizationError(ConversionError):
    """A page could not be embedded into the target geometry, or saving failed."""


class RasterizationError(ConversionError):
    """
    The rasterization engine failed.

    Raised on non-zero exit, on spawn failure, and when the engine exits
    cleanly but leaves no page images behind.
    """

    def __init__(
        self,
        message: str,
        basename: Optional[str] = None,
        paper_size: Optional[str] = None,
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        details: Dict[str, Any] = {}
        if returncode is not None:
            details["returncode"] = returncode
        if stderr:
            details["stderr"] = stderr
        super().__init__(message, basename, paper_size, details)
        self.returncode = returncode
        self.stderr = stderr


class CacheMissError(PisoPrintError):
    """
    A cost request matched no cached pages.

    Kept separate from "no pages selected" so the kiosk can tell the user
    to re-upload instead of quoting zero.
    """

    def __init__(self, basename: str, paper_size: str):
        message = "No cached images found."
        details = {
            "basename": basename,
            "paper_size": paper_size,
            "resolution": "Upload the document again"
        }
        super().__init__(message, details)
        self.basename = basename
        self.paper_size = paper_size


class LedgerError(PisoPrintError):
    """Transaction draft rejected, or the database refused the write."""
