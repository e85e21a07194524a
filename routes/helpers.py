"""Shared helpers for JSON route handlers."""

from typing import Any, Dict, Tuple

from flask import current_app

from core.exceptions import PisoPrintError


def failure(message: str, status: int = 200) -> Tuple[Dict[str, Any], int]:
    """
    ``{"success": false, "message": ...}``.

    Business failures are answered with 200 so the kiosk UI reads the
    message; only transport-level problems use error status codes.
    """
    return {"success": False, "message": message}, status


def failure_from(exc: PisoPrintError) -> Tuple[Dict[str, Any], int]:
    """Failure response carrying only the user-facing part of the error."""
    return failure(exc.message)


def get_service(key: str):
    """Service registered on app.config by create_app()."""
    service = current_app.config.get(key)
    if service is None:
        raise RuntimeError(f"{key} is not configured")
    return service
