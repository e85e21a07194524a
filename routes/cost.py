"""
Cost calculation and cleanup routes.

Both work on the cached pages of an earlier upload, identified by basename.
"""

from typing import Any

from flask import Blueprint, request

from core.exceptions import PisoPrintError
from logging_config import get_logger
from routes.helpers import failure, failure_from, get_service
from services.cache_store import sanitize_basename


# Module logger
logger = get_logger(__name__)

cost_bp = Blueprint("cost", __name__)


def _page_list_text(value: Any) -> str:
    """Accept ``"1,2"`` or a JSON array like ``[1, 2]``."""
    if isinstance(value, (list, tuple)):
        return ",".join(str(page) for page in value)
    return str(value or "")


@cost_bp.route("/calculate-cost", methods=["POST"])
def calculate_cost():
    """
    Quote a page selection.

    Body: {paper, baseName, color, pages, copies} or, instead of pages,
    {pageMode, range} resolved against the cached page count

    Returns:
        {success, totalCost, usedSections, totalPages, reasoning[, selection]}
        or {success: false, message}
    """
    data = request.get_json(silent=True) or {}
    paper = data.get("paper")
    basename = data.get("baseName")

    if not paper or not basename:
        return failure("Missing params")

    try:
        conversion_service = get_service("CONVERSION_SERVICE")
        quote = conversion_service.calculate_cost(
            paper=str(paper),
            basename=str(basename),
            color_mode=str(data.get("color") or ""),
            pages=_page_list_text(data.get("pages")),
            copies=data.get("copies") or 1,
            page_mode=str(data.get("pageMode") or "") or None,
            page_range=str(data.get("range") or ""),
        )
        return quote.to_response()

    except PisoPrintError as e:
        logger.warning(f"Cost calculation rejected: {e}")
        return failure_from(e)
    except Exception as e:
        logger.error(f"Cost calculation failed: {e}", exc_info=True)
        return failure(str(e))


@cost_bp.route("/delete-last/<path:basename>", methods=["DELETE"])
def delete_last(basename: str):
    """
    Remove every cached page and normalized PDF of an upload.

    Always succeeds unless nothing usable is left of the basename after
    sanitizing.
    """
    safe_basename = sanitize_basename(basename)
    if not safe_basename:
        return failure("Invalid basename")

    try:
        conversion_service = get_service("CONVERSION_SERVICE")
        removed = conversion_service.cleanup(safe_basename)
        logger.info(f"Cleanup for {safe_basename}: {removed} files")
        return {"success": True}

    except PisoPrintError as e:
        return failure_from(e)
    except Exception as e:
        logger.error(f"Cleanup failed: {e}", exc_info=True)
        return failure(str(e))
