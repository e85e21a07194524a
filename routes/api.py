"""
Infrastructure routes.

Handles:
- /cache/<paper>/<filename> - rendered page images for the preview
- /health - Health check endpoint
"""

from flask import Blueprint, abort, current_app, send_from_directory

from logging_config import get_logger
from models.session import PaperSize, PAGE_IMAGE_EXTENSION


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/cache/<paper>/<path:filename>", methods=["GET"])
def cached_page(paper: str, filename: str):
    """
    Serve a rendered page image.

    Only the two partitions are reachable; normalized PDFs, uploads and the
    staging area are not exposed.
    """
    try:
        paper_size = PaperSize.from_value(paper)
    except ValueError:
        abort(404)

    if not filename.endswith(PAGE_IMAGE_EXTENSION):
        abort(404)

    cache_store = current_app.config["CACHE_STORE"]
    response = send_from_directory(cache_store.partition_dir(paper_size), filename)
    # Pages are overwritten in place by grayscale quotes
    response.headers["Cache-Control"] = "no-store"
    return response


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    # Rasterization engine
    raster_engine = current_app.config.get("RASTER_ENGINE")
    if raster_engine and raster_engine.is_initialized:
        health_status["checks"]["raster_engine"] = "initialized"
    else:
        health_status["checks"]["raster_engine"] = "not_initialized"
        health_status["status"] = "degraded"

    # Cache partitions
    cache_store = current_app.config.get("CACHE_STORE")
    if cache_store and all(cache_store.partition_dir(p).is_dir() for p in PaperSize):
        health_status["checks"]["cache"] = "ok"
    else:
        health_status["checks"]["cache"] = "missing"
        health_status["status"] = "degraded"

    # Ledger database
    database = current_app.config.get("DATABASE")
    try:
        database.ping()
        health_status["checks"]["database"] = "ok"
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        health_status["checks"]["database"] = "unavailable"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
