"""
PisoPrint - Flask Application Entry Point.

This is a slim app factory that:
1. Locates the rasterization engine (fail-fast, no fallback renderer)
2. Creates the page cache, conversion service and ledger
3. Registers route blueprints
4. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Engine lookup (poppler pdfinfo + pdftoppm)
    ├── Flask request handling
    │   └── Upload conversion fans out to Convert-letter / Convert-legal
    └── Cleanup on shutdown (database engine)

The letter/legal cache partitions are shared by every request; the kiosk
runs one session at a time and each upload clears them first.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.database import Database
from core.exceptions import EngineNotFoundError
from core.raster_engine import RasterEngine
from modules.estimator import CostEstimator, Pricing
from services.cache_store import ImageCacheStore
from services.conversion_service import ConversionService
from services.ledger_service import LedgerService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: the directory containing the executable
    In development: the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def create_app(
    config_object: str | object = "config.Config",
    raster_engine: Optional[RasterEngine] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    FAIL-FAST: If poppler cannot be found, the app will not start.

    Args:
        config_object: Import path or class passed to app.config.from_object
        raster_engine: Pre-built engine (tests inject a fake one)

    Returns:
        Configured Flask application

    Raises:
        EngineNotFoundError: If the rasterization engine is missing
    """
    # .env next to the executable takes precedence over the shell environment
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="piso_print",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting PisoPrint in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CORE INITIALIZATION (FAIL-FAST)
    # =========================================================================

    if raster_engine is None:
        raster_engine = RasterEngine(
            poppler_path=app.config.get("POPPLER_PATH"),
            dpi=app.config["RASTER_DPI"],
            timeout=app.config.get("RASTER_TIMEOUT"),
        )
    if not raster_engine.is_initialized:
        try:
            raster_engine.initialize()
        except EngineNotFoundError as e:
            logger.error(f"FATAL: Cannot start application - {e}")
            raise
    app.config["RASTER_ENGINE"] = raster_engine

    database = Database(app.config["DATABASE_URL"])
    database.create_all()
    app.config["DATABASE"] = database
    logger.info("Ledger database ready")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    cache_store = ImageCacheStore(app.config["CACHE_FOLDER"])
    cache_store.ensure_partitions()
    app.config["CACHE_STORE"] = cache_store

    estimator = CostEstimator(cache_store, Pricing.from_config(app.config))
    app.config["CONVERSION_SERVICE"] = ConversionService(
        cache_store=cache_store,
        raster_engine=raster_engine,
        upload_dir=app.config["UPLOAD_FOLDER"],
        estimator=estimator,
    )
    app.config["LEDGER_SERVICE"] = LedgerService(database)
    logger.info("Conversion and ledger services initialized")

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        database.dispose()
        logger.info("Shutdown complete")

    # Tests dispose the database themselves
    if not app.config.get("TESTING"):
        atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024) / (1024 * 1024)
        return {
            "success": False,
            "message": f"File too large. Maximum upload size is {max_mb:.0f} MB.",
        }, 413

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"success": False, "message": "Not found."}, 404

    @app.errorhandler(Exception)
    def handle_server_error(e):
        if isinstance(e, HTTPException):
            return {"success": False, "message": e.description}, e.code
        logger.error(f"500 error: {e}", exc_info=True)
        return {"success": False, "message": "Server error."}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    # 0.0.0.0 so kiosk devices on the local network can reach it
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "3000")), debug=debug_mode)
