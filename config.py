"""
Configuration for PisoPrint.

The rasterization engine (poppler, driven through pdf2image) is required.
Application will fail-fast if it cannot be found.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB uploads
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # Transient uploads and the normalized letter/legal PDFs
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", str(BASE_DIR / "uploads"))

    # Root of the rendered-page cache (letter/ and legal/ live underneath)
    CACHE_FOLDER = os.environ.get("CACHE_FOLDER", str(BASE_DIR / "cache"))

    # Transaction ledger
    DATABASE_URL = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'db' / 'piso_print.db'}"
    )

    # ==========================================================================
    # Rasterization engine
    # ==========================================================================
    # POPPLER_PATH: directory holding pdfinfo/pdftoppm; unset means PATH
    # RASTER_DPI: output resolution; 72 DPI keeps one pixel per PDF point
    # RASTER_TIMEOUT: seconds; unset means no timeout (engine may block)
    # ==========================================================================
    POPPLER_PATH = os.environ.get("POPPLER_PATH") or None
    RASTER_DPI = int(os.environ.get("RASTER_DPI", "72"))
    RASTER_TIMEOUT = (
        float(os.environ["RASTER_TIMEOUT"]) if os.environ.get("RASTER_TIMEOUT") else None
    )

    # ==========================================================================
    # Pricing (currency units)
    # ==========================================================================
    # Formula: total = round((per_page × pages + ink × used_sections) × copies)
    # The ink surcharge is only charged for color jobs.
    # ==========================================================================
    COST_COLOR_PER_PAGE = float(os.environ.get("COST_COLOR_PER_PAGE", "10"))
    COST_BW_PER_PAGE = float(os.environ.get("COST_BW_PER_PAGE", "5"))
    COST_INK_PER_SECTION = float(os.environ.get("COST_INK_PER_SECTION", "0.5"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    DATABASE_URL = "sqlite://"
