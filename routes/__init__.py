"""
Flask route blueprints for PisoPrint.

This module contains all route handlers organized by functionality:
- upload: PDF upload and conversion
- cost: cost quotes and per-upload cleanup
- transaction: ledger create/update
- api: cached page images and health check

Each blueprint is registered with the Flask app in create_app().
"""

from .upload import upload_bp
from .cost import cost_bp
from .transaction import transaction_bp
from .api import api_bp

__all__ = [
    "upload_bp",
    "cost_bp",
    "transaction_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(upload_bp)
    app.register_blueprint(cost_bp)
    app.register_blueprint(transaction_bp)
    app.register_blueprint(api_bp)
