"""
Flask route blueprints for BarcodeStockWeb.

This module contains all route handlers organized by functionality:
- main: Entry form page
- entries: add_entry, bulk add, list, clear
- generate: generate and artifact downloads
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .entries import entries_bp
from .generate import generate_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "entries_bp",
    "generate_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(entries_bp)
    app.register_blueprint(generate_bp)
    app.register_blueprint(api_bp)
