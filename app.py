"""
BarcodeStockWeb - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env + config classes)
2. Creates the shared storage folders
3. Builds the session store, encoder, composer, archive builder and
   generation service
4. Registers route blueprints
5. Sets up error handlers

ARCHITECTURE:
    Request threads (Flask)
    ├── add_entry  -> SessionStore (per-session lock)
    └── generate   -> GenerationService
                      ├── document thread (+ encode prefetch pool)
                      └── archive thread

    SessionSweeper thread (background)
    ├── evicts idle sessions and deletes their staged photos
    └── evicts undownloaded generations and deletes their artifacts
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, redirect, url_for
from werkzeug.exceptions import RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.barcode_encoder import BarcodeEncoder
from core.exceptions import BarcodeStockError
from models.entry import Entry
from modules.report_inspector import ReportInspector
from services.archive_builder import ArchiveBuilder
from services.document_composer import DocumentComposer
from services.generation_service import ArtifactStore, GenerationService
from services.session_store import SessionStore
from routes import register_blueprints
from routes.helpers import flash_message, wants_json


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def _delete_staged_photos(entries: List[Entry]) -> None:
    """Eviction hook: staged photos of dropped sessions are never archived."""
    for entry in entries:
        if entry.has_photo:
            try:
                Path(entry.image_path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not delete staged photo {entry.image_path}: {e}")


def create_app(
    config_object: Any = "config.Config",
    overrides: Optional[Dict[str, Any]] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Config class or import path passed to from_object()
        overrides: Extra config values applied last (tests point the
            storage folders at a temp directory this way)

    Returns:
        Configured Flask application
    """
    # Use override=True so .env file always takes precedence over shell environment
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting BarcodeStockWeb in {app.config.get('ENVIRONMENT')} mode")

    # Ensure storage folders exist
    for key in ("UPLOAD_FOLDER", "PDF_FOLDER", "ARCHIVE_FOLDER", "TEMP_FOLDER"):
        Path(app.config[key]).mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    session_store = SessionStore(
        ttl_seconds=app.config["SESSION_TTL_SECONDS"],
        on_evict=_delete_staged_photos,
    )
    app.config["SESSION_STORE"] = session_store

    composer = DocumentComposer(
        encoder=BarcodeEncoder(),
        temp_folder=app.config["TEMP_FOLDER"],
        title=app.config["REPORT_TITLE"],
        encoder_workers=app.config["ENCODER_WORKERS"],
        text_font_path=app.config.get("REPORT_FONT_PATH"),
    )
    app.config["DOCUMENT_COMPOSER"] = composer

    artifact_store = ArtifactStore(ttl_seconds=app.config["ARTIFACT_TTL_SECONDS"])
    generation_service = GenerationService(
        session_store=session_store,
        composer=composer,
        archive_builder=ArchiveBuilder(),
        pdf_folder=app.config["PDF_FOLDER"],
        archive_folder=app.config["ARCHIVE_FOLDER"],
        inspector=ReportInspector(),
        artifact_store=artifact_store,
    )
    app.config["GENERATION_SERVICE"] = generation_service
    logger.info("Generation service initialized")

    # Undownloaded artifacts expire on the same sweep as idle sessions
    session_store.add_sweep_task(artifact_store.evict_expired)
    sweep_interval = app.config.get("SESSION_SWEEP_SECONDS", 0)
    if sweep_interval:
        session_store.start_sweeper(sweep_interval)

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        session_store.stop_sweeper()
        generation_service.artifact_store.clear(delete_files=True)
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(BarcodeStockError)
    def handle_app_error(e: BarcodeStockError):
        if e.status_code >= 500:
            logger.error(f"Request failed: {e}")
        else:
            logger.info(f"Request rejected: {e.message}")

        if wants_json():
            return jsonify(e.to_dict()), e.status_code
        flash_message("{message}", "error", message=e.message)
        return redirect(url_for("main.index"))

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 16 * 1024 * 1024) / (1024 * 1024)
        message = f"File too large. Maximum upload size is {max_mb:.0f} MB."
        if wants_json():
            return jsonify({"error": message, "details": {}}), 413
        flash_message("{message}", "error", message=message)
        return redirect(url_for("main.index"))

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred. Please try again.", "details": {}}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode, threaded=True)
