"""
Configuration for BarcodeStockWeb.

All folders live under one data root by default. They are shared by every
client of the process; per-call file names carry a timestamp plus a random
suffix so concurrent generations never collide.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env early so the Config class below sees its values
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = Path(os.environ.get("BARCODE_DATA_DIR", str(BASE_DIR / "var")))


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB uploads
    SESSION_COOKIE_NAME = "barcode_stock_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Storage areas
    # ==========================================================================
    # UPLOAD_FOLDER:  staged photos, kept until a generate archives them
    # PDF_FOLDER:     generated reports, removed once downloaded
    # ARCHIVE_FOLDER: generated photo archives, removed once downloaded
    # TEMP_FOLDER:    per-entry barcode PNGs, deleted right after embedding
    # ==========================================================================
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", str(DATA_DIR / "uploads"))
    PDF_FOLDER = os.environ.get("PDF_FOLDER", str(DATA_DIR / "pdfs"))
    ARCHIVE_FOLDER = os.environ.get("ARCHIVE_FOLDER", str(DATA_DIR / "archives"))
    TEMP_FOLDER = os.environ.get("TEMP_FOLDER", str(DATA_DIR / "tmp"))

    ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "bmp"}

    # Sessions idle longer than this are evicted together with their photos
    SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", "3600"))
    SESSION_SWEEP_SECONDS = float(os.environ.get("SESSION_SWEEP_SECONDS", "60"))

    # Generations not fully downloaded within this window are deleted
    ARTIFACT_TTL_SECONDS = int(os.environ.get("ARTIFACT_TTL_SECONDS", "900"))

    # Entry limits
    MAX_BARCODE_LENGTH = 80
    MAX_STOCK_COUNT_LENGTH = 32

    # Worker threads used to prefetch barcode encodes during one generate
    ENCODER_WORKERS = int(os.environ.get("ENCODER_WORKERS", "4"))

    REPORT_TITLE = os.environ.get("REPORT_TITLE", "Barcodes List")

    # Optional TrueType font for the entry text; Helvetica (WinAnsi only) otherwise
    REPORT_FONT_PATH = os.environ.get("REPORT_FONT_PATH") or None


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = "testing-secret-key"
    SESSION_SWEEP_SECONDS = 0  # tests call evict_expired() directly
    ENCODER_WORKERS = 2
