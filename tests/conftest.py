"""Shared fixtures for the BarcodeStockWeb test suite."""

import io
from pathlib import Path

import pytest
from PIL import Image

from app import create_app
from core.barcode_encoder import BarcodeEncoder
from modules.report_inspector import ReportInspector
from services.archive_builder import ArchiveBuilder
from services.document_composer import DocumentComposer
from services.generation_service import GenerationService
from services.session_store import SessionStore


def write_photo(path: Path, color: str = "red", size=(60, 40), fmt: str = "PNG") -> Path:
    """Write a small real image file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


def photo_bytes(color: str = "blue", fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (60, 40), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def folders(tmp_path):
    """Isolated storage folders."""
    paths = {
        "UPLOAD_FOLDER": tmp_path / "uploads",
        "PDF_FOLDER": tmp_path / "pdfs",
        "ARCHIVE_FOLDER": tmp_path / "archives",
        "TEMP_FOLDER": tmp_path / "tmp",
    }
    for path in paths.values():
        path.mkdir(parents=True, exist_ok=True)
    return paths


@pytest.fixture
def make_photo(folders):
    """Factory writing staged photos into the upload folder."""
    counter = {"n": 0}

    def _make(name: str = None, color: str = "red", fmt: str = "PNG") -> str:
        counter["n"] += 1
        name = name or f"photo-{counter['n']}.png"
        return str(write_photo(folders["UPLOAD_FOLDER"] / name, color=color, fmt=fmt))

    return _make


@pytest.fixture
def encoder():
    return BarcodeEncoder()


@pytest.fixture
def composer(encoder, folders):
    return DocumentComposer(encoder, folders["TEMP_FOLDER"], encoder_workers=2)


@pytest.fixture
def session_store():
    return SessionStore(ttl_seconds=3600)


@pytest.fixture
def generation_service(session_store, composer, folders):
    return GenerationService(
        session_store=session_store,
        composer=composer,
        archive_builder=ArchiveBuilder(),
        pdf_folder=folders["PDF_FOLDER"],
        archive_folder=folders["ARCHIVE_FOLDER"],
        inspector=ReportInspector(),
    )


@pytest.fixture
def app(folders):
    overrides = {key: str(path) for key, path in folders.items()}
    return create_app("config.TestingConfig", overrides=overrides)


@pytest.fixture
def client(app):
    return app.test_client()
