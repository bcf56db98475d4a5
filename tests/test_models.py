"""
Unit tests for the data models.
"""

import dataclasses

import pytest

from core.exceptions import ValidationError
from models.entry import Entry, SessionSnapshot, DEFAULT_STOCK_COUNT
from models.generation_result import ArtifactKind, GenerationResult, GenerationStatus


class TestEntry:
    """Entry creation and rendering."""

    def test_create_strips_and_keeps_values(self):
        entry = Entry.create("  ABC123 ", " 5 ")
        assert entry.barcode_text == "ABC123"
        assert entry.stock_count == "5"
        assert entry.has_photo is False

    @pytest.mark.parametrize("stock", [None, "", "   "])
    def test_blank_stock_count_defaults(self, stock):
        entry = Entry.create("DEF456", stock)
        assert entry.stock_count == DEFAULT_STOCK_COUNT == "N/A"

    @pytest.mark.parametrize("barcode", [None, "", "  \t"])
    def test_blank_barcode_rejected(self, barcode):
        with pytest.raises(ValidationError) as exc_info:
            Entry.create(barcode, "1")
        assert exc_info.value.field == "barcode"

    def test_block_text(self):
        assert Entry.create("ABC123", "5").block_text() == "Barcode: ABC123\nStock Count: 5"
        assert Entry.create("DEF456", "").block_text() == "Barcode: DEF456\nStock Count: N/A"

    def test_entry_is_frozen(self):
        entry = Entry.create("ABC123")
        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.stock_count = "9"

    def test_entry_ids_are_unique(self):
        ids = {Entry.create("SAME").entry_id for _ in range(50)}
        assert len(ids) == 50

    def test_photo_suffix(self):
        assert Entry.create("A", image_path="/x/photo-1-abc-shelf.JPG").photo_suffix == ".jpg"
        assert Entry.create("A", image_path="/x/p", original_filename="pic.png").photo_suffix == ".png"
        assert Entry.create("A", image_path="/x/p").photo_suffix == ".jpg"

    def test_to_dict(self):
        entry = Entry.create("ABC123", "5", "/tmp/a.png", "a.png")
        data = entry.to_dict()
        assert data["barcode"] == "ABC123"
        assert data["stock_count"] == "5"
        assert data["has_photo"] is True
        assert data["entry_id"] == entry.entry_id
        assert "image_path" not in data


class TestSessionSnapshot:
    """Snapshot helpers."""

    def test_photo_entries_keep_order(self):
        entries = (
            Entry.create("A", image_path="/p/a.png"),
            Entry.create("B"),
            Entry.create("C", image_path="/p/c.png"),
        )
        snapshot = SessionSnapshot(session_id="s1", entries=entries)

        assert len(snapshot) == 3
        assert [e.barcode_text for e in snapshot.photo_entries] == ["A", "C"]
        assert not snapshot.is_empty

    def test_empty_snapshot(self):
        snapshot = SessionSnapshot(session_id="s1")
        assert snapshot.is_empty
        assert list(snapshot) == []


class TestGenerationResult:
    """Result factories and serialization."""

    def test_create_completed(self):
        result = GenerationResult.create_completed(
            generation_id="20261018T101530000000-a1b2c3d4",
            session_id="s1",
            document_path="/out/doc.pdf",
            archive_path="/out/photos.zip",
            entries_total=3,
            entries_rendered=2,
            skipped_barcodes=["café"],
            archived_photos=["photo_000_abc.png"],
            page_count=1,
        )

        assert result.succeeded
        assert result.status == GenerationStatus.COMPLETED
        assert result.artifact_path(ArtifactKind.DOCUMENT) == "/out/doc.pdf"
        assert result.artifact_path(ArtifactKind.ARCHIVE) == "/out/photos.zip"
        assert "1 barcode(s) could not be encoded" in result.notes

        data = result.to_dict()
        assert data["status"] == "completed"
        assert data["entries_rendered"] == 2
        assert data["skipped_barcodes"] == ["café"]
        assert "document_path" not in data

    def test_create_failed(self):
        result = GenerationResult.create_failed("g1", "s1", "disk full", entries_total=4)
        assert not result.succeeded
        assert result.document_path is None
        assert result.notes == "disk full"

    def test_artifact_kind_download_names(self):
        assert ArtifactKind.DOCUMENT.download_name == "barcodes.pdf"
        assert ArtifactKind.ARCHIVE.download_name == "photos.zip"
        assert ArtifactKind("archive") is ArtifactKind.ARCHIVE
