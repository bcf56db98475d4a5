"""
Integration tests for the HTTP routes, through the Flask test client.
"""

import io
import threading

from pypdf import PdfReader

from app import create_app
from core.exceptions import ArtifactWriteError
from tests.conftest import photo_bytes


def _add(client, barcode, stock="", photo=None):
    data = {"barcode": barcode, "stock_count": stock}
    if photo is not None:
        data["photo"] = photo
    return client.post("/entries", data=data, content_type="multipart/form-data")


class TestAddEntry:
    """POST /entries and friends."""

    def test_add_entry_acknowledges(self, client):
        response = _add(client, "ABC123", "5")

        assert response.status_code == 201
        body = response.get_json()
        assert body["count"] == 1
        assert body["entry"]["barcode"] == "ABC123"
        assert body["entry"]["stock_count"] == "5"

    def test_blank_stock_defaults(self, client):
        body = _add(client, "DEF456").get_json()
        assert body["entry"]["stock_count"] == "N/A"

    def test_blank_barcode_rejected_without_mutation(self, client):
        _add(client, "ABC123")

        response = _add(client, "   ", "5")

        assert response.status_code == 400
        assert response.get_json()["details"]["field"] == "barcode"
        assert client.get("/entries").get_json()["count"] == 1

    def test_markup_like_text_is_kept_verbatim(self, client):
        body = _add(client, " X<Y>Z ", "A&B").get_json()

        assert body["entry"]["barcode"] == "X<Y>Z"
        assert body["entry"]["stock_count"] == "A&B"

        result = client.post("/generate").get_json()
        document = client.get(result["downloads"]["document"])
        text = PdfReader(io.BytesIO(document.data)).pages[0].extract_text()
        assert "Barcode: X<Y>Z" in text
        assert "Stock Count: A&B" in text

    def test_unprintable_stock_count_rejected(self, client):
        response = _add(client, "ABC123", "\u6570\u91cf 5 \u20ac")

        assert response.status_code == 400
        body = response.get_json()
        assert body["details"]["field"] == "stock_count"
        assert "\u6570\u91cf" in body["error"]
        assert client.get("/entries").get_json()["count"] == 0

    def test_latin_stock_count_accepted(self, client):
        body = _add(client, "ABC123", "5 \u20ac caf\u00e9").get_json()
        assert body["entry"]["stock_count"] == "5 \u20ac caf\u00e9"

    def test_photo_is_staged(self, client, folders):
        response = _add(client, "ABC123", "5", (io.BytesIO(photo_bytes()), "shelf.png"))

        assert response.status_code == 201
        assert response.get_json()["entry"]["has_photo"] is True
        staged = list(folders["UPLOAD_FOLDER"].iterdir())
        assert len(staged) == 1
        assert staged[0].name.endswith("shelf.png")

    def test_unsupported_photo_type_rejected(self, client, folders):
        response = _add(client, "ABC123", "5", (io.BytesIO(b"MZ"), "tool.exe"))

        assert response.status_code == 400
        assert list(folders["UPLOAD_FOLDER"].iterdir()) == []
        assert client.get("/entries").get_json()["count"] == 0

    def test_bulk_add(self, client):
        response = client.post("/entries/bulk", data={"barcodes": "AAA\n\n  BBB  \nCCC\n"})

        assert response.status_code == 201
        entries = client.get("/entries").get_json()["entries"]
        assert [e["barcode"] for e in entries] == ["AAA", "BBB", "CCC"]
        assert all(e["stock_count"] == "N/A" for e in entries)

    def test_bulk_add_requires_a_barcode(self, client):
        response = client.post("/entries/bulk", data={"barcodes": "\n  \n"})
        assert response.status_code == 400

    def test_clear_discards_entries_and_photos(self, client, folders):
        _add(client, "ABC123", "5", (io.BytesIO(photo_bytes()), "shelf.png"))

        response = client.post("/entries/clear")

        assert response.get_json()["removed"] == 1
        assert client.get("/entries").get_json()["count"] == 0
        assert list(folders["UPLOAD_FOLDER"].iterdir()) == []

    def test_sessions_are_per_client(self, app):
        first = app.test_client()
        second = app.test_client()

        _add(first, "ONE")
        _add(second, "TWO")
        _add(second, "THREE")

        assert first.get("/entries").get_json()["count"] == 1
        assert second.get("/entries").get_json()["count"] == 2

    def test_concurrent_adds_from_one_session(self, app, client):
        _add(client, "SEED")
        with client.session_transaction() as sess:
            sid = sess["session_id"]

        statuses = []
        lock = threading.Lock()

        def worker(n):
            # Same session cookie on another request thread
            other = app.test_client()
            with other.session_transaction() as sess:
                sess["session_id"] = sid
            for i in range(10):
                status = _add(other, f"T{n}-{i}").status_code
                with lock:
                    statuses.append(status)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert statuses == [201] * 50
        assert app.config["SESSION_STORE"].count(sid) == 51


class TestGenerate:
    """POST /generate and downloads."""

    def test_generate_and_download(self, client, folders):
        _add(client, "ABC123", "5", (io.BytesIO(photo_bytes()), "shelf.png"))
        _add(client, "DEF456")

        response = client.post("/generate")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "completed"
        assert body["entries_rendered"] == 2
        assert len(body["archived_photos"]) == 1
        assert client.get("/entries").get_json()["count"] == 0
        assert list(folders["UPLOAD_FOLDER"].iterdir()) == []

        document = client.get(body["downloads"]["document"])
        assert document.status_code == 200
        assert document.mimetype == "application/pdf"
        assert document.data.startswith(b"%PDF")
        assert "barcodes.pdf" in document.headers["Content-Disposition"]

        archive = client.get(body["downloads"]["archive"])
        assert archive.status_code == 200
        assert archive.data.startswith(b"PK")

        assert list(folders["PDF_FOLDER"].iterdir()) == []
        assert list(folders["ARCHIVE_FOLDER"].iterdir()) == []

    def test_download_only_once(self, client):
        _add(client, "ABC123")
        body = client.post("/generate").get_json()

        client.get(body["downloads"]["document"])
        again = client.get(body["downloads"]["document"])

        assert again.status_code == 404

    def test_unknown_download(self, client):
        assert client.get("/download/nope/document").status_code == 404
        assert client.get("/download/nope/spreadsheet").status_code == 404

    def test_generate_empty_session(self, client):
        body = client.post("/generate").get_json()

        assert body["status"] == "completed"
        assert body["entries_total"] == 0
        assert body["page_count"] == 1

    def test_generate_failure_keeps_entries(self, app, client, monkeypatch):
        _add(client, "ABC123", "5")
        _add(client, "DEF456")
        service = app.config["GENERATION_SERVICE"]

        def broken_build(snapshot, output_path, log=None):
            raise ArtifactWriteError("archive", str(output_path), OSError("disk full"))

        monkeypatch.setattr(service._archive_builder, "build", broken_build)

        response = client.post("/generate")

        assert response.status_code == 500
        assert "disk full" in response.get_json()["error"]
        assert client.get("/entries").get_json()["count"] == 2

    def test_generation_status(self, client):
        _add(client, "ABC123")
        body = client.post("/generate").get_json()

        status = client.get(f"/generations/{body['generation_id']}")

        assert status.status_code == 200
        assert status.get_json()["entries_rendered"] == 1


class TestPages:
    """HTML form flow and health check."""

    def test_index_lists_entries(self, client):
        _add(client, "ABC123", "5")

        response = client.get("/", headers={"Accept": "text/html"})

        assert response.status_code == 200
        assert b"ABC123" in response.data

    def test_browser_form_post_redirects(self, client):
        response = client.post(
            "/entries",
            data={"barcode": "ABC123", "stock_count": "5"},
            headers={"Accept": "text/html,application/xhtml+xml"},
        )

        assert response.status_code == 302
        assert client.get("/entries").get_json()["count"] == 1

    def test_health(self, client):
        body = client.get("/health").get_json()
        assert body["status"] == "ok"
        assert body["pending_generations"] == 0

    def test_generate_requires_post(self, client):
        assert client.get("/generate").status_code == 405

    def test_flash_message_escapes_submitted_text(self, client):
        client.post(
            "/entries",
            data={"barcode": "X<Y>Z", "stock_count": "1"},
            headers={"Accept": "text/html"},
        )

        page = client.get("/", headers={"Accept": "text/html"}).data

        assert b"Added barcode <strong>X&lt;Y&gt;Z</strong>." in page
        assert b"<Y>" not in page


class TestArtifactExpiry:
    """Generations nobody downloads are swept away."""

    def test_sweep_deletes_undownloaded_artifacts(self, folders):
        overrides = {key: str(path) for key, path in folders.items()}
        overrides["ARTIFACT_TTL_SECONDS"] = -1
        app = create_app("config.TestingConfig", overrides=overrides)
        client = app.test_client()

        _add(client, "ABC123")
        body = client.post("/generate").get_json()
        assert len(list(folders["PDF_FOLDER"].iterdir())) == 1

        assert app.config["SESSION_STORE"].sweep() >= 1

        assert list(folders["PDF_FOLDER"].iterdir()) == []
        assert list(folders["ARCHIVE_FOLDER"].iterdir()) == []
        assert client.get(body["downloads"]["document"]).status_code == 404
        assert client.get("/health").get_json()["pending_generations"] == 0
