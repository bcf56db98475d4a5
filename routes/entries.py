"""
Entry routes.

Handles adding entries (one at a time with an optional photo, or several
barcodes at once), listing the session's entries, and discarding them.
Nothing here touches the generated artifacts.
"""

from pathlib import Path
from typing import Optional

from flask import (
    Blueprint,
    current_app,
    jsonify,
    redirect,
    request,
    url_for,
)
from werkzeug.utils import secure_filename

from core.exceptions import ValidationError
from models.entry import Entry
from modules.naming import allowed_image, clean_field, staged_upload_name
from logging_config import get_logger
from .helpers import (
    current_session_id,
    document_composer,
    flash_message,
    session_store,
    wants_json,
)


# Module logger
logger = get_logger(__name__)

entries_bp = Blueprint("entries", __name__)


def _clean_barcode(raw: Optional[str]) -> str:
    """Strip barcode text; reject blank or over-long values."""
    barcode = clean_field(raw)
    if not barcode:
        raise ValidationError("Please provide a barcode.", field="barcode")

    max_length = current_app.config["MAX_BARCODE_LENGTH"]
    if len(barcode) > max_length:
        raise ValidationError(
            f"Barcode too long. Maximum {max_length} characters.", field="barcode"
        )
    return barcode


def _save_photo(photo) -> tuple:
    """
    Validate and stage an uploaded photo.

    Returns:
        Tuple of (stored_path, original_filename), or (None, None) when no
        photo was sent
    """
    if photo is None or not photo.filename:
        return None, None

    allowed = current_app.config["ALLOWED_IMAGE_EXTENSIONS"]
    if not allowed_image(photo.filename, allowed):
        raise ValidationError(
            f"Unsupported photo type. Allowed: {', '.join(sorted(allowed))}.",
            field="photo",
        )

    upload_folder = Path(current_app.config["UPLOAD_FOLDER"])
    upload_folder.mkdir(parents=True, exist_ok=True)

    stored_path = upload_folder / staged_upload_name(photo.filename)
    logger.info(f"Staging uploaded photo: {stored_path.name}")
    photo.save(stored_path)

    return str(stored_path), secure_filename(photo.filename) or None


def _clean_stock_count(raw: Optional[str]) -> str:
    """Strip the stock count; reject characters the report font cannot draw."""
    stock_count = clean_field(
        raw, max_length=current_app.config["MAX_STOCK_COUNT_LENGTH"]
    )
    unsupported = document_composer().unsupported_characters(stock_count)
    if unsupported:
        raise ValidationError(
            f"Stock count contains characters the report cannot print: {unsupported}",
            field="stock_count",
        )
    return stock_count


def _respond(payload: dict, status: int, message: str, **values):
    if wants_json():
        return jsonify(payload), status
    flash_message(message, "success", **values)
    return redirect(url_for("main.index"))


@entries_bp.route("/entries", methods=["POST"])
def add_entry():
    """
    Append one entry to the caller's session.

    Form fields: barcode (required), stock_count (optional), photo (file, optional).
    """
    session_id = current_session_id()

    barcode = _clean_barcode(request.form.get("barcode"))
    stock_count = _clean_stock_count(request.form.get("stock_count"))

    stored_path, original_filename = _save_photo(request.files.get("photo"))
    try:
        entry = Entry.create(barcode, stock_count, stored_path, original_filename)
        count = session_store().add_entry(session_id, entry)
    except Exception:
        # The entry was never stored; its photo must not linger in staging
        if stored_path:
            Path(stored_path).unlink(missing_ok=True)
        raise

    logger.info(f"Session {session_id[:8]}: entry '{barcode}' added ({count} total)")
    return _respond(
        {"entry": entry.to_dict(), "count": count},
        201,
        "Added barcode <strong>{barcode}</strong>.",
        barcode=barcode,
    )


@entries_bp.route("/entries/bulk", methods=["POST"])
def add_entries():
    """
    Append several barcodes at once, one per line.

    Blank lines are ignored; every entry gets the "N/A" stock count.
    """
    session_id = current_session_id()

    lines = (request.form.get("barcodes") or "").splitlines()
    barcodes = [_clean_barcode(line) for line in lines if line.strip()]
    if not barcodes:
        raise ValidationError("Please provide at least one barcode.", field="barcodes")

    entries = [Entry.create(barcode) for barcode in barcodes]
    count = session_store().add_entries(session_id, entries)

    logger.info(f"Session {session_id[:8]}: {len(entries)} entries added ({count} total)")
    return _respond(
        {"entries": [e.to_dict() for e in entries], "count": count},
        201,
        "Added <strong>{count}</strong> barcodes.",
        count=len(entries),
    )


@entries_bp.route("/entries", methods=["GET"])
def list_entries():
    """List the caller's pending entries in insertion order."""
    entries = session_store().entries(current_session_id())
    return jsonify({"entries": [e.to_dict() for e in entries], "count": len(entries)})


@entries_bp.route("/entries/clear", methods=["POST"])
def clear_entries():
    """Discard the caller's pending entries and their staged photos."""
    session_id = current_session_id()
    removed = session_store().discard(session_id)

    for entry in removed:
        if entry.has_photo:
            Path(entry.image_path).unlink(missing_ok=True)

    logger.info(f"Session {session_id[:8]}: discarded {len(removed)} entries")
    return _respond({"removed": len(removed), "count": 0}, 200, "Entries cleared.")
