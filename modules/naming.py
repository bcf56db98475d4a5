"""
Input sanitation and file naming helpers.

Every file written to a shared folder gets a UTC timestamp plus a random
suffix, so concurrent requests from different sessions never collide.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import bleach
from werkzeug.utils import secure_filename


SUFFIX_BYTES = 4


# Markup allowed in flash messages rendered by the entry page
MESSAGE_TAGS = {"strong", "em"}


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")


def new_generation_id() -> str:
    """Generation identifier, e.g. "20261018T101530123456-a1b2c3d4"."""
    return f"{_timestamp()}-{secrets.token_hex(SUFFIX_BYTES)}"


def clean_field(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Normalize a submitted form field.

    Only surrounding whitespace is removed. The value is printed on a PDF
    canvas and encoded as a barcode, never interpreted as HTML, so characters
    like "<" and "&" are kept exactly as submitted.

    Args:
        text: Raw input text
        max_length: Optional maximum length to enforce

    Returns:
        Stripped (and possibly truncated) text
    """
    if not text:
        return ""

    text = text.strip()
    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def safe_markup(html: str) -> str:
    """
    Sanitize a message that is rendered as HTML.

    Only MESSAGE_TAGS survive; any other tag is stripped. User values must
    already be escaped before they are interpolated into the message.
    """
    return bleach.clean(html, tags=MESSAGE_TAGS, attributes={}, strip=True)


def allowed_image(filename: str, allowed_extensions) -> bool:
    """Check if file extension is allowed."""
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed_extensions


def staged_upload_name(original_filename: str) -> str:
    """
    Unique on-disk name for an uploaded photo.

    Example:
        staged_upload_name("../shelf 1.JPG")
        # -> "photo-20261018T101530123456-a1b2c3d4-shelf_1.JPG"
    """
    safe_name = secure_filename(original_filename) or "upload"
    return f"photo-{_timestamp()}-{secrets.token_hex(SUFFIX_BYTES)}-{safe_name}"


def artifact_paths(pdf_folder: str | Path, archive_folder: str | Path, generation_id: str):
    """Output paths (document, archive) for one generation."""
    return (
        Path(pdf_folder) / f"barcodes-{generation_id}.pdf",
        Path(archive_folder) / f"photos-{generation_id}.zip",
    )
