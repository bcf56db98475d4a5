"""
Entry data models.

An Entry is one barcode + stock count + optional photo submitted by a client.
Entries accumulate in the client's session and are consumed by generate.

Thread Safety:
    - Entry is frozen; the session store hands out the same objects to
      every snapshot without copying.
    - SessionSnapshot holds a tuple, so a generate call can never see
      appends made after the snapshot was taken.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from core.exceptions import ValidationError


DEFAULT_STOCK_COUNT = "N/A"


@dataclass(frozen=True)
class Entry:
    """
    One inventory line awaiting generation.

    Immutable after creation. Use Entry.create() to build validated entries.
    """

    barcode_text: str
    """Text encoded into the barcode (never empty)."""

    stock_count: str = DEFAULT_STOCK_COUNT
    """Display value for the stock count."""

    image_path: Optional[str] = None
    """Path of the staged photo owned by this entry, if one was uploaded."""

    original_filename: Optional[str] = None
    """Sanitized filename the photo was uploaded under."""

    entry_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    """Stable identifier, safe to use in file names."""

    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    """ISO timestamp of creation."""

    @classmethod
    def create(
        cls,
        barcode_text: Optional[str],
        stock_count: Optional[str] = None,
        image_path: Optional[str] = None,
        original_filename: Optional[str] = None,
    ) -> "Entry":
        """
        Build a validated entry.

        A blank stock count becomes "N/A".

        Raises:
            ValidationError: If barcode_text is missing or blank
        """
        barcode_text = (barcode_text or "").strip()
        if not barcode_text:
            raise ValidationError("Barcode text is required.", field="barcode")

        stock_count = (stock_count or "").strip() or DEFAULT_STOCK_COUNT

        return cls(
            barcode_text=barcode_text,
            stock_count=stock_count,
            image_path=str(image_path) if image_path else None,
            original_filename=original_filename or None,
        )

    @property
    def has_photo(self) -> bool:
        return self.image_path is not None

    @property
    def photo_suffix(self) -> str:
        """Lower-case extension of the photo (with dot), ".jpg" if unknown."""
        for name in (self.original_filename, self.image_path):
            if name:
                suffix = Path(name).suffix.lower()
                if suffix:
                    return suffix
        return ".jpg"

    def block_text(self) -> str:
        """Text block rendered for this entry in the report."""
        return f"Barcode: {self.barcode_text}\nStock Count: {self.stock_count or DEFAULT_STOCK_COUNT}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "entry_id": self.entry_id,
            "barcode": self.barcode_text,
            "stock_count": self.stock_count,
            "has_photo": self.has_photo,
            "original_filename": self.original_filename,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Immutable copy of a session's entries, taken at the start of generate.

    This is the ONLY data the document composer and archive builder see.
    """

    session_id: str
    entries: Tuple[Entry, ...] = ()
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def photo_entries(self) -> Tuple[Entry, ...]:
        """Entries that carry an uploaded photo, in snapshot order."""
        return tuple(e for e in self.entries if e.has_photo)

    @property
    def is_empty(self) -> bool:
        return not self.entries
