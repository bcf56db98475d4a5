"""
Generation result data models.

A GenerationResult describes the outcome of one generate call and carries
the handles (file paths) of both artifacts. It is kept in the ArtifactStore
until the client has downloaded both artifacts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Optional


class GenerationStatus(Enum):
    """
    Status of a generate call.

    Lifecycle:
        RUNNING -> (COMPLETED | FAILED)
    """

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ArtifactKind(Enum):
    """The two outputs of a generate call."""

    DOCUMENT = "document"
    ARCHIVE = "archive"

    @property
    def download_name(self) -> str:
        return "barcodes.pdf" if self is ArtifactKind.DOCUMENT else "photos.zip"

    @property
    def mimetype(self) -> str:
        return "application/pdf" if self is ArtifactKind.DOCUMENT else "application/zip"


@dataclass
class GenerationResult:
    """
    Result of one generate call.

    Thread Safety:
        - Built by the generation service once both tasks have joined
        - Read by download requests through the ArtifactStore
    """

    generation_id: str
    """Collision-free identifier (UTC timestamp + random suffix)."""

    session_id: str
    """Session whose snapshot was generated."""

    status: GenerationStatus
    """Outcome."""

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    document_path: Optional[str] = None
    """Path of the generated PDF report."""

    archive_path: Optional[str] = None
    """Path of the generated ZIP archive."""

    entries_total: int = 0
    """Entries in the snapshot."""

    entries_rendered: int = 0
    """Entry blocks written to the report."""

    skipped_barcodes: List[str] = field(default_factory=list)
    """Barcodes that failed to encode and were left out of the report."""

    archived_photos: List[str] = field(default_factory=list)
    """Member names written to the archive."""

    page_count: int = 0
    """Pages in the generated report."""

    notes: str = ""
    """Additional notes or error messages."""

    @classmethod
    def create_completed(
        cls,
        generation_id: str,
        session_id: str,
        document_path: str,
        archive_path: str,
        entries_total: int,
        entries_rendered: int,
        skipped_barcodes: List[str],
        archived_photos: List[str],
        page_count: int = 0,
    ) -> "GenerationResult":
        """Create a result for a generate call whose artifacts are both durable."""
        notes = "Report and archive generated."
        if skipped_barcodes:
            notes = f"{notes} {len(skipped_barcodes)} barcode(s) could not be encoded."

        return cls(
            generation_id=generation_id,
            session_id=session_id,
            status=GenerationStatus.COMPLETED,
            document_path=document_path,
            archive_path=archive_path,
            entries_total=entries_total,
            entries_rendered=entries_rendered,
            skipped_barcodes=list(skipped_barcodes),
            archived_photos=list(archived_photos),
            page_count=page_count,
            notes=notes,
        )

    @classmethod
    def create_failed(
        cls,
        generation_id: str,
        session_id: str,
        error_message: str,
        entries_total: int = 0,
    ) -> "GenerationResult":
        """Create a result for a failed generate call (no artifact handles)."""
        return cls(
            generation_id=generation_id,
            session_id=session_id,
            status=GenerationStatus.FAILED,
            entries_total=entries_total,
            notes=error_message,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == GenerationStatus.COMPLETED

    def artifact_path(self, kind: ArtifactKind) -> Optional[str]:
        if kind is ArtifactKind.DOCUMENT:
            return self.document_path
        return self.archive_path

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "generation_id": self.generation_id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "entries_total": self.entries_total,
            "entries_rendered": self.entries_rendered,
            "skipped_barcodes": list(self.skipped_barcodes),
            "archived_photos": list(self.archived_photos),
            "page_count": self.page_count,
            "notes": self.notes,
        }
