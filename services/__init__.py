"""
Services layer for BarcodeStockWeb.

This module contains the business logic services:
- SessionStore: Per-client entry lists with TTL eviction
- DocumentComposer: PDF report layout
- ArchiveBuilder: ZIP archive of uploaded photos
- GenerationService: One generate call end-to-end, plus the ArtifactStore

Thread Model:
    Request thread (Flask)
    └── generate()
        ├── Gen-<id>-doc thread  (document composer)
        │   └── Encode_N threads (barcode prefetch)
        └── Gen-<id>-zip thread  (archive builder)
    SessionSweeper thread (idle session eviction)
"""

from .session_store import SessionStore
from .document_composer import DocumentComposer, ComposedDocument
from .archive_builder import ArchiveBuilder, BuiltArchive
from .generation_service import GenerationService, ArtifactStore

__all__ = [
    "SessionStore",
    "DocumentComposer",
    "ComposedDocument",
    "ArchiveBuilder",
    "BuiltArchive",
    "GenerationService",
    "ArtifactStore",
]
