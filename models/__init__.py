"""
Data models for BarcodeStockWeb.

This module contains dataclasses for:
- Entry: One barcode + stock count + optional photo
- SessionSnapshot: Frozen copy of a session's entries for one generate call
- GenerationResult: Outcome and artifact handles of one generate call

Entry and SessionSnapshot are frozen so they can be shared with the
document and archive threads without copying.
"""

from .entry import Entry, SessionSnapshot, DEFAULT_STOCK_COUNT
from .generation_result import GenerationResult, GenerationStatus, ArtifactKind

__all__ = [
    # Entry models
    "Entry",
    "SessionSnapshot",
    "DEFAULT_STOCK_COUNT",
    # Generation models
    "GenerationResult",
    "GenerationStatus",
    "ArtifactKind",
]
