"""
Core module for BarcodeStockWeb.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- barcode_encoder: Code 128 text -> PNG encoder
"""

from .exceptions import (
    BarcodeStockError,
    ValidationError,
    EncodingError,
    ArtifactWriteError,
    GenerationFailedError,
    ArtifactNotFoundError,
)
from .barcode_encoder import BarcodeEncoder

__all__ = [
    "BarcodeStockError",
    "ValidationError",
    "EncodingError",
    "ArtifactWriteError",
    "GenerationFailedError",
    "ArtifactNotFoundError",
    "BarcodeEncoder",
]
