"""
Custom exceptions for BarcodeStockWeb.

Exception Hierarchy:
    BarcodeStockError (base)
    ├── ValidationError        - Bad entry input (rejected before any session change)
    ├── EncodingError          - Barcode cannot be rendered (entry skipped, logged)
    ├── ArtifactWriteError     - Document or archive stream failed (fatal to generate)
    ├── GenerationFailedError  - Aggregate failure surfaced by one generate call
    └── ArtifactNotFoundError  - Download of an unknown or already released artifact

Usage:
    ValidationError is raised to the client as a 400.
    EncodingError never leaves the document composer.
    ArtifactWriteError is collected by the generation service and re-raised
    as a single GenerationFailedError; the session is left intact.
"""

from typing import Optional, Dict, Any, List


class BarcodeStockError(Exception):
    """
    Base exception for all BarcodeStockWeb errors.

    Allows callers to catch every application-specific error with a single
    except clause.
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON error responses."""
        return {"error": self.message, "details": self.details}


class ValidationError(BarcodeStockError):
    """
    An entry field is missing or malformed.

    Raised by Entry.create() and the entry routes before the session
    is touched, so a rejected request never leaves a partial entry.
    """

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, details)
        self.field = field


class EncodingError(BarcodeStockError):
    """
    The barcode encoder cannot render the given text.

    Typical causes:
    - Empty or blank text
    - Characters outside the Code 128 printable range
    """

    status_code = 422

    def __init__(self, text: str, reason: str):
        message = f"Cannot encode barcode {text!r}: {reason}"
        super().__init__(message, {"text": text, "reason": reason})
        self.text = text
        self.reason = reason


class ArtifactWriteError(BarcodeStockError):
    """
    Writing the document or the archive failed.

    Fatal to the generate call that hit it.
    """

    def __init__(self, artifact: str, path: str, cause: Optional[BaseException] = None):
        message = f"Failed to write {artifact} at {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, {"artifact": artifact, "path": path})
        self.artifact = artifact
        self.path = path
        self.cause = cause


class GenerationFailedError(BarcodeStockError):
    """
    One generate call failed as a whole.

    Wraps every ArtifactWriteError (or unexpected error) raised by the
    document and archive tasks. The session entries are untouched so the
    client can retry without re-entering data.
    """

    def __init__(self, generation_id: str, causes: List[BaseException]):
        summary = "; ".join(str(c) for c in causes) or "unknown error"
        message = f"Generation {generation_id} failed: {summary}"
        details = {
            "generation_id": generation_id,
            "failures": len(causes),
            "resolution": "Session entries were kept. Retry the generate request.",
        }
        super().__init__(message, details)
        self.generation_id = generation_id
        self.causes = causes


class ArtifactNotFoundError(BarcodeStockError):
    """A download was requested for an unknown or already released artifact."""

    status_code = 404

    def __init__(self, generation_id: str, kind: str):
        message = f"No {kind} available for generation {generation_id}"
        super().__init__(message, {"generation_id": generation_id, "kind": kind})
        self.generation_id = generation_id
        self.kind = kind
