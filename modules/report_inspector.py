"""Lightweight PDF inspector for generated reports."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Any

from pypdf import PdfReader


class ReportInspector:
    """Extract minimal metadata from a finished report, resilient to malformed PDFs."""

    def inspect(self, pdf_path: str | Path) -> Dict[str, Any]:
        path = Path(pdf_path)
        info: Dict[str, Any] = {
            "path": str(path),
            "pages": 0,
            "size_kb": round(path.stat().st_size / 1024, 2) if path.exists() else 0,
            "title": None,
        }

        try:
            reader = PdfReader(str(path))
            info["pages"] = len(reader.pages)
            if reader.metadata is not None:
                info["title"] = reader.metadata.title
        except Exception as exc:
            info["error"] = f"PDF inspection failed: {exc}"

        return info

    def extract_text(self, pdf_path: str | Path) -> str:
        """Concatenated text of every page, in page order."""
        reader = PdfReader(str(pdf_path))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
