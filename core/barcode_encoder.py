"""
Barcode encoder.

Turns barcode text into PNG bytes. The symbology and rendering options are
fixed so that identical text always yields identical bytes for a given
python-barcode / Pillow version:

    - Code 128 (linear, covers the full printable ASCII range)
    - 0.3 mm modules, 12 mm bars, 300 dpi
    - Human-readable text printed under the bars

The encoder never touches disk. Callers that need a file (the document
composer) own that file and must delete it.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Optional

import barcode
from barcode.writer import ImageWriter

from core.exceptions import EncodingError


SYMBOLOGY = "code128"

# Printable ASCII; control characters are valid Code 128 but unreadable
# in the human-readable line and unsafe to accept from a web form.
_MIN_CHAR = 0x20
_MAX_CHAR = 0x7E

DEFAULT_WRITER_OPTIONS: Dict[str, Any] = {
    "module_width": 0.3,
    "module_height": 12.0,
    "quiet_zone": 4.0,
    "font_size": 10,
    "text_distance": 4.0,
    "dpi": 300,
    "write_text": True,
    "background": "white",
    "foreground": "black",
}


class BarcodeEncoder:
    """Code 128 encoder producing PNG bytes."""

    def __init__(self, writer_options: Optional[Dict[str, Any]] = None):
        self._options = dict(DEFAULT_WRITER_OPTIONS)
        if writer_options:
            self._options.update(writer_options)
        self._barcode_class = barcode.get_barcode_class(SYMBOLOGY)

    @property
    def symbology(self) -> str:
        return SYMBOLOGY

    @staticmethod
    def validate(text: str) -> None:
        """
        Check that text can be encoded.

        Raises:
            EncodingError: If text is empty or has unsupported characters
        """
        if text is None or not text.strip():
            raise EncodingError(text or "", "empty barcode text")

        bad = sorted({ch for ch in text if not _MIN_CHAR <= ord(ch) <= _MAX_CHAR})
        if bad:
            shown = "".join(bad)
            raise EncodingError(text, f"unsupported characters {shown!r}")

    def encode(self, text: str) -> bytes:
        """
        Render text as a Code 128 PNG image.

        Args:
            text: Barcode content

        Returns:
            PNG image bytes

        Raises:
            EncodingError: If the text cannot be rendered
        """
        self.validate(text)

        buffer = io.BytesIO()
        try:
            code = self._barcode_class(text, writer=ImageWriter())
            code.write(buffer, self._options)
        except Exception as exc:
            raise EncodingError(text, str(exc)) from exc

        return buffer.getvalue()
