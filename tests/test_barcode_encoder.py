"""
Unit tests for the barcode encoder.
"""

import io

import pytest
from PIL import Image

from core.barcode_encoder import BarcodeEncoder
from core.exceptions import EncodingError


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestEncode:
    """Rendering valid barcode text."""

    def test_returns_png_bytes(self, encoder):
        png = encoder.encode("ABC123")
        assert png.startswith(PNG_SIGNATURE)

        image = Image.open(io.BytesIO(png))
        assert image.width > image.height > 0

    def test_is_deterministic(self, encoder):
        assert encoder.encode("DEF456") == encoder.encode("DEF456")

    def test_different_text_gives_different_image(self, encoder):
        assert encoder.encode("ABC123") != encoder.encode("ABC124")

    def test_accepts_punctuation(self, encoder):
        png = encoder.encode("SKU-42/A b.c")
        assert png.startswith(PNG_SIGNATURE)

    def test_fixed_symbology(self, encoder):
        assert encoder.symbology == "code128"


class TestEncodingErrors:
    """Text the encoder must refuse."""

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_text(self, encoder, text):
        with pytest.raises(EncodingError) as exc_info:
            encoder.encode(text)
        assert exc_info.value.reason == "empty barcode text"

    def test_non_ascii_text(self, encoder):
        with pytest.raises(EncodingError) as exc_info:
            encoder.encode("café")
        assert "unsupported characters" in exc_info.value.reason
        assert exc_info.value.text == "café"

    def test_control_characters(self, encoder):
        with pytest.raises(EncodingError):
            encoder.encode("ABC\x01")

    def test_validate_does_not_render(self):
        BarcodeEncoder.validate("OK-123")
        with pytest.raises(EncodingError):
            BarcodeEncoder.validate("☃")
