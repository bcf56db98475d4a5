"""
Document composer: lays out one block per entry into a paginated PDF.

Layout (points, US Letter, 30pt margins):

    +--------------------------------------------------+
    |                  Barcodes List                   |  title, 25pt
    |                                                  |
    |  Barcode: ABC123                                 |  text, 14pt
    |  Stock Count: 5                                  |
    |  +------------------+        +------------------+|
    |  | barcode 200x100  |        |  photo 200x150   ||
    |  +------------------+        |                  ||
    |                              +------------------+|
    |  ... next block, BLOCK_HEIGHT lower ...          |
    +--------------------------------------------------+

The cursor always advances by BLOCK_HEIGHT, whatever the actual image sizes.
A block that does not fit above the bottom margin starts a new page, so a
block is never split.

Barcode encodes are prefetched on a small thread pool but consumed strictly
in snapshot order. Each encoded barcode is written to a transient PNG in the
temp folder and deleted as soon as it is embedded, on every exit path.
"""

from __future__ import annotations

import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from reportlab.lib.pagesizes import letter
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from core.barcode_encoder import BarcodeEncoder
from core.exceptions import ArtifactWriteError, EncodingError
from models.entry import Entry, SessionSnapshot
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

PAGE_SIZE = letter
MARGIN = 30

TITLE_FONT = ("Helvetica-Bold", 25)
TEXT_FONT = ("Helvetica", 14)
# The standard PDF fonts only cover the WinAnsi character set
STANDARD_FONT_ENCODING = "cp1252"
TEXT_LEADING = 18

BARCODE_BOX = (200, 100)
PHOTO_BOX = (200, 150)
IMAGE_GAP = 6
BLOCK_MARGIN = 24

TEXT_HEIGHT = 2 * TEXT_LEADING
BLOCK_HEIGHT = TEXT_HEIGHT + IMAGE_GAP + max(BARCODE_BOX[1], PHOTO_BOX[1]) + BLOCK_MARGIN


@dataclass
class ComposedDocument:
    """What the composer wrote."""

    path: str
    blocks: List[str] = field(default_factory=list)
    skipped_barcodes: List[str] = field(default_factory=list)
    photos_embedded: int = 0
    page_count: int = 1

    @property
    def entries_rendered(self) -> int:
        return len(self.blocks)


class DocumentComposer:
    """
    Builds the PDF report for one snapshot.

    A composer holds no per-call state; compose() may run concurrently
    for different snapshots as long as output paths differ.

    Block text uses Helvetica unless text_font_path names a TrueType font,
    which is registered with reportlab and embedded in every report.
    """

    def __init__(
        self,
        encoder: BarcodeEncoder,
        temp_folder: str | Path,
        title: str = "Barcodes List",
        encoder_workers: int = 4,
        text_font_path: Optional[str | Path] = None,
    ):
        self._encoder = encoder
        self._temp_folder = Path(temp_folder)
        self._title = title
        self._encoder_workers = max(1, encoder_workers)

        self._text_font = TEXT_FONT[0]
        self._glyphs: Optional[Set[int]] = None
        if text_font_path:
            font = TTFont(f"ReportText-{Path(text_font_path).stem}", str(text_font_path))
            pdfmetrics.registerFont(font)
            self._text_font = font.fontName
            self._glyphs = set(font.face.charToGlyph)
            logger.info(f"Report text font: {self._text_font}")

    @property
    def temp_folder(self) -> Path:
        return self._temp_folder

    @property
    def text_font(self) -> str:
        return self._text_font

    def unsupported_characters(self, text: str) -> str:
        """
        Characters of `text` the block font cannot draw, in order of first
        appearance. Empty when the whole text can be printed.
        """
        missing: List[str] = []
        for char in text:
            if char not in missing and not self._can_draw(char):
                missing.append(char)
        return "".join(missing)

    def _can_draw(self, char: str) -> bool:
        if not char.isprintable():
            return False
        if self._glyphs is not None:
            return ord(char) in self._glyphs
        try:
            char.encode(STANDARD_FONT_ENCODING)
        except UnicodeEncodeError:
            return False
        return True

    def compose(
        self,
        snapshot: SessionSnapshot,
        output_path: str | Path,
        generation_id: Optional[str] = None,
        log=None,
    ) -> ComposedDocument:
        """
        Write the report for a snapshot.

        Entries whose barcode cannot be encoded are logged and skipped.

        Args:
            snapshot: Entries to render, in order
            output_path: Where to write the PDF
            generation_id: Used to name transient files
            log: Logger to use (defaults to the module logger)

        Returns:
            ComposedDocument describing what was rendered

        Raises:
            ArtifactWriteError: If a transient file or the PDF cannot be written
        """
        log = log or logger
        output_path = Path(output_path)
        tag = generation_id or uuid.uuid4().hex[:12]
        self._temp_folder.mkdir(parents=True, exist_ok=True)

        result = ComposedDocument(path=str(output_path))
        pdf = canvas.Canvas(str(output_path), pagesize=PAGE_SIZE)
        pdf.setTitle(self._title)
        page_width, page_height = PAGE_SIZE

        cursor = self._draw_title(pdf, page_width, page_height)
        page_blank = False

        executor = ThreadPoolExecutor(
            max_workers=self._encoder_workers, thread_name_prefix="Encode"
        )
        try:
            futures: List[Tuple[Entry, Future]] = [
                (entry, executor.submit(self._encoder.encode, entry.barcode_text))
                for entry in snapshot
            ]

            for index, (entry, future) in enumerate(futures):
                try:
                    png = future.result()
                except EncodingError as e:
                    log.warning(f"Skipping entry {index}: {e.message}")
                    result.skipped_barcodes.append(entry.barcode_text)
                    continue

                if cursor - BLOCK_HEIGHT < MARGIN:
                    pdf.showPage()
                    result.page_count += 1
                    cursor = page_height - MARGIN
                    page_blank = True

                barcode_file = self._temp_folder / f"barcode-{tag}-{index:04d}-{entry.entry_id[:8]}.png"
                try:
                    try:
                        barcode_file.write_bytes(png)
                    except OSError as e:
                        raise ArtifactWriteError("document", str(barcode_file), e) from e

                    if not self._draw_block(pdf, entry, barcode_file, cursor, page_width, result, log):
                        result.skipped_barcodes.append(entry.barcode_text)
                        continue
                finally:
                    barcode_file.unlink(missing_ok=True)

                result.blocks.append(entry.block_text())
                page_blank = False
                cursor -= BLOCK_HEIGHT
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        if page_blank:
            # save() does not write a trailing page with nothing drawn on it
            result.page_count -= 1

        try:
            pdf.save()
        except OSError as e:
            output_path.unlink(missing_ok=True)
            raise ArtifactWriteError("document", str(output_path), e) from e

        log.info(
            f"Document finalized: {result.entries_rendered} blocks, "
            f"{len(result.skipped_barcodes)} skipped, {result.page_count} pages"
        )
        return result

    def _draw_title(self, pdf: canvas.Canvas, page_width: float, page_height: float) -> float:
        """Draw the title block; return the cursor below it."""
        font, size = TITLE_FONT
        pdf.setFont(font, size)
        baseline = page_height - MARGIN - size
        pdf.drawCentredString(page_width / 2, baseline, self._title)
        return baseline - BLOCK_MARGIN

    def _draw_block(
        self,
        pdf: canvas.Canvas,
        entry: Entry,
        barcode_file: Path,
        top: float,
        page_width: float,
        result: ComposedDocument,
        log,
    ) -> bool:
        """
        Draw one entry block with its top edge at `top`.

        The barcode image is drawn first; if it cannot be embedded nothing
        else of the block is drawn and False is returned. A photo that cannot
        be embedded is logged and left out.
        """
        images_top = top - TEXT_HEIGHT - IMAGE_GAP

        try:
            pdf.drawImage(
                str(barcode_file),
                MARGIN,
                images_top - BARCODE_BOX[1],
                width=BARCODE_BOX[0],
                height=BARCODE_BOX[1],
                preserveAspectRatio=True,
                anchor="nw",
            )
        except Exception as e:
            log.warning(f"Cannot embed barcode for '{entry.barcode_text}': {e}")
            return False

        size = TEXT_FONT[1]
        text = pdf.beginText(MARGIN, top - size)
        text.setFont(self._text_font, size, leading=TEXT_LEADING)
        for line in entry.block_text().split("\n"):
            text.textLine(line)
        pdf.drawText(text)

        if entry.has_photo:
            try:
                pdf.drawImage(
                    entry.image_path,
                    page_width - MARGIN - PHOTO_BOX[0],
                    images_top - PHOTO_BOX[1],
                    width=PHOTO_BOX[0],
                    height=PHOTO_BOX[1],
                    preserveAspectRatio=True,
                    anchor="nw",
                    mask="auto",
                )
                result.photos_embedded += 1
            except Exception as e:
                log.warning(f"Cannot embed photo for '{entry.barcode_text}': {e}")

        return True
