"""
Archive builder: streams the uploaded photos of a snapshot into a ZIP.

Member names never contain user-supplied barcode text. They are built from
the entry's position in the snapshot and its random entry ID:

    photo_000_3f2a9c1b0d4e.jpg
    photo_002_a81c44e0f7b2.png

so duplicate barcodes and path-unsafe characters cannot collide or escape.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from core.exceptions import ArtifactWriteError
from models.entry import Entry, SessionSnapshot
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

COMPRESSION = zipfile.ZIP_DEFLATED
COMPRESS_LEVEL = 9


@dataclass
class BuiltArchive:
    """What the builder wrote."""

    path: str
    members: List[str] = field(default_factory=list)
    source_paths: List[str] = field(default_factory=list)

    @property
    def photo_count(self) -> int:
        return len(self.members)


def member_name(index: int, entry: Entry) -> str:
    """Archive member name for the photo of the entry at `index`."""
    return f"photo_{index:03d}_{entry.entry_id[:12]}{entry.photo_suffix}"


class ArchiveBuilder:
    """Writes one ZIP archive per snapshot."""

    def __init__(self, compresslevel: int = COMPRESS_LEVEL):
        self._compresslevel = compresslevel

    def build(
        self,
        snapshot: SessionSnapshot,
        output_path: str | Path,
        log=None,
    ) -> BuiltArchive:
        """
        Write every photo of the snapshot into a new archive.

        An empty snapshot (or one without photos) yields a valid empty archive.

        Raises:
            ArtifactWriteError: If the archive or any photo cannot be read/written.
                The partial archive is removed.
        """
        log = log or logger
        output_path = Path(output_path)
        result = BuiltArchive(path=str(output_path))

        try:
            with zipfile.ZipFile(
                output_path, "w", compression=COMPRESSION, compresslevel=self._compresslevel
            ) as archive:
                for index, entry in enumerate(snapshot):
                    if not entry.has_photo:
                        continue
                    name = member_name(index, entry)
                    archive.write(entry.image_path, arcname=name)
                    result.members.append(name)
                    result.source_paths.append(entry.image_path)
                    log.debug(f"Archived photo for entry {index} as {name}")
        except OSError as e:
            output_path.unlink(missing_ok=True)
            raise ArtifactWriteError("archive", str(output_path), e) from e

        log.info(f"Archive finalized: {result.photo_count} photos")
        return result

    @staticmethod
    def verify(path: str | Path) -> Optional[str]:
        """
        Re-open a finished archive and CRC-check every member.

        Returns:
            Name of the first corrupt member, or None if all are intact
        """
        with zipfile.ZipFile(path) as archive:
            return archive.testzip()
