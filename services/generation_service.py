"""
Generation service: owns one generate call end-to-end.

Flow:
    1. Lock the session (held until step 6) and take a frozen snapshot
    2. Allocate a collision-free generation ID and output paths
    3. Run the document task and the archive task concurrently
    4. Join both tasks
    5. Re-open both artifacts to confirm they are intact
    6. Clear the session, release the lock
    7. Delete the staged photos that went into the archive
    8. Record the result in the ArtifactStore for download

Failure of either task (or of the confirmation) aborts the call: partial
artifacts are removed, the session and its staged photos are left exactly as
they were, and one GenerationFailedError is raised.

Thread Safety:
    - The snapshot is immutable - safe to share between both task threads
    - The two tasks share no lock; each owns its own output file
    - ArtifactStore uses threading.Lock for all operations; undownloaded
      generations expire after its TTL

Usage:
    generation_service = GenerationService(session_store, composer, builder,
                                           pdf_folder, archive_folder)
    result = generation_service.generate(session_id)
    path = generation_service.artifact_store.release(result.generation_id,
                                                     ArtifactKind.DOCUMENT)
"""

from __future__ import annotations

import threading
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from core.exceptions import (
    ArtifactNotFoundError,
    ArtifactWriteError,
    GenerationFailedError,
)
from models.entry import SessionSnapshot
from models.generation_result import ArtifactKind, GenerationResult
from modules.naming import artifact_paths, new_generation_id
from modules.report_inspector import ReportInspector
from services.archive_builder import ArchiveBuilder, BuiltArchive
from services.document_composer import ComposedDocument, DocumentComposer
from services.session_store import SessionStore
from logging_config import get_logger, get_generation_logger, set_thread_name


# Module logger
logger = get_logger(__name__)


class ArtifactStore:
    """
    Thread-safe registry of finished generations awaiting download.

    Each artifact can be released exactly once. The record is dropped when
    both artifacts of a generation have been released, or by evict_expired()
    once it is older than ttl_seconds; eviction deletes the artifact files
    that were never downloaded.
    """

    def __init__(
        self,
        ttl_seconds: float = 900.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize empty artifact store."""
        self._ttl = ttl_seconds
        self._clock = clock
        self._results: Dict[str, GenerationResult] = {}
        self._released: Dict[str, Set[ArtifactKind]] = {}
        self._stored_at: Dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def put(self, result: GenerationResult) -> None:
        """Register a completed generation."""
        with self._lock:
            self._results[result.generation_id] = result
            self._released[result.generation_id] = set()
            self._stored_at[result.generation_id] = self._clock()
            logger.debug(f"Stored artifacts for generation {result.generation_id}")

    def get(self, generation_id: str) -> Optional[GenerationResult]:
        """Look up a generation without releasing anything."""
        with self._lock:
            return self._results.get(generation_id)

    def release(self, generation_id: str, kind: ArtifactKind) -> Path:
        """
        Hand out an artifact path for download (once per artifact).

        Raises:
            ArtifactNotFoundError: If the generation is unknown, expired, or
                this artifact was already released
        """
        with self._lock:
            result = self._results.get(generation_id)
            released = self._released.get(generation_id, set())
            if result is None or kind in released:
                raise ArtifactNotFoundError(generation_id, kind.value)

            path = result.artifact_path(kind)
            if path is None:
                raise ArtifactNotFoundError(generation_id, kind.value)

            released.add(kind)
            if released == set(ArtifactKind):
                self._forget(generation_id)
                logger.debug(f"All artifacts of generation {generation_id} released")

            return Path(path)

    def evict_expired(self) -> int:
        """
        Drop generations stored longer than the TTL and delete their
        undownloaded artifact files.

        Returns:
            Number of generations evicted
        """
        now = self._clock()
        with self._lock:
            expired = [
                generation_id
                for generation_id, stored_at in self._stored_at.items()
                if now - stored_at > self._ttl
            ]
            dropped = [(self._results[gid], self._released[gid]) for gid in expired]
            for generation_id in expired:
                self._forget(generation_id)

        for result, released in dropped:
            self._delete_unreleased(result, released)

        if dropped:
            logger.info(f"Evicted {len(dropped)} undownloaded generations")
        return len(dropped)

    def clear(self, delete_files: bool = False) -> int:
        """
        Forget every stored generation.

        Args:
            delete_files: Also delete the artifact files not yet released

        Returns:
            Number of generations removed
        """
        with self._lock:
            dropped = [(result, self._released[gid]) for gid, result in self._results.items()]
            self._results.clear()
            self._released.clear()
            self._stored_at.clear()

        if delete_files:
            for result, released in dropped:
                self._delete_unreleased(result, released)

        logger.info(f"Cleared {len(dropped)} generations from artifact store")
        return len(dropped)

    def _forget(self, generation_id: str) -> None:
        # Caller holds self._lock
        self._results.pop(generation_id, None)
        self._released.pop(generation_id, None)
        self._stored_at.pop(generation_id, None)

    @staticmethod
    def _delete_unreleased(result: GenerationResult, released: Set[ArtifactKind]) -> None:
        for kind in ArtifactKind:
            path = result.artifact_path(kind)
            if not path or kind in released:
                continue
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not delete {path}: {e}")


class GenerationService:
    """
    Orchestrates document and archive generation for one session.

    Attributes:
        artifact_store: ArtifactStore holding completed generations
    """

    def __init__(
        self,
        session_store: SessionStore,
        composer: DocumentComposer,
        archive_builder: ArchiveBuilder,
        pdf_folder: str | Path,
        archive_folder: str | Path,
        inspector: Optional[ReportInspector] = None,
        artifact_store: Optional[ArtifactStore] = None,
    ):
        self._session_store = session_store
        self._composer = composer
        self._archive_builder = archive_builder
        self._pdf_folder = Path(pdf_folder)
        self._archive_folder = Path(archive_folder)
        self._inspector = inspector or ReportInspector()
        self._artifact_store = artifact_store or ArtifactStore()

        logger.info("GenerationService initialized")

    @property
    def artifact_store(self) -> ArtifactStore:
        """Access the artifact store for downloads."""
        return self._artifact_store

    def generate(self, session_id: str) -> GenerationResult:
        """
        Generate the report and the photo archive for a session.

        Runs to completion even if the requesting client has gone away.

        Args:
            session_id: Session whose entries are consumed

        Returns:
            Completed GenerationResult with both artifact paths

        Raises:
            GenerationFailedError: If either artifact could not be written.
                The session is left untouched.
        """
        generation_id = new_generation_id()
        gen_logger = get_generation_logger(generation_id)
        short_id = generation_id.rsplit("-", 1)[-1]

        with self._session_store.locked(session_id):
            snapshot = self._session_store.snapshot(session_id)
            gen_logger.info(
                f"Generation {generation_id} starting for session {session_id[:8]} "
                f"({len(snapshot)} entries, {len(snapshot.photo_entries)} photos)"
            )

            document_path, archive_path = artifact_paths(
                self._pdf_folder, self._archive_folder, generation_id
            )
            failures: List[BaseException] = []
            document: Optional[ComposedDocument] = None
            archive: Optional[BuiltArchive] = None
            page_count = 0

            try:
                self._pdf_folder.mkdir(parents=True, exist_ok=True)
                self._archive_folder.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                failures.append(ArtifactWriteError("output folders", str(self._pdf_folder), e))

            if not failures:
                with ThreadPoolExecutor(max_workers=2, thread_name_prefix=f"Gen-{short_id}") as pool:
                    document_task = pool.submit(
                        self._document_task, snapshot, document_path, generation_id, gen_logger
                    )
                    archive_task = pool.submit(
                        self._archive_task, snapshot, archive_path, generation_id, gen_logger
                    )

                    # Join both before deciding anything
                    for task in (document_task, archive_task):
                        try:
                            outcome = task.result()
                        except Exception as e:
                            gen_logger.error(f"Generation task failed: {e}", exc_info=True)
                            failures.append(e)
                            continue
                        if isinstance(outcome, ComposedDocument):
                            document = outcome
                        else:
                            archive = outcome

            if not failures:
                try:
                    page_count = self._confirm_durable(document_path, archive_path)
                except ArtifactWriteError as e:
                    failures.append(e)

            if failures:
                self._discard([document_path, archive_path])
                error = GenerationFailedError(generation_id, failures)
                gen_logger.error(f"{error.message}; session {session_id[:8]} left intact")
                raise error

            self._session_store.clear(session_id)

        # Archive is durable and the session no longer references the photos
        self._discard(archive.source_paths)

        result = GenerationResult.create_completed(
            generation_id=generation_id,
            session_id=session_id,
            document_path=str(document_path),
            archive_path=str(archive_path),
            entries_total=len(snapshot),
            entries_rendered=document.entries_rendered,
            skipped_barcodes=document.skipped_barcodes,
            archived_photos=archive.members,
            page_count=page_count,
        )
        self._artifact_store.put(result)

        gen_logger.info(
            f"Generation {generation_id} completed: {result.entries_rendered}/"
            f"{result.entries_total} entries, {len(result.archived_photos)} photos, "
            f"{page_count} pages"
        )
        return result

    def _document_task(
        self,
        snapshot: SessionSnapshot,
        document_path: Path,
        generation_id: str,
        gen_logger,
    ) -> ComposedDocument:
        set_thread_name(f"Gen-{generation_id.rsplit('-', 1)[-1]}-doc")
        return self._composer.compose(
            snapshot, document_path, generation_id=generation_id, log=gen_logger
        )

    def _archive_task(
        self,
        snapshot: SessionSnapshot,
        archive_path: Path,
        generation_id: str,
        gen_logger,
    ) -> BuiltArchive:
        set_thread_name(f"Gen-{generation_id.rsplit('-', 1)[-1]}-zip")
        return self._archive_builder.build(snapshot, archive_path, log=gen_logger)

    def _confirm_durable(self, document_path: Path, archive_path: Path) -> int:
        """
        Re-open both artifacts.

        Returns:
            Page count of the report

        Raises:
            ArtifactWriteError: If either artifact is unreadable
        """
        info = self._inspector.inspect(document_path)
        if info.get("error") or info["pages"] < 1:
            raise ArtifactWriteError(
                "document", str(document_path), RuntimeError(info.get("error", "no pages"))
            )

        try:
            corrupt = self._archive_builder.verify(archive_path)
        except (OSError, zipfile.BadZipFile) as e:
            raise ArtifactWriteError("archive", str(archive_path), e) from e
        if corrupt is not None:
            raise ArtifactWriteError(
                "archive", str(archive_path), RuntimeError(f"corrupt member {corrupt}")
            )

        return info["pages"]

    @staticmethod
    def _discard(paths: Iterable[str | Path]) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not delete {path}: {e}")
