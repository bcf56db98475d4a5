"""
Session store: per-client ordered entry lists.

The Flask cookie only carries a session ID. Entries live here, keyed by that
ID, so uploads never bloat the cookie and a generate call can lock the list
it is about to consume.

Thread Safety:
    - A store-level lock guards the ID -> session map (lazy creation,
      eviction).
    - Each session has its own RLock. add_entry and clear take it briefly;
      generate holds it for its whole duration via locked(), so no append
      can land between the snapshot and the clear.
    - Different sessions never contend on the same session lock.

Eviction:
    Sessions idle longer than ttl_seconds are dropped by evict_expired(),
    either called directly or from the background sweep thread started with
    start_sweeper(). A session whose lock is held (generate in flight) is
    never evicted. Evicted entries are passed to on_evict so their staged
    photos can be deleted. Each sweep also runs the tasks registered with
    add_sweep_task().
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from models.entry import Entry, SessionSnapshot
from logging_config import get_logger, set_thread_name


# Module logger
logger = get_logger(__name__)


@dataclass
class _SessionState:
    entries: List[Entry] = field(default_factory=list)
    lock: threading.RLock = field(default_factory=threading.RLock)
    last_access: float = 0.0


class SessionStore:
    """
    Thread-safe keyed store of session entry lists.

    Usage:
        store = SessionStore(ttl_seconds=3600, on_evict=delete_photos)

        store.add_entry(session_id, entry)

        with store.locked(session_id):
            snapshot = store.snapshot(session_id)
            ...
            store.clear(session_id)
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        on_evict: Optional[Callable[[List[Entry]], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._on_evict = on_evict
        self._clock = clock

        self._sessions: Dict[str, _SessionState] = {}
        self._lock = threading.Lock()

        # Background sweep control
        self._sweep_tasks: List[Callable[[], int]] = []
        self._sweeper: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        logger.info(f"SessionStore initialized (ttl: {ttl_seconds}s)")

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def _state(self, session_id: str) -> _SessionState:
        """Get or lazily create a session, marking it as accessed."""
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                state = _SessionState()
                self._sessions[session_id] = state
                logger.debug(f"Created session {session_id[:8]}")
            state.last_access = self._clock()
            return state

    @contextmanager
    def _held_state(self, session_id: str) -> Iterator[_SessionState]:
        """
        Lock the session that is currently registered under session_id.

        A state fetched just before discard() or eviction removed it is
        orphaned; writes to it would be lost, so fetch again until the
        locked state is still the one in the map.
        """
        while True:
            state = self._state(session_id)
            with state.lock:
                with self._lock:
                    current = self._sessions.get(session_id) is state
                if current:
                    yield state
                    return

    # =========================================================================
    # ENTRY OPERATIONS
    # =========================================================================

    def add_entry(self, session_id: str, entry: Entry) -> int:
        """
        Append one entry to a session.

        Blocks while a generate call holds the session.

        Returns:
            Number of entries in the session after the append
        """
        with self._held_state(session_id) as state:
            state.entries.append(entry)
            count = len(state.entries)

        logger.debug(f"Session {session_id[:8]}: added '{entry.barcode_text}' ({count} entries)")
        return count

    def add_entries(self, session_id: str, entries: Iterable[Entry]) -> int:
        """Append several entries atomically, preserving their order."""
        entries = list(entries)
        with self._held_state(session_id) as state:
            state.entries.extend(entries)
            count = len(state.entries)

        logger.debug(f"Session {session_id[:8]}: added {len(entries)} entries ({count} total)")
        return count

    def entries(self, session_id: str) -> Tuple[Entry, ...]:
        """Current entries of a session, in insertion order."""
        state = self._state(session_id)
        with state.lock:
            return tuple(state.entries)

    def count(self, session_id: str) -> int:
        state = self._state(session_id)
        with state.lock:
            return len(state.entries)

    def snapshot(self, session_id: str) -> SessionSnapshot:
        """Take an immutable snapshot of a session's entries."""
        state = self._state(session_id)
        with state.lock:
            return SessionSnapshot(session_id=session_id, entries=tuple(state.entries))

    def clear(self, session_id: str) -> List[Entry]:
        """
        Remove all entries from a session, keeping the session itself.

        Returns:
            The removed entries
        """
        with self._held_state(session_id) as state:
            removed = list(state.entries)
            state.entries.clear()

        logger.info(f"Session {session_id[:8]}: cleared {len(removed)} entries")
        return removed

    def discard(self, session_id: str) -> List[Entry]:
        """
        Drop a session entirely.

        Returns:
            The entries the session held
        """
        with self._lock:
            state = self._sessions.get(session_id)
        if state is None:
            return []

        with state.lock:
            with self._lock:
                self._sessions.pop(session_id, None)
            removed = list(state.entries)
            state.entries.clear()

        logger.info(f"Session {session_id[:8]}: discarded with {len(removed)} entries")
        return removed

    @contextmanager
    def locked(self, session_id: str) -> Iterator[None]:
        """
        Hold a session's lock for the duration of the block.

        Used by generate so the snapshot and the final clear see the same
        entry list.
        """
        with self._held_state(session_id) as state:
            yield
            state.last_access = self._clock()

    # =========================================================================
    # EVICTION
    # =========================================================================

    def evict_expired(self) -> int:
        """
        Drop sessions idle for longer than the TTL.

        Sessions whose lock is currently held are skipped.

        Returns:
            Number of sessions evicted
        """
        now = self._clock()
        evicted: List[Entry] = []
        evicted_sessions = 0

        with self._lock:
            for session_id, state in list(self._sessions.items()):
                if now - state.last_access <= self._ttl:
                    continue
                if not state.lock.acquire(blocking=False):
                    continue
                try:
                    del self._sessions[session_id]
                    evicted.extend(state.entries)
                    state.entries.clear()
                    evicted_sessions += 1
                finally:
                    state.lock.release()

        if evicted_sessions:
            logger.info(
                f"Evicted {evicted_sessions} idle sessions ({len(evicted)} entries)"
            )
            if self._on_evict and evicted:
                self._on_evict(evicted)

        return evicted_sessions

    def add_sweep_task(self, task: Callable[[], int]) -> None:
        """Run an extra eviction callable on every sweep, after the sessions."""
        self._sweep_tasks.append(task)

    def sweep(self) -> int:
        """
        Evict idle sessions, then run the extra sweep tasks.

        Returns:
            Total number of items evicted
        """
        evicted = self.evict_expired()
        for task in self._sweep_tasks:
            evicted += task()
        return evicted

    def start_sweeper(self, interval_seconds: float = 60.0) -> None:
        """
        Start the background eviction thread.

        Safe to call multiple times - only starts if not already running.
        """
        if self._sweeper is not None and self._sweeper.is_alive():
            logger.warning("Session sweeper already running")
            return

        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(interval_seconds,),
            name="SessionSweeper",
            daemon=True
        )
        self._sweeper.start()
        logger.info(f"Session sweeper started (interval: {interval_seconds}s)")

    def stop_sweeper(self, timeout: float = 5.0) -> None:
        """Stop the background eviction thread and wait for it to exit."""
        if self._sweeper is None:
            return

        self._stop_event.set()
        self._sweeper.join(timeout=timeout)
        if self._sweeper.is_alive():
            logger.warning("Session sweeper did not stop in time")
        self._sweeper = None

    def _sweep_loop(self, interval_seconds: float) -> None:
        set_thread_name("SessionSweeper")

        while not self._stop_event.wait(interval_seconds):
            try:
                self.sweep()
            except Exception as e:
                # Keep sweeping; a failed photo delete must not stop eviction
                logger.error(f"Session sweep failed: {e}", exc_info=True)
