import logging
import secrets
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Optional

log = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer. A waiting writer blocks new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class BlobEntry:
    id: str
    data: bytes
    content_type: str
    expires_at: float


def new_blob_id() -> str:
    """128 random bits, hex encoded."""
    return secrets.token_hex(16)


# -------------------------
# Transient Blob Store
# -------------------------
class TransientBlobStore:
    """In-memory byte store whose entries expire after ``ttl_seconds``.

    Expired entries are dropped when read and by a background sweeper thread
    that runs every ``sweep_interval_seconds`` until ``close`` is called.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        sweep_interval_seconds: float = 600,
        clock: Callable[[], float] = time.time,
        start_sweeper: bool = True,
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._entries: Dict[str, BlobEntry] = {}
        self._lock = ReadWriteLock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

        if start_sweeper and sweep_interval_seconds > 0:
            self._sweeper = threading.Thread(target=self._sweep_loop, name="blob-store-sweeper", daemon=True)
            self._sweeper.start()
        log.info("Initialized blob store (ttl=%ss, sweep every %ss)", ttl_seconds, sweep_interval_seconds)

    def put(self, data: bytes, content_type: str) -> str:
        entry = BlobEntry(
            id=new_blob_id(),
            data=bytes(data),
            content_type=content_type,
            expires_at=self._clock() + self.ttl_seconds,
        )
        with self._lock.write_locked():
            self._entries[entry.id] = entry
        log.debug("Stored blob %s (%d bytes)", entry.id, len(entry.data))
        return entry.id

    def get(self, blob_id: str) -> Optional[BlobEntry]:
        """Return the live entry for ``blob_id``, or ``None`` if unknown or expired."""
        with self._lock.read_locked():
            entry = self._entries.get(blob_id)
        if entry is None:
            return None
        if self._clock() < entry.expires_at:
            return entry

        with self._lock.write_locked():
            if self._entries.get(blob_id) is entry:
                del self._entries[blob_id]
        log.debug("Blob %s expired on read", blob_id)
        return None

    def sweep(self) -> int:
        """Delete every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock.write_locked():
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            log.debug("Swept %d expired blobs", len(expired))
        return len(expired)

    def _sweep_loop(self):
        while not self._stop.wait(self.sweep_interval_seconds):
            try:
                self.sweep()
            except Exception:
                log.exception("Blob sweep failed")

    def close(self):
        self._stop.set()
        if self._sweeper is not None and self._sweeper is not threading.current_thread():
            self._sweeper.join()
        self._sweeper = None
        log.info("Closed blob store")

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)

    def __contains__(self, blob_id: str) -> bool:
        return self.get(blob_id) is not None
