"""A JSON array document on disk with an exclusive read-modify-write section.

Repositories do every conditional write inside ``locked()``, which holds a
process-local lock and an ``fcntl.flock`` on a sidecar ``.lock`` file.
Concurrent threads and concurrent CLI processes therefore see each
compare-and-set as one atomic step.
"""

from __future__ import annotations

import fcntl
import json
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

_PROCESS_LOCKS: dict[Path, threading.RLock] = {}
_PROCESS_LOCKS_GUARD = threading.Lock()


def _process_lock(path: Path) -> threading.RLock:
    with _PROCESS_LOCKS_GUARD:
        return _PROCESS_LOCKS.setdefault(path, threading.RLock())


class JsonFile:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()
        self._lock_path = self._file_path.with_suffix(self._file_path.suffix + ".lock")
        self._thread_lock = _process_lock(self._file_path)
        self._ensure_file()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._thread_lock:
            with open(self._lock_path, "a+") as handle:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def load(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def persist(self, records: list[dict]) -> None:
        # Write-then-rename so readers never see a half-written document.
        tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp_path, self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
