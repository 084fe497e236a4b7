"""Filesystem-backed ProofStorage.

Stores transfer receipts under ``<data_dir>/proofs`` and hands back a
``file://`` URI. Swap for a bucket-backed adapter in production; the core
only needs a retrievable reference.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from fulfillment.application.ports import ProofStorage
from fulfillment.domain.exceptions import ProofUploadFailed

log = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class LocalProofStorage(ProofStorage):

    def __init__(self, root: Path) -> None:
        self._root = root

    def store(self, filename: str, payload: bytes) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        target = self._root / f"{timestamp}_{_UNSAFE.sub('_', filename)}"
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
        except OSError as exc:
            log.error(f"Storing payment proof {filename} failed: {exc}")
            raise ProofUploadFailed(f"Could not store payment proof: {exc}") from exc
        return target.resolve().as_uri()
