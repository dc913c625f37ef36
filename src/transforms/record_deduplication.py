"""Exact record deduplication.

Records are keyed by a hash of their canonical JSON encoding so that
identical profile updates repeated across export rows are sent once.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Iterator, Mapping

from core.constants import HASH_ALGORITHM


class RecordDeduplicator:
    """Stateful filter remembering hashes of records already seen."""

    def __init__(self) -> None:
        self._seen_hashes: set[str] = set()
        self.duplicates = 0

    def is_duplicate(self, record: Mapping[str, Any]) -> bool:
        """Return True when an identical record was seen before."""
        record_hash = build_record_hash(record)
        if record_hash in self._seen_hashes:
            self.duplicates += 1
            return True
        self._seen_hashes.add(record_hash)
        return False

    def filter(self, records: Iterable[Mapping[str, Any]]) -> Iterator[Mapping[str, Any]]:
        """Yield records in order, dropping exact duplicates."""
        for record in records:
            if not self.is_duplicate(record):
                yield record


def build_record_hash(record: Mapping[str, Any]) -> str:
    """Build a stable hash for a destination record.

    Args:
        record: JSON-compatible record.

    Returns:
        Hex digest string independent of key order.
    """
    encoded = json.dumps(record, sort_keys=True, separators=(",", ":"), default=str)
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(encoded.encode("utf-8"))
    return hasher.hexdigest()
