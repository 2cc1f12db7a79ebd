"""
Bounded, newest-first record cache persisted as a single JSON blob.

The key-value store can only hold whole string values, so every cache keeps
its full collection in memory and writes it back as one JSON array under a
fixed, versioned key. A dirty flag gates writes: mutations mark the cache
dirty, :meth:`DurableRecordCache.persist` clears it only after a successful
write, so a failed write is retried by the next flush instead of being lost.
"""

from __future__ import annotations

import json
import random
import string
import time
from typing import Any, Callable, Generic, List, Mapping, Optional, Protocol, TypeVar

from warden.database.kv_store import KeyValueStore
from warden.errors import StoreError
from warden.util.logger import get_logger

logger = get_logger("record_cache")

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


class Record(Protocol):
    id: str

    def to_dict(self) -> dict[str, Any]: ...


T = TypeVar("T", bound=Record)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_record_id(timestamp_ms: Optional[int] = None) -> str:
    """Time-based id with a short random suffix.

    Ids are unique enough for a cache of a few hundred records; they are not
    checked for collisions and are not suitable as secrets.
    """
    stamp = now_ms() if timestamp_ms is None else timestamp_ms
    suffix = "".join(random.choices(_BASE36_ALPHABET, k=5))
    return _to_base36(stamp) + suffix


class DurableRecordCache(Generic[T]):
    """
    In-memory, newest-first collection of records backed by one store entry.

    Args:
        store: Key-value store holding the serialized collection.
        key: Fixed, versioned key of the entry (e.g. ``"warden:reports_v1"``).
        decode: Builds a record from one decoded JSON object.
        max_entries: Maximum number of records retained; the oldest are dropped.
        name: Label used in log lines.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        decode: Callable[[Mapping[str, Any]], T],
        max_entries: int,
        name: str,
    ) -> None:
        self._store = store
        self._key = key
        self._decode = decode
        self._max_entries = max(1, int(max_entries))
        self._name = name
        self._records: List[T] = []
        self._dirty = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Populate the cache from the store.

        Never raises: a missing key, unreadable store, invalid JSON, a
        non-list payload or malformed records all start an empty cache.
        """
        self._records = []
        self._dirty = False

        try:
            raw = await self._store.get(self._key)
        except (StoreError, RuntimeError) as exc:
            logger.warning("[%s] Could not read %s, starting empty: %s", self._name, self._key, exc)
            return

        if raw is None:
            logger.info("[%s] No stored data under %s, starting empty", self._name, self._key)
            return

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("[%s] Stored data under %s is not valid JSON, starting empty: %s", self._name, self._key, exc)
            return

        if not isinstance(parsed, list):
            logger.warning("[%s] Stored data under %s is not a list, starting empty", self._name, self._key)
            return

        try:
            records = [self._decode(item) for item in parsed]
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("[%s] Stored records under %s are malformed, starting empty: %s", self._name, self._key, exc)
            return

        self._records = records[: self._max_entries]
        logger.info("[%s] Loaded %d record(s) from %s", self._name, len(self._records), self._key)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> List[T]:
        """Return a copy of the cached records, newest first."""
        return list(self._records)

    def find_by_id(self, record_id: str) -> Optional[T]:
        return next((record for record in self._records if record.id == record_id), None)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _insert(self, record: T) -> T:
        """Prepend ``record``, drop the oldest records past the cap and mark the cache dirty."""
        self._records.insert(0, record)
        if len(self._records) > self._max_entries:
            del self._records[self._max_entries:]
        self._dirty = True
        return record

    def _remove_where(self, predicate: Callable[[T], bool]) -> int:
        """Remove matching records in memory. Marks the cache dirty when something was removed."""
        kept = [record for record in self._records if not predicate(record)]
        removed = len(self._records) - len(kept)
        if removed:
            self._records = kept
            self._dirty = True
        return removed

    async def persist(self) -> bool:
        """
        Write the cache to the store when it changed (or was never written).

        Returns:
            bool: True when the store is up to date, False when the write
            failed; the cache then stays dirty so a later call retries.
        """
        try:
            if not self._dirty and await self._store.exists(self._key):
                return True
            payload = json.dumps([record.to_dict() for record in self._records])
            await self._store.set(self._key, payload)
        except (StoreError, RuntimeError, TypeError, ValueError) as exc:
            logger.error("[%s] Failed to persist %d record(s) to %s: %s", self._name, len(self._records), self._key, exc)
            return False

        self._dirty = False
        logger.debug("[%s] Persisted %d record(s) to %s", self._name, len(self._records), self._key)
        return True

    async def clear_all(self) -> bool:
        """Remove every record and persist the empty collection."""
        self._records = []
        self._dirty = True
        logger.info("[%s] All records cleared, persisting", self._name)
        return await self.persist()

    async def remove_by_id(self, record_id: str) -> bool:
        """
        Remove one record and persist.

        Returns:
            bool: False without any side effect when no record has that id,
            otherwise the result of :meth:`persist`.
        """
        if not self._remove_where(lambda record: record.id == record_id):
            logger.debug("[%s] Record %s not found for removal", self._name, record_id)
            return False
        logger.info("[%s] Removed record %s, persisting", self._name, record_id)
        return await self.persist()
