"""Process-lifetime deduplication of accepted schedules."""

import threading


class ScheduleDeduplicator:
    """Thread-safe set of schedule keys already published in this process.

    A key moves through two states: reserved by `accept` while its event is in
    flight, then committed once the publish succeeded. Reserved keys count as
    duplicates for other runs, so two concurrent runs never both accept the
    same key. Nothing is persisted; a new process starts empty.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._pending: set[str] = set()
        self._lock = threading.Lock()

    def accept(self, key: str, force_refresh: bool = False) -> bool:
        """Check a key and reserve it if it is new.

        Args:
            key: Dedup key of the schedule.
            force_refresh: If True, bypass deduplication; the set is neither
                consulted nor modified.

        Returns:
            True if the caller should map and publish, False for a duplicate.
        """
        if force_refresh:
            return True

        with self._lock:
            if key in self._seen or key in self._pending:
                return False
            self._pending.add(key)
            return True

    def commit(self, key: str, reserved: bool = True) -> None:
        """Mark a key as published.

        Args:
            key: Dedup key of the published schedule.
            reserved: False when the key was accepted with force_refresh and so
                holds no reservation; another run's reservation is then left alone.
        """
        with self._lock:
            if reserved:
                self._pending.discard(key)
            self._seen.add(key)

    def release(self, key: str) -> None:
        """Drop a reservation after a failed publish so a later run can retry.

        Only call this for a key this caller reserved via a non-forced `accept`.
        """
        with self._lock:
            self._pending.discard(key)

    def is_seen(self, key: str) -> bool:
        with self._lock:
            return key in self._seen

    def clear(self) -> None:
        """Forget every key.

        Useful for testing.
        """
        with self._lock:
            self._seen.clear()
            self._pending.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
