"""
Per-tournament write serialization.

Generation, result entry and finalization of one tournament never interleave;
different tournaments proceed independently.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

_registry_guard = threading.Lock()
_tournament_locks: Dict[int, threading.RLock] = {}


def get_tournament_lock(tournament_id: int) -> threading.RLock:
    with _registry_guard:
        lock = _tournament_locks.get(tournament_id)
        if lock is None:
            lock = threading.RLock()
            _tournament_locks[tournament_id] = lock
        return lock


@contextmanager
def tournament_lock(tournament_id: int) -> Iterator[None]:
    lock = get_tournament_lock(tournament_id)
    with lock:
        yield


def release_tournament_lock(tournament_id: int) -> None:
    """Forget the lock of a deleted tournament."""
    with _registry_guard:
        _tournament_locks.pop(tournament_id, None)
