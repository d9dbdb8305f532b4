"""Used-nullifier sets.

The double-spend guard. Both implementations expose contains(n) and
try_consume(n) -> bool, where try_consume is a linearizable check-and-insert:
of two concurrent calls for the same nullifier exactly one returns True.
"""
import threading
from typing import Protocol

from ..core.receipt import utc_now_iso
from .store import LedgerStore


class NullifierSet(Protocol):
    def contains(self, nullifier: str) -> bool: ...

    def try_consume(self, nullifier: str) -> bool: ...


class MemoryNullifierSet:
    """Process-local set guarded by a lock. Lost on restart."""

    def __init__(self):
        self._used: set[str] = set()
        self._lock = threading.Lock()

    def contains(self, nullifier: str) -> bool:
        with self._lock:
            return nullifier in self._used

    def try_consume(self, nullifier: str) -> bool:
        with self._lock:
            if nullifier in self._used:
                return False
            self._used.add(nullifier)
            return True

    def __len__(self) -> int:
        return len(self._used)


class LedgerNullifierSet:
    """Durable set journaled to a LedgerStore.

    try_consume catches up on the ledger under the cross-process lock before
    inserting, so separate processes sharing the file cannot both consume.
    Only entries appended since the last read are parsed.
    """

    def __init__(self, ledger: LedgerStore):
        self.ledger = ledger
        self._lock = threading.Lock()
        self._used: set[str] = set()
        self._offset = 0
        self._refresh()

    def _refresh(self) -> None:
        records, self._offset = self.ledger.read_since(self._offset)
        self._used.update(r["nullifier"] for r in records if "nullifier" in r)

    def contains(self, nullifier: str) -> bool:
        with self._lock:
            if nullifier in self._used:
                return True
            self._refresh()
            return nullifier in self._used

    def try_consume(self, nullifier: str) -> bool:
        with self._lock, self.ledger.exclusive():
            self._refresh()
            if nullifier in self._used:
                return False
            self.ledger.append({"nullifier": nullifier, "consumed_at": utc_now_iso()})
            self._used.add(nullifier)
            return True

    def __len__(self) -> int:
        return len(self._used)
