"""Proof record storage with live-nullifier uniqueness.

At most one live (unrevoked, unexpired) proof may exist per nullifier. Every
write (insert, mark verified, revoke) catches up on the ledger and decides
under its cross-process lock, so a stale instance can never journal a snapshot
that undoes a newer one.
"""
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from ..core.errors import AlreadyRevoked, DuplicateNullifier, NotFound
from ..core.receipt import utc_now_iso
from ..proof.schemas import ProofRecord
from ..proof.verify import parse_iso
from .store import LedgerStore


def _is_live(record: ProofRecord, now: datetime) -> bool:
    if record.revoked:
        return False
    try:
        return now <= parse_iso(record.proof.metadata.expires_at)
    except (AttributeError, ValueError):
        return False


class ProofStore:
    """In-memory proof index, optionally journaled to a LedgerStore."""

    def __init__(self, ledger: Optional[LedgerStore] = None):
        self.ledger = ledger
        self._lock = threading.Lock()
        self._records: dict[str, ProofRecord] = {}
        self._offset = 0
        self._refresh()

    def _refresh(self) -> None:
        if self.ledger is None:
            return
        records, self._offset = self.ledger.read_since(self._offset)
        for data in records:
            if "id" in data:
                self._records[data["id"]] = ProofRecord.from_dict(data)

    @contextmanager
    def _writing(self) -> Iterator[None]:
        """Process lock, plus the ledger lock over freshly replayed state."""
        with self._lock:
            if self.ledger is None:
                yield
                return
            with self.ledger.exclusive():
                self._refresh()
                yield

    def _persist(self, record: ProofRecord) -> None:
        self._records[record.id] = record
        if self.ledger is not None:
            self.ledger.append(record.to_dict())

    def _require(self, record_id: str) -> ProofRecord:
        record = self._records.get(record_id)
        if record is None:
            raise NotFound(f"Proof not found: {record_id}")
        return record

    def _live_for(self, nullifier: str, now: datetime) -> Optional[ProofRecord]:
        for record in self._records.values():
            if record.proof.nullifier == nullifier and _is_live(record, now):
                return record
        return None

    def insert(self, record: ProofRecord, now: Optional[datetime] = None) -> ProofRecord:
        """Store record unless a live proof already holds its nullifier.

        Raises:
            DuplicateNullifier: With existing_id of the live proof
        """
        now = now or datetime.now(timezone.utc)
        with self._writing():
            existing = self._live_for(record.proof.nullifier, now)
            if existing is not None:
                raise DuplicateNullifier(record.proof.nullifier, existing.id)
            self._persist(record)
            return record

    def get(self, record_id: str) -> ProofRecord:
        with self._lock:
            self._refresh()
            return self._require(record_id)

    def by_nullifier(self, nullifier: str) -> Optional[ProofRecord]:
        """Most recent record for nullifier, live or not."""
        with self._lock:
            self._refresh()
            matches = [r for r in self._records.values() if r.proof.nullifier == nullifier]
        return matches[-1] if matches else None

    def list_for_wallet(self, wallet_address: str) -> list[ProofRecord]:
        with self._lock:
            self._refresh()
            return [r for r in self._records.values() if r.wallet_address == wallet_address]

    def mark_verified(self, record_id: str) -> ProofRecord:
        """Raises AlreadyRevoked if the proof was revoked, here or elsewhere."""
        with self._writing():
            record = self._require(record_id)
            if record.revoked:
                raise AlreadyRevoked(f"Proof already revoked: {record_id}")
            record.proof.verified = True
            record.verified_at = utc_now_iso()
            self._persist(record)
            return record

    def revoke(self, record_id: str) -> ProofRecord:
        """Revoke a proof. Terminal.

        Raises:
            NotFound: Unknown id
            AlreadyRevoked: Proof was revoked before
        """
        with self._writing():
            record = self._require(record_id)
            if record.revoked:
                raise AlreadyRevoked(f"Proof already revoked: {record_id}")
            record.revoked_at = utc_now_iso()
            self._persist(record)
            return record

    def __len__(self) -> int:
        with self._lock:
            self._refresh()
            return len(self._records)
