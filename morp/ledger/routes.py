"""Routing batch and privacy profile storage."""
import threading
from typing import Iterable, Optional

from ..core.errors import NotFound
from ..core.receipt import utc_now_iso
from ..route.schemas import PrivacyProfile, RoutingBatch, RoutingSegment
from .store import LedgerStore, replay_latest


class RouteStore:
    """Batches with their segments, optionally journaled to a LedgerStore.

    Each save journals the whole batch (batch fields plus segments) so replay
    only needs the latest snapshot per batch id. Status transitions catch up
    on the ledger under its cross-process lock, so two instances sharing a
    ledger cannot both move a batch out of the same status.
    """

    def __init__(self, ledger: Optional[LedgerStore] = None):
        self.ledger = ledger
        self._lock = threading.RLock()
        self._batches: dict[str, RoutingBatch] = {}
        self._segments: dict[str, list[RoutingSegment]] = {}
        self._offset = 0
        self._refresh()

    def _refresh(self) -> None:
        if self.ledger is None:
            return
        records, self._offset = self.ledger.read_since(self._offset)
        for snapshot in records:
            if "batch_id" not in snapshot:
                continue
            batch_id = snapshot["batch_id"]
            self._batches[batch_id] = RoutingBatch.from_dict(snapshot["batch"])
            self._segments[batch_id] = [RoutingSegment.from_dict(s) for s in snapshot["segments"]]

    def _journal(self, batch_id: str) -> None:
        if self.ledger is None:
            return
        self.ledger.append({
            "batch_id": batch_id,
            "batch": self._batches[batch_id].to_dict(),
            "segments": [s.to_dict() for s in self._segments[batch_id]],
        })

    def save(self, batch: RoutingBatch, segments: Optional[Iterable[RoutingSegment]] = None) -> None:
        with self._lock:
            batch.updated_at = utc_now_iso()
            self._batches[batch.id] = batch
            if segments is not None:
                self._segments[batch.id] = sorted(segments, key=lambda s: s.segment_index)
            self._segments.setdefault(batch.id, [])
            self._journal(batch.id)

    def _require(self, batch_id: str) -> RoutingBatch:
        batch = self._batches.get(batch_id)
        if batch is None:
            raise NotFound(f"Batch not found: {batch_id}")
        return batch

    def get_batch(self, batch_id: str) -> RoutingBatch:
        with self._lock:
            self._refresh()
            return self._require(batch_id)

    def get_segments(self, batch_id: str) -> list[RoutingSegment]:
        """Segments in segment_index order."""
        with self._lock:
            self._refresh()
            self._require(batch_id)
            return list(self._segments[batch_id])

    def list_for_wallet(self, wallet_address: str) -> list[RoutingBatch]:
        with self._lock:
            self._refresh()
            return [b for b in self._batches.values() if b.wallet_address == wallet_address]

    def transition(self, batch_id: str, allowed_from: Iterable[str], new_status: str) -> Optional[RoutingBatch]:
        """Atomically move batch to new_status if it is in allowed_from.

        With a ledger the check runs on the latest journaled snapshot while
        holding the ledger lock.

        Returns:
            The updated batch, or None if the current status did not allow it
        """
        with self._lock:
            if self.ledger is None:
                return self._transition_locked(batch_id, tuple(allowed_from), new_status)
            with self.ledger.exclusive():
                self._refresh()
                return self._transition_locked(batch_id, tuple(allowed_from), new_status)

    def _transition_locked(self, batch_id: str, allowed_from: tuple, new_status: str) -> Optional[RoutingBatch]:
        batch = self._require(batch_id)
        if batch.status not in allowed_from:
            return None
        batch.status = new_status
        self.save(batch)
        return batch


class PrivacyProfileStore:
    """Stored per-wallet privacy profiles."""

    def __init__(self, ledger: Optional[LedgerStore] = None):
        self.ledger = ledger
        self._lock = threading.Lock()
        self._profiles: dict[str, PrivacyProfile] = {}
        if ledger is not None:
            for wallet, record in replay_latest(ledger, "wallet_address").items():
                self._profiles[wallet] = PrivacyProfile.from_dict(record["profile"])

    def get(self, wallet_address: str) -> Optional[PrivacyProfile]:
        with self._lock:
            return self._profiles.get(wallet_address)

    def set(self, wallet_address: str, profile: PrivacyProfile) -> PrivacyProfile:
        with self._lock:
            self._profiles[wallet_address] = profile
            if self.ledger is not None:
                self.ledger.append({"wallet_address": wallet_address, "profile": profile.to_dict()})
            return profile
