"""Ledger subpackage: JSONL-backed stores for proofs, nullifiers and routes."""
from .nullifiers import LedgerNullifierSet, MemoryNullifierSet
from .proofs import ProofStore
from .routes import PrivacyProfileStore, RouteStore
from .store import LedgerStore, replay_latest

__all__ = [
    "LedgerStore",
    "replay_latest",
    "MemoryNullifierSet",
    "LedgerNullifierSet",
    "ProofStore",
    "RouteStore",
    "PrivacyProfileStore",
]
