"""Commitment subpackage: keyed commitments, nullifiers, stealth commitments."""
from .commitment import commit, new_blinding, open_commitment
from .nullifier import NullifierDeriver
from .stealth import (
    create_zk_commitment,
    generate_claim_nullifier,
    generate_zk_commitment_data,
    normalize_amount,
    verify_zk_commitment,
)

__all__ = [
    "commit",
    "open_commitment",
    "new_blinding",
    "NullifierDeriver",
    "create_zk_commitment",
    "verify_zk_commitment",
    "generate_zk_commitment_data",
    "generate_claim_nullifier",
    "normalize_amount",
]
