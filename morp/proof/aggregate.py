"""Proof aggregation.

Folds N proofs into one record: hash-joined commitments and nullifiers, and a
Merkle root over member proof hashes. A singleton batch has root
SHA256(proof_hash).
"""
from ..anchor import build_root, leaf_hash
from ..core.errors import EmptyBatch
from ..core.receipt import emit_anomaly, sha256_hex
from .schemas import AggregatedProof, Proof


def aggregate(proofs: list[Proof], verifier=None) -> AggregatedProof:
    """Aggregate proofs into a batch commitment.

    Args:
        proofs: Member proofs (at least one)
        verifier: IntegrityVerifier consulted for members not already verified

    Returns:
        AggregatedProof, verified iff every member is verified or passes the verifier

    Raises:
        EmptyBatch: If proofs is empty
    """
    if not proofs:
        emit_anomaly("aggregate_size", "violation", "reject", baseline=1, delta=-1)
        raise EmptyBatch("Cannot aggregate an empty batch")

    aggregate_commitment = sha256_hex("|".join(p.commitment for p in proofs))
    aggregate_nullifier = sha256_hex("|".join(p.nullifier for p in proofs))
    batch_root = build_root([leaf_hash(p.proof_hash) for p in proofs])

    verified = all(
        p.verified or (verifier is not None and verifier.is_valid(p))
        for p in proofs
    )

    return AggregatedProof(
        proofs=list(proofs),
        aggregate_commitment=aggregate_commitment,
        aggregate_nullifier=aggregate_nullifier,
        batch_root=batch_root,
        verified=verified,
    )
