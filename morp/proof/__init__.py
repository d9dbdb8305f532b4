"""Proof subpackage: generators, aggregation, verification, codec."""
from .aggregate import aggregate
from .codec import ProofCodec
from .generate import ProofGenerator
from .schemas import (
    AggregatedProof,
    DecodedProof,
    Proof,
    ProofMetadata,
    ProofRecord,
    VerificationResult,
    compute_proof_hash,
)
from .signature import sign_transcript, verify_transcript
from .verify import IntegrityVerifier

__all__ = [
    "ProofGenerator",
    "IntegrityVerifier",
    "ProofCodec",
    "aggregate",
    "Proof",
    "ProofMetadata",
    "ProofRecord",
    "AggregatedProof",
    "DecodedProof",
    "VerificationResult",
    "compute_proof_hash",
    "sign_transcript",
    "verify_transcript",
]
