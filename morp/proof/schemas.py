"""Proof record shapes.

These dicts are the wire format to storage and HTTP collaborators; to_dict and
from_dict must round-trip without loss.
"""
from dataclasses import asdict, dataclass, field
from typing import Optional

from ..core.receipt import sha512_hex


def compute_proof_hash(commitment: str, nullifier: str, blinding_factor: str,
                       public_inputs: list[str], timestamp: int) -> str:
    """H(commitment | nullifier | blinding | public_inputs... | timestamp)."""
    data = "|".join([commitment, nullifier, blinding_factor, *public_inputs, str(timestamp)])
    return sha512_hex(data)


@dataclass
class ProofMetadata:
    claim: str
    created_at: str
    expires_at: str
    version: str
    security_level: str
    description: str = ""


@dataclass
class Proof:
    """A commitment-backed claim.

    Intact iff proof_hash == compute_proof_hash(commitment, nullifier,
    blinding_factor, public_inputs, timestamp).
    """
    proof_hash: str
    commitment: str
    nullifier: str
    public_inputs: list[str]
    timestamp: int
    proof_type: str
    verified: bool
    protocol: str
    blinding_factor: str = field(repr=False)
    metadata: Optional[ProofMetadata] = None

    def recompute_hash(self) -> str:
        return compute_proof_hash(
            self.commitment,
            self.nullifier,
            self.blinding_factor,
            self.public_inputs,
            self.timestamp,
        )

    def public_view(self) -> dict:
        """Everything except the blinding factor."""
        data = self.to_dict()
        data.pop("blinding_factor", None)
        return data

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Proof":
        meta = data.get("metadata") or {}
        return cls(
            proof_hash=data["proof_hash"],
            commitment=data["commitment"],
            nullifier=data["nullifier"],
            public_inputs=list(data.get("public_inputs", [])),
            timestamp=int(data["timestamp"]),
            proof_type=data["proof_type"],
            verified=bool(data.get("verified", False)),
            protocol=data.get("protocol", ""),
            blinding_factor=data.get("blinding_factor", ""),
            metadata=ProofMetadata(
                claim=meta.get("claim", ""),
                created_at=meta.get("created_at", ""),
                expires_at=meta.get("expires_at", ""),
                version=meta.get("version", ""),
                security_level=meta.get("security_level", ""),
                description=meta.get("description", ""),
            ),
        )


@dataclass
class VerificationResult:
    valid: bool
    commitment: str
    nullifier: str
    security_level: str
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AggregatedProof:
    proofs: list[Proof]
    aggregate_commitment: str
    aggregate_nullifier: str
    batch_root: str
    verified: bool

    def to_dict(self) -> dict:
        return {
            "proofs": [p.public_view() for p in self.proofs],
            "aggregate_commitment": self.aggregate_commitment,
            "aggregate_nullifier": self.aggregate_nullifier,
            "batch_root": self.batch_root,
            "verified": self.verified,
        }


@dataclass
class DecodedProof:
    """Partial proof recovered from compressed transport form."""
    proof_hash: str
    commitment: str
    nullifier: str
    blinding_factor: Optional[str]
    timestamp: int
    proof_type: str
    verified: bool
    protocol: str
    security_level: Optional[str] = None


@dataclass
class ProofRecord:
    """Persisted proof plus lifecycle fields."""
    id: str
    wallet_address: str
    proof: Proof
    compressed_data: str
    created_at: str
    verified_at: Optional[str] = None
    revoked_at: Optional[str] = None

    @property
    def revoked(self) -> bool:
        return self.revoked_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "wallet_address": self.wallet_address,
            "proof": self.proof.public_view(),
            "compressed_data": self.compressed_data,
            "created_at": self.created_at,
            "verified_at": self.verified_at,
            "revoked_at": self.revoked_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProofRecord":
        proof_data = dict(data["proof"])
        proof_data.setdefault("blinding_factor", "")
        return cls(
            id=data["id"],
            wallet_address=data["wallet_address"],
            proof=Proof.from_dict(proof_data),
            compressed_data=data.get("compressed_data", ""),
            created_at=data.get("created_at", ""),
            verified_at=data.get("verified_at"),
            revoked_at=data.get("revoked_at"),
        )
