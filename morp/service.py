"""MORP service facade.

One object wires configuration, keys, stores and components together and
exposes the operations a thin HTTP or CLI layer calls:

    generate_proof / verify_proof / verify_stored / revoke_proof
    consume_nullifier / check_nullifier
    aggregate_proofs / generate_aggregated_proof
    encode_proof / decode_proof
    plan_route / execute_route / cancel_route / set_privacy_profile

With config.ledger_dir set, every store journals to JSONL files in that
directory and survives restarts; otherwise state is process-local.
"""
import dataclasses
import logging
import time
import uuid
from pathlib import Path
from typing import Callable, Optional

from .config import MorpConfig
from .core import constants
from .core.errors import ConfigurationError, DecodeError, DuplicateNullifier, ExecutionError
from .core.keys import KeyRing
from .core.receipt import emit_anomaly, emit_receipt, utc_now_iso
from .ledger import (
    LedgerNullifierSet,
    LedgerStore,
    MemoryNullifierSet,
    PrivacyProfileStore,
    ProofStore,
    RouteStore,
)
from .proof import (
    AggregatedProof,
    DecodedProof,
    IntegrityVerifier,
    Proof,
    ProofCodec,
    ProofGenerator,
    ProofRecord,
    VerificationResult,
    aggregate,
)
from .route import PrivacyProfile, RouteExecutor, RoutePlanner, RoutingBatch, RoutingSegment

logger = logging.getLogger("morp.service")


def _no_transfer(batch: RoutingBatch, segment: RoutingSegment) -> str:
    raise ExecutionError("No transfer executor configured")


class MorpService:
    """Entry point for callers of the MORP core.

    Args:
        config: Engine configuration; validated on construction
        transfer: Executes one real segment, returns a transaction signature
        sleep: Used between segments; tests pass a no-op

    Raises:
        ConfigurationError: If config fails validation (missing secret etc.)
    """

    def __init__(self, config: MorpConfig,
                 transfer: Optional[Callable[[RoutingBatch, RoutingSegment], str]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        errors = config.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        self.config = config
        self.tenant_id = config.tenant_id
        keyring = KeyRing.from_config(config)

        if config.ledger_dir:
            root = Path(config.ledger_dir)
            self.nullifiers = LedgerNullifierSet(LedgerStore(root / constants.NULLIFIER_LEDGER))
            self.proofs = ProofStore(LedgerStore(root / constants.PROOF_LEDGER))
            self.routes = RouteStore(LedgerStore(root / constants.ROUTE_LEDGER))
            self.profiles = PrivacyProfileStore(LedgerStore(root / constants.PROFILE_LEDGER))
        else:
            self.nullifiers = MemoryNullifierSet()
            self.proofs = ProofStore()
            self.routes = RouteStore()
            self.profiles = PrivacyProfileStore()

        self.generator = ProofGenerator(keyring, config)
        self.verifier = IntegrityVerifier(self.nullifiers)
        self.codec = ProofCodec(keyring)
        self.planner = RoutePlanner(config)
        self.executor = RouteExecutor(
            self.routes,
            transfer or _no_transfer,
            sleep=sleep,
            decoy_delay_ms=config.decoy_completion_delay_ms,
            tenant_id=self.tenant_id,
        )

    # Proofs

    def generate_proof(self, proof_type: str, wallet_address: str, private_inputs: dict,
                       public_thresholds: Optional[dict] = None) -> ProofRecord:
        """Generate, encode and store a proof.

        Raises:
            ValidationError: Bad inputs or unknown proof type
            DuplicateNullifier: A live proof already holds the derived nullifier
        """
        proof = self.generator.generate(proof_type, wallet_address, private_inputs, public_thresholds)
        return self._store(wallet_address, proof)

    def _store(self, wallet_address: str, proof: Proof) -> ProofRecord:
        record = ProofRecord(
            id=str(uuid.uuid4()),
            wallet_address=wallet_address,
            proof=proof,
            compressed_data=self.codec.encode(proof),
            created_at=utc_now_iso(),
        )
        try:
            self.proofs.insert(record)
        except DuplicateNullifier as e:
            emit_anomaly("nullifier_uniqueness", "conflict", "reject",
                         tenant_id=self.tenant_id, nullifier=e.nullifier, existing_id=e.existing_id)
            raise

        emit_receipt("proof_generated", {
            "tenant_id": self.tenant_id,
            "proof_id": record.id,
            "proof_type": proof.proof_type,
            "commitment": proof.commitment,
            "nullifier": proof.nullifier,
            "verified": proof.verified,
        })
        return record

    def verify_proof(self, proof: Proof) -> VerificationResult:
        """Check a full proof. Never mutates state."""
        result = self.verifier.verify(proof)
        emit_receipt("proof_verified", {
            "tenant_id": self.tenant_id,
            "nullifier": proof.nullifier,
            "valid": result.valid,
            "reason": result.reason,
        })
        return result

    def verify_stored(self, proof_id: str) -> VerificationResult:
        """Rebuild a stored proof from its compressed data, verify, and mark it verified.

        Raises:
            NotFound: Unknown proof id
            DecodeError: Compressed data missing, malformed, or fails authentication
            AlreadyRevoked: Another instance revoked the proof while it was verified
        """
        record = self.proofs.get(proof_id)
        if record.revoked:
            return VerificationResult(
                valid=False,
                commitment=record.proof.commitment,
                nullifier=record.proof.nullifier,
                security_level=record.proof.metadata.security_level,
                reason=constants.REASON_REVOKED,
            )
        result = self.verify_proof(self.load_proof(proof_id))
        if result.valid:
            self.proofs.mark_verified(proof_id)
        return result

    def load_proof(self, proof_id: str) -> Proof:
        """Full proof for a stored record, blinding recovered from compressed data.

        Raises:
            NotFound: Unknown proof id
            DecodeError: Compressed data missing, malformed, or fails authentication
        """
        record = self.proofs.get(proof_id)
        if not record.compressed_data:
            raise DecodeError(f"No compressed data for proof {proof_id}")

        decoded = self.codec.decode(record.compressed_data)
        if not decoded.blinding_factor:
            raise DecodeError(f"Compressed data for proof {proof_id} carries no blinding factor")

        return dataclasses.replace(
            record.proof,
            blinding_factor=decoded.blinding_factor,
            timestamp=decoded.timestamp,
        )

    def revoke_proof(self, proof_id: str) -> ProofRecord:
        """Revoke a stored proof; its nullifier becomes free for a new proof.

        Raises:
            NotFound: Unknown proof id
            AlreadyRevoked: Proof was already revoked
        """
        record = self.proofs.revoke(proof_id)
        emit_receipt("proof_revoked", {
            "tenant_id": self.tenant_id,
            "proof_id": proof_id,
            "nullifier": record.proof.nullifier,
        })
        return record

    def consume_nullifier(self, nullifier: str) -> bool:
        """Atomically spend nullifier. False if it was already spent."""
        return self.verifier.consume_nullifier(nullifier, tenant_id=self.tenant_id)

    def check_nullifier(self, nullifier: str) -> bool:
        """True if nullifier has been spent."""
        return self.nullifiers.contains(nullifier)

    def aggregate_proofs(self, proofs: list[Proof]) -> AggregatedProof:
        """Aggregate proofs. Raises EmptyBatch on empty input."""
        agg = aggregate(proofs, self.verifier)
        emit_receipt("aggregate", {
            "tenant_id": self.tenant_id,
            "count": len(proofs),
            "batch_root": agg.batch_root,
            "aggregate_nullifier": agg.aggregate_nullifier,
            "verified": agg.verified,
        })
        return agg

    def generate_aggregated_proof(self, wallet_address: str, proofs: list[Proof]) -> ProofRecord:
        proof = self.generator.aggregated(wallet_address, proofs, self.verifier)
        return self._store(wallet_address, proof)

    def encode_proof(self, proof: Proof) -> str:
        return self.codec.encode(proof)

    def decode_proof(self, compressed: str) -> DecodedProof:
        """Raises DecodeError on malformed or tampered input."""
        return self.codec.decode(compressed)

    # Routing

    def set_privacy_profile(self, wallet_address: str, profile: PrivacyProfile) -> PrivacyProfile:
        return self.profiles.set(wallet_address, profile)

    def plan_route(self, wallet_address: str, input_token: str, output_token: str,
                   amount: float, options: Optional[dict] = None) -> tuple[RoutingBatch, list[RoutingSegment]]:
        """Plan and persist a routing batch.

        The wallet's stored privacy profile, if any, supplies defaults; options
        override it field by field.

        Raises:
            InvalidAmount: amount <= 0
            SameToken: input_token == output_token
        """
        profile = self.profiles.get(wallet_address)
        batch, segments = self.planner.plan(
            wallet_address, input_token, output_token, amount,
            options=options, profile=profile,
        )
        self.routes.save(batch, segments)
        logger.info("batch %s scheduled, privacy score %d", batch.id, batch.privacy_score)
        return batch, segments

    def get_route(self, batch_id: str) -> tuple[RoutingBatch, list[RoutingSegment]]:
        return self.routes.get_batch(batch_id), self.routes.get_segments(batch_id)

    def execute_route(self, batch_id: str) -> dict:
        """Raises NotScheduled unless the batch is scheduled."""
        return self.executor.execute(batch_id)

    def cancel_route(self, batch_id: str) -> RoutingBatch:
        """Raises NotCancellable outside planning/scheduled."""
        return self.executor.cancel(batch_id)
