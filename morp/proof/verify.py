"""Proof integrity verification.

Checks, in order:
    1. proof_hash recomputes from its parts      -> reason "integrity"
    2. now is before metadata.expires_at          -> reason "expired"
    3. nullifier has not been consumed            -> reason "double-spend"

verify() never mutates state. consume_nullifier() is the single mutation and
delegates to the nullifier set's atomic try_consume.
"""
import hmac
import logging
from datetime import datetime, timezone
from typing import Optional

from ..core.constants import REASON_DOUBLE_SPEND, REASON_EXPIRED, REASON_INTEGRITY
from ..core.receipt import emit_receipt
from .schemas import Proof, VerificationResult

logger = logging.getLogger("morp.proof")


def parse_iso(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


class IntegrityVerifier:
    """Recomputes proof hashes and checks expiry and nullifier freshness.

    Attributes:
        nullifiers: Object exposing contains(n) and try_consume(n)
    """

    def __init__(self, nullifiers):
        self.nullifiers = nullifiers

    def verify(self, proof: Proof, now: Optional[datetime] = None) -> VerificationResult:
        security_level = proof.metadata.security_level if proof.metadata else "unknown"

        def _fail(reason: str) -> VerificationResult:
            logger.info("proof %s rejected: %s", proof.proof_hash[:16], reason)
            return VerificationResult(
                valid=False,
                commitment=proof.commitment,
                nullifier=proof.nullifier,
                security_level=security_level,
                reason=reason,
            )

        if not hmac.compare_digest(proof.recompute_hash().encode(), str(proof.proof_hash).encode()):
            return _fail(REASON_INTEGRITY)

        now = now or datetime.now(timezone.utc)
        try:
            expires_at = parse_iso(proof.metadata.expires_at)
        except (AttributeError, ValueError):
            return _fail(REASON_INTEGRITY)
        if now > expires_at:
            return _fail(REASON_EXPIRED)

        if self.nullifiers.contains(proof.nullifier):
            return _fail(REASON_DOUBLE_SPEND)

        return VerificationResult(
            valid=True,
            commitment=proof.commitment,
            nullifier=proof.nullifier,
            security_level=security_level,
        )

    def is_valid(self, proof: Proof) -> bool:
        return self.verify(proof).valid

    def consume_nullifier(self, nullifier: str, tenant_id: str = "default") -> bool:
        """Atomically mark nullifier used. False if it already was."""
        consumed = self.nullifiers.try_consume(nullifier)
        emit_receipt("nullifier_consumed", {
            "tenant_id": tenant_id,
            "nullifier": nullifier,
            "accepted": consumed,
        })
        return consumed
