"""Unit tests for proof module.

Functions tested: ProofGenerator (all claim types), generate dispatch,
sign_transcript, verify_transcript, IntegrityVerifier, aggregate
SLO: verify reports integrity, expired, double-spend in that order
"""
from datetime import timedelta

import pytest

from morp.core import constants
from morp.core.errors import ElementNotInSet, EmptyBatch, UnknownProofType, ValidationError
from morp.core.keys import KeyRing
from morp.core.receipt import sha256_hex
from morp.ledger import MemoryNullifierSet
from morp.proof import (
    IntegrityVerifier,
    Proof,
    ProofGenerator,
    aggregate,
    compute_proof_hash,
    sign_transcript,
    verify_transcript,
)
from morp.proof.signature import derive_public_key

from conftest import WALLET


@pytest.fixture
def generator(keyring, config) -> ProofGenerator:
    return ProofGenerator(keyring, config)


@pytest.fixture
def fixed_generator(keyring, config, fixed_now) -> ProofGenerator:
    return ProofGenerator(keyring, config, clock=lambda: fixed_now)


@pytest.fixture
def verifier() -> IntegrityVerifier:
    return IntegrityVerifier(MemoryNullifierSet())


def _input(proof: Proof, prefix: str) -> str:
    return next(p for p in proof.public_inputs if p.startswith(prefix))


class TestProofTemplate:
    """Tests shared by every generator."""

    def test_hash_recomputes(self, generator: ProofGenerator):
        proof = generator.balance(WALLET, 250.0, "SOL")

        assert proof.proof_hash == compute_proof_hash(
            proof.commitment, proof.nullifier, proof.blinding_factor,
            proof.public_inputs, proof.timestamp)
        assert len(proof.proof_hash) == 128, "SHA512 hex expected"

    def test_fields_and_metadata(self, fixed_generator: ProofGenerator, fixed_now):
        proof = fixed_generator.ownership(WALLET, "NFT-42", "nft")

        assert proof.public_inputs[0] == sha256_hex(WALLET)
        assert proof.protocol == constants.PROOF_PROTOCOL
        assert proof.timestamp == int(fixed_now.timestamp() * 1000)
        assert proof.metadata.version == "2.1.0"
        assert proof.metadata.security_level == "cryptographic-commitment"
        assert proof.metadata.created_at == "2026-01-15T12:00:00.000Z"
        assert proof.metadata.expires_at == "2026-02-14T12:00:00.000Z"

    def test_blinding_not_public(self, generator: ProofGenerator):
        proof = generator.balance(WALLET, 250.0, "SOL")

        assert proof.blinding_factor not in proof.public_inputs
        assert "blinding_factor" not in proof.public_view()
        assert proof.blinding_factor not in repr(proof)

    def test_same_claim_same_nullifier_new_commitment(self, generator: ProofGenerator):
        a = generator.balance(WALLET, 250.0, "SOL")
        b = generator.balance(WALLET, 250.0, "SOL")

        assert a.nullifier == b.nullifier
        assert a.commitment != b.commitment

    def test_dict_roundtrip(self, generator: ProofGenerator):
        proof = generator.identity(WALLET, {"name": "alice", "country": "DE"})

        assert Proof.from_dict(proof.to_dict()) == proof


class TestGenerators:
    """Tests for claim-specific public inputs."""

    def test_balance_threshold(self, generator: ProofGenerator):
        above = generator.balance(WALLET, 250.0, "SOL", threshold=100)
        below = generator.balance(WALLET, 50.0, "SOL", threshold=100)

        assert "threshold_check:true" in above.public_inputs
        assert "threshold_check:false" in below.public_inputs
        assert not above.verified

    def test_balance_without_threshold(self, generator: ProofGenerator):
        proof = generator.balance(WALLET, 250.0, "SOL")

        assert not any(p.startswith("threshold_check:") for p in proof.public_inputs)
        assert "SOL" in proof.public_inputs

    def test_range_in_range(self, generator: ProofGenerator):
        proof = generator.range(WALLET, 42, 0, 100, label="age")

        assert proof.verified
        assert "in_range:true" in proof.public_inputs
        assert "range:[0,100]" in proof.public_inputs
        assert "age" in proof.public_inputs
        assert _input(proof, "bits:") == "bits:64"
        assert len(_input(proof, "bit_root:")) == len("bit_root:") + 64

    def test_range_out_of_range(self, generator: ProofGenerator):
        proof = generator.range(WALLET, 150, 0, 100)

        assert not proof.verified
        assert "in_range:false" in proof.public_inputs

    def test_range_empty_interval(self, generator: ProofGenerator):
        with pytest.raises(ValidationError):
            generator.range(WALLET, 5, 10, 1)

    def test_transaction(self, generator: ProofGenerator):
        proof = generator.transaction(WALLET, "5sigabc", "SOL", "USDC", 12.5)

        assert "swap:SOL->USDC" in proof.public_inputs
        assert sha256_hex("5sigabc") in proof.public_inputs

    def test_identity(self, generator: ProofGenerator):
        proof = generator.identity(WALLET, {"name": "alice"})

        assert "identity_committed" in proof.public_inputs
        assert "alice" not in " ".join(proof.public_inputs)

    def test_merkle_member(self, generator: ProofGenerator):
        proof = generator.merkle(WALLET, "b", ["a", "b", "c"])

        assert proof.verified
        assert "set_size:3" in proof.public_inputs
        assert _input(proof, "merkle_root:")

    def test_merkle_non_member(self, generator: ProofGenerator):
        with pytest.raises(ElementNotInSet):
            generator.merkle(WALLET, "z", ["a", "b", "c"])

    def test_signature_verified_by_check(self, generator: ProofGenerator, keyring: KeyRing):
        proof = generator.signature(WALLET, "I own this wallet")

        assert proof.verified
        pub = int(_input(proof, "pubkey:").split(":", 1)[1], 16)
        r = int(_input(proof, "R:").split(":", 1)[1], 16)
        s = int(_input(proof, "s:").split(":", 1)[1], 16)
        assert pub == derive_public_key(keyring.wallet_key(WALLET))
        assert verify_transcript(pub, r, s, "I own this wallet")
        assert not verify_transcript(pub, r, s, "something else")


class TestGenerateDispatch:
    """Tests for dict-driven dispatch."""

    def test_dispatch_range(self, generator: ProofGenerator):
        proof = generator.generate("range", WALLET, {"value": 7}, {"min": 1, "max": 10})

        assert proof.proof_type == "range"
        assert proof.verified

    def test_dispatch_signature(self, generator: ProofGenerator):
        proof = generator.generate("signature", WALLET, {"message": "hello"})

        assert proof.proof_type == "signature"

    def test_unknown_type(self, generator: ProofGenerator):
        with pytest.raises(UnknownProofType):
            generator.generate("bulletproof", WALLET, {})

    def test_missing_inputs(self, generator: ProofGenerator):
        with pytest.raises(ValidationError, match="token"):
            generator.generate("balance", WALLET, {"balance": 10})
        with pytest.raises(ValidationError):
            generator.generate("range", WALLET, {"value": 10}, {"min": 0})

    def test_numeric_strings_accepted(self, generator: ProofGenerator):
        balance = generator.generate("balance", WALLET, {"balance": "250", "token": "SOL"}, {"threshold": "100"})
        ranged = generator.generate("range", WALLET, {"value": "7.5"}, {"min": "1", "max": 10})

        assert "threshold_check:true" in balance.public_inputs
        assert ranged.verified

    @pytest.mark.parametrize("private_inputs, thresholds", [
        ({"balance": 250, "token": "SOL"}, {"threshold": "lots"}),
        ({"balance": ["250"], "token": "SOL"}, {"threshold": 100}),
    ])
    def test_non_numeric_balance_rejected(self, generator: ProofGenerator, private_inputs, thresholds):
        with pytest.raises(ValidationError):
            generator.generate("balance", WALLET, private_inputs, thresholds)

    def test_non_numeric_range_rejected(self, generator: ProofGenerator):
        with pytest.raises(ValidationError):
            generator.generate("range", WALLET, {"value": 5}, {"min": "low", "max": 10})


class TestSignatureTranscript:
    """Tests for Schnorr-style transcripts."""

    def test_deterministic(self, keyring: KeyRing):
        key = keyring.wallet_key(WALLET)

        assert sign_transcript(key, "msg") == sign_transcript(key, "msg")

    def test_wrong_key_fails(self, keyring: KeyRing):
        t = sign_transcript(keyring.wallet_key(WALLET), "msg")
        other = derive_public_key(keyring.wallet_key("AnotherWallet"))

        assert verify_transcript(t.public_key, t.r, t.s, "msg")
        assert not verify_transcript(other, t.r, t.s, "msg")

    def test_tampered_s_fails(self, keyring: KeyRing):
        t = sign_transcript(keyring.wallet_key(WALLET), "msg")

        assert not verify_transcript(t.public_key, t.r, t.s + 1, "msg")

    def test_out_of_range_values(self):
        assert not verify_transcript(0, 1, 1, "msg")
        assert not verify_transcript(1, constants.SIGNATURE_PRIME, 1, "msg")


class TestIntegrityVerifier:
    """Tests for proof verification."""

    def test_valid(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        result = verifier.verify(generator.balance(WALLET, 1.0, "SOL"))

        assert result.valid
        assert result.reason is None
        assert result.security_level == "cryptographic-commitment"

    def test_tampered_public_input(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        proof = generator.balance(WALLET, 250.0, "SOL", threshold=1000)
        proof.public_inputs[-1] = "threshold_check:true"

        result = verifier.verify(proof)

        assert not result.valid
        assert result.reason == "integrity"

    def test_tampered_timestamp(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        proof = generator.balance(WALLET, 1.0, "SOL")
        proof.timestamp += 1

        assert verifier.verify(proof).reason == "integrity"

    def test_wrong_blinding(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        proof = generator.balance(WALLET, 1.0, "SOL")
        proof.blinding_factor = "00" * 32

        assert verifier.verify(proof).reason == "integrity"

    def test_expired(self, fixed_generator: ProofGenerator, verifier: IntegrityVerifier, fixed_now):
        proof = fixed_generator.balance(WALLET, 1.0, "SOL")

        assert verifier.verify(proof, now=fixed_now + timedelta(days=29)).valid
        result = verifier.verify(proof, now=fixed_now + timedelta(days=31))
        assert result.reason == "expired"

    def test_integrity_checked_before_expiry(self, fixed_generator, verifier, fixed_now):
        proof = fixed_generator.balance(WALLET, 1.0, "SOL")
        proof.commitment = "0" * 64

        result = verifier.verify(proof, now=fixed_now + timedelta(days=31))

        assert result.reason == "integrity"

    def test_double_spend(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        proof = generator.balance(WALLET, 1.0, "SOL")

        assert verifier.consume_nullifier(proof.nullifier) is True
        assert verifier.consume_nullifier(proof.nullifier) is False
        assert verifier.verify(proof).reason == "double-spend"

    def test_verify_does_not_consume(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        proof = generator.balance(WALLET, 1.0, "SOL")

        verifier.verify(proof)
        verifier.verify(proof)

        assert not verifier.nullifiers.contains(proof.nullifier)


class TestAggregate:
    """Tests for proof aggregation."""

    def test_singleton_root(self, generator: ProofGenerator):
        proof = generator.balance(WALLET, 1.0, "SOL")

        agg = aggregate([proof])

        assert agg.batch_root == sha256_hex(proof.proof_hash)

    def test_empty_batch(self):
        with pytest.raises(EmptyBatch):
            aggregate([])

    def test_folds_commitments_and_nullifiers(self, generator: ProofGenerator):
        proofs = [generator.balance(WALLET, 1.0, "SOL"), generator.ownership(WALLET, "A", "nft")]

        agg = aggregate(proofs)

        assert agg.aggregate_commitment == sha256_hex("|".join(p.commitment for p in proofs))
        assert agg.aggregate_nullifier == sha256_hex("|".join(p.nullifier for p in proofs))

    def test_verified_needs_all_members(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        good = generator.balance(WALLET, 1.0, "SOL")
        bad = generator.ownership(WALLET, "A", "nft")
        bad.public_inputs.append("forged")

        assert aggregate([good], verifier).verified
        assert not aggregate([good, bad], verifier).verified
        assert not aggregate([good]).verified, "Unverified member without a verifier"

    def test_aggregated_proof_record(self, generator: ProofGenerator, verifier: IntegrityVerifier):
        proofs = [generator.balance(WALLET, 1.0, "SOL"), generator.range(WALLET, 5, 0, 10)]

        proof = generator.aggregated(WALLET, proofs, verifier)

        assert proof.proof_type == "aggregated"
        assert proof.verified
        assert "count:2" in proof.public_inputs
        assert verifier.verify(proof).valid
