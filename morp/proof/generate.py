"""Claim-specific proof generators.

Every generator follows the same template:
    1. Build a claim payload that keeps the raw secret out of public fields
    2. Draw a fresh blinding factor
    3. Commit
    4. Derive the nullifier from a canonical claim string
    5. Assemble public inputs (wallet hash, claim tag, public thresholds)
    6. Compute the proof hash
    7. Stamp a 30-day expiry

Usage:
    gen = ProofGenerator(KeyRing(secret), config)
    proof = gen.balance("Wallet111", balance=250.0, token="SOL", threshold=100)
    proof = gen.generate("range", "Wallet111", {"value": 42}, {"min": 0, "max": 100})
"""
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from ..anchor import build_path, build_root, leaf_hash, verify_path
from ..commit.commitment import commit, new_blinding
from ..commit.nullifier import NullifierDeriver
from ..commit.stealth import normalize_amount
from ..core import constants
from ..core.errors import ElementNotInSet, UnknownProofType, ValidationError
from ..core.keys import KeyRing
from ..core.receipt import hmac256, hmac256_hex, sha256_hex
from .schemas import Proof, ProofMetadata, compute_proof_hash
from .signature import sign_transcript, verify_transcript

RANGE_MIN_BITS = 64


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _num(value) -> str:
    return normalize_amount(value)


def _decimal(value) -> Decimal:
    """Exact value of a numeric input; strings like "250" are accepted.

    Raises:
        InvalidAmount: value is not a finite number
    """
    normalize_amount(value)
    return Decimal(str(value))


def _require(inputs: dict, *keys: str) -> list:
    missing = [k for k in keys if inputs.get(k) is None]
    if missing:
        raise ValidationError(f"Missing required inputs: {', '.join(missing)}")
    return [inputs[k] for k in keys]


class ProofGenerator:
    """Builds Proof records for each supported claim type."""

    def __init__(self, keyring: KeyRing, config=None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.keyring = keyring
        self.nullifiers = NullifierDeriver(keyring)
        self.expiry_days = config.proof_expiry_days if config else constants.PROOF_EXPIRY_DAYS
        self.version = config.proof_version if config else constants.PROOF_VERSION
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _assemble(
        self,
        wallet_address: str,
        proof_type: str,
        payload: dict,
        claim_data: str,
        extra_inputs: list[str],
        claim: str,
        description: str,
        verified: bool = False,
        blinding: Optional[bytes] = None,
    ) -> Proof:
        blinding = blinding or new_blinding()
        commitment = commit(json.dumps(payload, sort_keys=True), blinding)
        nullifier = self.nullifiers.derive(wallet_address, proof_type, claim_data)

        public_inputs = [sha256_hex(wallet_address), *extra_inputs]

        now = self.clock()
        timestamp = int(now.timestamp() * 1000)
        blinding_hex = blinding.hex()
        proof_hash = compute_proof_hash(commitment, nullifier, blinding_hex, public_inputs, timestamp)

        return Proof(
            proof_hash=proof_hash,
            commitment=commitment,
            nullifier=nullifier,
            public_inputs=public_inputs,
            timestamp=timestamp,
            proof_type=proof_type,
            verified=verified,
            protocol=constants.PROOF_PROTOCOL,
            blinding_factor=blinding_hex,
            metadata=ProofMetadata(
                claim=claim,
                created_at=_iso(now),
                expires_at=_iso(now + timedelta(days=self.expiry_days)),
                version=self.version,
                security_level=constants.SECURITY_LEVEL,
                description=description,
            ),
        )

    def balance(self, wallet_address: str, balance: float, token: str,
                threshold: Optional[float] = None) -> Proof:
        """Commit to a balance; optionally reveal only whether it meets threshold."""
        balance_hash = sha256_hex(_num(balance))
        payload = {
            "wallet": sha256_hex(wallet_address),
            "token": token,
            "balanceHash": balance_hash,
        }
        inputs = [token, constants.COMMITMENT_TYPE_INPUT]
        if threshold is not None:
            inputs.append(f"threshold_check:{str(_decimal(balance) >= _decimal(threshold)).lower()}")
            claim = f"Commitment proving balance threshold status for {token}"
        else:
            claim = f"Commitment proving {token} ownership without revealing amount"

        return self._assemble(
            wallet_address, "balance", payload,
            f"balance:{token}:{balance_hash}", inputs, claim,
            "HMAC commitment with blinding factor; balance hidden without the blinding factor.",
        )

    def range(self, wallet_address: str, value: float, min_value: float,
              max_value: float, label: str = "value") -> Proof:
        """Commit to value and publish only whether it lies in [min, max].

        Each bit of the value (on the 10^-6 grid) gets its own commitment under
        a blinding derived from the proof's blinding factor; the Merkle root of
        the bit commitments is published so the structure can be audited once
        the proof is opened.
        """
        if _decimal(min_value) > _decimal(max_value):
            raise ValidationError(f"Empty range [{min_value}, {max_value}]")

        in_range = _decimal(min_value) <= _decimal(value) <= _decimal(max_value)
        blinding = new_blinding()

        scaled = int(Decimal(_num(value)) * constants.AMOUNT_SCALE)
        magnitude = abs(scaled)
        width = max(RANGE_MIN_BITS, magnitude.bit_length())
        bit_commitments = []
        for i in range(width):
            bit = (magnitude >> i) & 1
            bit_blinding = hmac256(blinding, f"bit:{i}")
            bit_commitments.append(commit(f"{i}:{bit}", bit_blinding))
        bit_root = build_root(bit_commitments)

        value_hash = sha256_hex(_num(value))
        payload = {
            "wallet": sha256_hex(wallet_address),
            "valueHash": value_hash,
            "range": {"min": min_value, "max": max_value},
            "label": label,
            "sign": "-" if scaled < 0 else "+",
            "bitRoot": bit_root,
        }
        inputs = [
            f"range:[{_num(min_value)},{_num(max_value)}]",
            f"in_range:{str(in_range).lower()}",
            label,
            f"bits:{width}",
            f"bit_root:{bit_root}",
            constants.COMMITMENT_TYPE_INPUT,
        ]
        result = "IN RANGE" if in_range else "OUT OF RANGE"

        return self._assemble(
            wallet_address, "range", payload,
            f"range:{label}:{_num(min_value)}:{_num(max_value)}:{value_hash}",
            inputs,
            f"Commitment for range check [{_num(min_value)}, {_num(max_value)}] - Result: {result}",
            "HMAC range commitment with per-bit structure commitments. The range result is public.",
            verified=in_range,
            blinding=blinding,
        )

    def transaction(self, wallet_address: str, tx_signature: str, from_token: str,
                    to_token: str, amount: float) -> Proof:
        tx_hash = sha256_hex(tx_signature)
        payload = {
            "wallet": sha256_hex(wallet_address),
            "txHash": tx_hash,
            "fromToken": from_token,
            "toToken": to_token,
            "amountHash": sha256_hex(_num(amount)),
        }
        return self._assemble(
            wallet_address, "transaction", payload,
            f"tx:{tx_hash}:{from_token}:{to_token}",
            [tx_hash, f"swap:{from_token}->{to_token}", constants.COMMITMENT_TYPE_INPUT],
            f"Commitment for {from_token} to {to_token} swap transaction",
            "Links a transaction to a wallet without revealing the swap amount.",
        )

    def identity(self, wallet_address: str, identity_data: dict) -> Proof:
        identity_hash = sha256_hex(json.dumps(identity_data, sort_keys=True))
        payload = {
            "wallet": sha256_hex(wallet_address),
            "identityHash": identity_hash,
        }
        return self._assemble(
            wallet_address, "identity", payload,
            f"identity:{identity_hash}",
            ["identity_committed", constants.COMMITMENT_TYPE_INPUT],
            "Commitment binding identity data to wallet",
            "Identity data hashed and committed; details stay hidden until opened.",
        )

    def ownership(self, wallet_address: str, asset_id: str, asset_type: str) -> Proof:
        asset_hash = sha256_hex(asset_id)
        payload = {
            "wallet": sha256_hex(wallet_address),
            "asset": asset_hash,
            "type": asset_type,
        }
        return self._assemble(
            wallet_address, "ownership", payload,
            f"ownership:{asset_type}:{asset_hash}",
            [asset_hash, asset_type, constants.COMMITMENT_TYPE_INPUT],
            f"Commitment proving {asset_type} ownership",
            "Wallet commits to owning an asset without revealing it until opened.",
        )

    def merkle(self, wallet_address: str, element: str, elements: list[str]) -> Proof:
        """Prove element is a literal member of elements.

        Raises:
            ElementNotInSet: If element is not in elements
        """
        if element not in elements:
            raise ElementNotInSet("Element not in set")

        leaves = [leaf_hash(e) for e in elements]
        path = build_path(leaves, elements.index(element))

        payload = {
            "wallet": sha256_hex(wallet_address),
            "leaf": path.leaf,
            "root": path.root,
            "pathHash": sha256_hex(json.dumps(path.to_dict(), sort_keys=True)),
        }
        return self._assemble(
            wallet_address, "merkle", payload,
            f"merkle:{path.root}:{path.leaf}",
            [f"merkle_root:{path.root}", f"set_size:{len(elements)}", constants.COMMITMENT_TYPE_INPUT],
            "Commitment proving membership in a committed set",
            "Merkle inclusion path committed under a blinding factor; the root is public.",
            verified=verify_path(path),
        )

    def signature(self, wallet_address: str, message: str) -> Proof:
        """Ownership transcript for message, checked before it is reported verified."""
        wallet_key = self.keyring.wallet_key(wallet_address)
        transcript = sign_transcript(wallet_key, message)
        valid = verify_transcript(transcript.public_key, transcript.r, transcript.s, message)

        payload = {
            "wallet": sha256_hex(wallet_address),
            "messageHash": transcript.message_hash,
            "transcript": hmac256_hex(wallet_key, f"{transcript.r:x}:{transcript.s:x}"),
        }
        return self._assemble(
            wallet_address, "signature", payload,
            f"signature:{transcript.message_hash}",
            [
                f"pubkey:{transcript.public_key:x}",
                f"R:{transcript.r:x}",
                f"s:{transcript.s:x}",
                transcript.message_hash,
                f"group:{transcript.group}",
                constants.COMMITMENT_TYPE_INPUT,
            ],
            "Ownership transcript over a wallet-derived key",
            "Schnorr-style transcript in a prime-field group; checked at generation.",
            verified=valid,
        )

    def aggregated(self, wallet_address: str, proofs: list[Proof], verifier) -> Proof:
        """Fold proofs into a storable Proof of type aggregated."""
        from .aggregate import aggregate

        agg = aggregate(proofs, verifier)
        payload = {
            "wallet": sha256_hex(wallet_address),
            "aggregateCommitment": agg.aggregate_commitment,
            "aggregateNullifier": agg.aggregate_nullifier,
            "batchRoot": agg.batch_root,
        }
        return self._assemble(
            wallet_address, "aggregated", payload,
            f"aggregated:{agg.batch_root}:{agg.aggregate_nullifier}",
            [
                f"batch_root:{agg.batch_root}",
                f"aggregate_commitment:{agg.aggregate_commitment}",
                f"count:{len(proofs)}",
                constants.COMMITMENT_TYPE_INPUT,
            ],
            f"Aggregate of {len(proofs)} proofs",
            "Merkle root over member proof hashes with folded commitments and nullifiers.",
            verified=agg.verified,
        )

    def generate(self, proof_type: str, wallet_address: str, private_inputs: dict,
                 public_thresholds: Optional[dict] = None) -> Proof:
        """Dispatch by proof type using plain-dict inputs (HTTP-shaped)."""
        public_thresholds = public_thresholds or {}

        if proof_type == "balance":
            balance, token = _require(private_inputs, "balance", "token")
            return self.balance(wallet_address, balance, token, public_thresholds.get("threshold"))
        if proof_type == "range":
            (value,) = _require(private_inputs, "value")
            min_value, max_value = _require(public_thresholds, "min", "max")
            return self.range(wallet_address, value, min_value, max_value,
                              public_thresholds.get("label", "value"))
        if proof_type == "transaction":
            sig, from_token, to_token, amount = _require(
                private_inputs, "tx_signature", "from_token", "to_token", "amount")
            return self.transaction(wallet_address, sig, from_token, to_token, amount)
        if proof_type == "identity":
            (identity,) = _require(private_inputs, "identity")
            return self.identity(wallet_address, identity)
        if proof_type == "ownership":
            asset_id, asset_type = _require(private_inputs, "asset_id", "asset_type")
            return self.ownership(wallet_address, asset_id, asset_type)
        if proof_type == "merkle":
            element, elements = _require(private_inputs, "element", "elements")
            return self.merkle(wallet_address, element, list(elements))
        if proof_type == "signature":
            (message,) = _require(private_inputs, "message")
            return self.signature(wallet_address, message)

        raise UnknownProofType(f"Unknown proof type: {proof_type}")
