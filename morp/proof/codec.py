"""Compressed proof transport form.

The blinding factor is sealed with AES-256-GCM before it leaves the process.

    eb = base64(iv (16) || tag (16) || ciphertext)
    compressed = base64(json({h, c, n, eb, t, p, v, pr, sl}))

A bad tag, bad base64 or bad JSON surfaces as DecodeError; a wrong blinding
factor is never returned silently.
"""
import base64
import binascii
import json
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core.constants import CODEC_IV_BYTES, CODEC_TAG_BYTES
from ..core.errors import DecodeError
from ..core.keys import KeyRing, random_bytes
from .schemas import DecodedProof, Proof

logger = logging.getLogger("morp.codec")


class ProofCodec:
    """Encodes proofs for transport and storage at rest."""

    def __init__(self, keyring: KeyRing):
        self._aead = AESGCM(keyring.encryption_key)

    def encrypt_blinding(self, blinding_hex: str) -> str:
        iv = random_bytes(CODEC_IV_BYTES)
        sealed = self._aead.encrypt(iv, blinding_hex.encode("utf-8"), None)
        # AESGCM appends the tag; transport layout puts it before the ciphertext
        ciphertext, tag = sealed[:-CODEC_TAG_BYTES], sealed[-CODEC_TAG_BYTES:]
        return base64.b64encode(iv + tag + ciphertext).decode("ascii")

    def decrypt_blinding(self, encrypted: str) -> str:
        try:
            data = base64.b64decode(encrypted, validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecodeError(f"Encrypted blinding is not base64: {e}") from e
        if len(data) < CODEC_IV_BYTES + CODEC_TAG_BYTES:
            raise DecodeError("Encrypted blinding too short")

        iv = data[:CODEC_IV_BYTES]
        tag = data[CODEC_IV_BYTES:CODEC_IV_BYTES + CODEC_TAG_BYTES]
        ciphertext = data[CODEC_IV_BYTES + CODEC_TAG_BYTES:]
        try:
            plaintext = self._aead.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise DecodeError("Blinding factor authentication failed") from e
        return plaintext.decode("utf-8")

    def encode(self, proof: Proof) -> str:
        compact = {
            "h": proof.proof_hash,
            "c": proof.commitment,
            "n": proof.nullifier,
            "eb": self.encrypt_blinding(proof.blinding_factor),
            "t": proof.timestamp,
            "p": proof.proof_type,
            "v": proof.verified,
            "pr": proof.protocol,
            "sl": proof.metadata.security_level if proof.metadata else None,
        }
        return base64.b64encode(json.dumps(compact).encode("utf-8")).decode("ascii")

    def decode(self, compressed: str) -> DecodedProof:
        """Reverse encode().

        Raises:
            DecodeError: On malformed input or failed authentication
        """
        try:
            decoded = json.loads(base64.b64decode(compressed, validate=True).decode("utf-8"))
        except (binascii.Error, ValueError, UnicodeDecodeError) as e:
            logger.warning("compressed proof rejected: %s", type(e).__name__)
            raise DecodeError(f"Malformed compressed proof: {e}") from e
        if not isinstance(decoded, dict):
            raise DecodeError("Malformed compressed proof: not an object")

        if decoded.get("eb"):
            if not isinstance(decoded["eb"], str):
                raise DecodeError("Malformed compressed proof: eb is not a string")
            blinding_factor = self.decrypt_blinding(decoded["eb"])
        else:
            # Legacy records carried the blinding in plaintext
            blinding_factor = decoded.get("b")
            if blinding_factor is not None and not isinstance(blinding_factor, str):
                raise DecodeError("Malformed compressed proof: b is not a string")

        try:
            return DecodedProof(
                proof_hash=decoded["h"],
                commitment=decoded["c"],
                nullifier=decoded["n"],
                blinding_factor=blinding_factor,
                timestamp=int(decoded["t"]),
                proof_type=decoded["p"],
                verified=bool(decoded.get("v", False)),
                protocol=decoded.get("pr", ""),
                security_level=decoded.get("sl"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"Compressed proof missing field: {e}") from e
