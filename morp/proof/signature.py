"""Schnorr-style ownership transcripts over a prime-field multiplicative group.

Group: integers mod SIGNATURE_PRIME (BN254 scalar field order) with generator
SIGNATURE_GENERATOR. Exponents live mod p - 1.

    x   = wallet_key mod (p - 1)
    pub = g^x
    k   = HMAC(wallet_key, "nonce:" + message) mod (p - 1)
    R   = g^k
    e   = H(R | pub | message) mod (p - 1)
    s   = k + e * x mod (p - 1)

A transcript verifies iff g^s == R * pub^e (mod p). This is a transcript, not
an elliptic-curve signature; the label describes intent only.
"""
import hashlib
import hmac
from dataclasses import dataclass

from ..core.constants import SIGNATURE_GENERATOR, SIGNATURE_GROUP_NAME, SIGNATURE_PRIME

_ORDER = SIGNATURE_PRIME - 1


@dataclass
class SignatureTranscript:
    public_key: int
    r: int
    s: int
    message_hash: str
    group: str = SIGNATURE_GROUP_NAME


def _challenge(r: int, public_key: int, message: str) -> int:
    digest = hashlib.sha256(f"{r:x}|{public_key:x}|{message}".encode("utf-8")).digest()
    return int.from_bytes(digest, "big") % _ORDER


def _secret_scalar(wallet_key: bytes) -> int:
    return int.from_bytes(wallet_key, "big") % _ORDER or 1


def derive_public_key(wallet_key: bytes) -> int:
    return pow(SIGNATURE_GENERATOR, _secret_scalar(wallet_key), SIGNATURE_PRIME)


def sign_transcript(wallet_key: bytes, message: str) -> SignatureTranscript:
    """Build an ownership transcript for message under wallet_key."""
    x = _secret_scalar(wallet_key)
    public_key = pow(SIGNATURE_GENERATOR, x, SIGNATURE_PRIME)

    nonce = hmac.new(wallet_key, f"nonce:{message}".encode("utf-8"), hashlib.sha256).digest()
    k = int.from_bytes(nonce, "big") % _ORDER or 1
    r = pow(SIGNATURE_GENERATOR, k, SIGNATURE_PRIME)

    e = _challenge(r, public_key, message)
    s = (k + e * x) % _ORDER

    return SignatureTranscript(
        public_key=public_key,
        r=r,
        s=s,
        message_hash=hashlib.sha256(message.encode("utf-8")).hexdigest(),
    )


def verify_transcript(public_key: int, r: int, s: int, message: str) -> bool:
    """Check g^s == R * pub^e (mod p) for the claimed public key."""
    if not (0 < public_key < SIGNATURE_PRIME and 0 < r < SIGNATURE_PRIME):
        return False
    if not 0 <= s < _ORDER:
        return False
    e = _challenge(r, public_key, message)
    lhs = pow(SIGNATURE_GENERATOR, s, SIGNATURE_PRIME)
    rhs = (r * pow(public_key, e, SIGNATURE_PRIME)) % SIGNATURE_PRIME
    return lhs == rhs
