"""Keyed-hash commitment scheme.

commitment = HMAC-SHA256(blinding, payload). Hiding under a fresh 32-byte
blinding factor, binding through the hash. Opening recomputes and compares in
constant time.
"""
import hmac

from ..core.keys import random_bytes
from ..core.receipt import hmac256_hex


def new_blinding() -> bytes:
    """Fresh 32-byte blinding factor from the CSPRNG."""
    return random_bytes()


def commit(payload: bytes | str, blinding: bytes) -> str:
    """Commit to payload under blinding.

    Args:
        payload: Claim payload (bytes or str)
        blinding: 32-byte blinding factor

    Returns:
        Commitment as hex string
    """
    return hmac256_hex(blinding, payload)


def open_commitment(commitment: str, blinding: bytes | str, payload: bytes | str) -> bool:
    """Verify that (blinding, payload) opens commitment.

    Args:
        commitment: Hex commitment to check
        blinding: Blinding factor as bytes or hex string
        payload: Claimed payload

    Returns:
        True if recomputed commitment matches
    """
    if isinstance(blinding, str):
        try:
            blinding = bytes.fromhex(blinding)
        except ValueError:
            return False
    recomputed = commit(payload, blinding)
    return hmac.compare_digest(recomputed.encode(), commitment.encode())
