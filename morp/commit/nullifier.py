"""Deterministic nullifier derivation.

nullifier = HMAC(wallet_key, "nullifier:" + proof_type + ":" + SHA256(claim)).
Same (wallet, type, claim) always yields the same nullifier, which is what
makes double submission detectable.
"""
from ..core.keys import KeyRing
from ..core.receipt import hmac256_hex, sha256_hex


class NullifierDeriver:
    """Derives wallet-scoped nullifiers from a KeyRing.

    Construction requires a KeyRing, so a missing master secret fails at
    startup rather than producing guessable nullifiers.
    """

    def __init__(self, keyring: KeyRing):
        self.keyring = keyring

    def derive(self, wallet_address: str, proof_type: str, claim_data: str) -> str:
        wallet_key = self.keyring.wallet_key(wallet_address)
        return hmac256_hex(wallet_key, f"nullifier:{proof_type}:{sha256_hex(claim_data)}")
