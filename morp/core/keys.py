"""Keying primitives derived from the process master secret.

The master secret never leaves this module. Per-wallet keys are recomputed on
demand and never stored.
"""
import hashlib
import hmac
import secrets

from .constants import BLINDING_BYTES
from .errors import ConfigurationError


class KeyRing:
    """Holds the master secret and derives every key the engine needs.

    Raises:
        ConfigurationError: If the master secret is missing or empty
    """

    def __init__(self, master_secret: str | bytes):
        if not master_secret:
            raise ConfigurationError(
                "Master secret is required for commitment security; "
                "set MORP_MASTER_SECRET"
            )
        if isinstance(master_secret, str):
            master_secret = master_secret.encode("utf-8")
        self._master = master_secret
        self._encryption_key = hashlib.sha256(self._master + b":encryption").digest()

    @classmethod
    def from_config(cls, config) -> "KeyRing":
        return cls(config.master_secret)

    def wallet_key(self, wallet_address: str) -> bytes:
        """HMAC(master, "wallet:" + address). Deterministic."""
        return hmac.new(
            self._master,
            f"wallet:{wallet_address}".encode("utf-8"),
            hashlib.sha256,
        ).digest()

    @property
    def encryption_key(self) -> bytes:
        """32-byte AEAD key for blinding factors at rest."""
        return self._encryption_key

    def __repr__(self) -> str:
        return "KeyRing(<redacted>)"


def random_bytes(length: int = BLINDING_BYTES) -> bytes:
    """Cryptographically secure random bytes."""
    return secrets.token_bytes(length)
