"""Core subpackage for MORP primitives.

Exports hashing, receipts, keys and the error taxonomy.
"""
from .errors import (
    ConfigurationError,
    ConflictError,
    DecodeError,
    DuplicateNullifier,
    IntegrityError,
    MorpError,
    ValidationError,
)
from .keys import KeyRing, random_bytes
from .receipt import emit_receipt, hmac256_hex, sha256_hex, sha512_hex

__all__ = [
    "sha256_hex",
    "sha512_hex",
    "hmac256_hex",
    "emit_receipt",
    "KeyRing",
    "random_bytes",
    "MorpError",
    "ConfigurationError",
    "ValidationError",
    "IntegrityError",
    "DecodeError",
    "ConflictError",
    "DuplicateNullifier",
]
