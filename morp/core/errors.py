"""Error taxonomy.

Configuration errors are fatal at startup. Validation and conflict errors are
reported to the caller. Integrity errors mark data untrusted. Execution errors
are recorded on segments. Nothing here is retried.
"""
from typing import Optional


class MorpError(Exception):
    """Base class for all MORP errors."""
    pass


class ConfigurationError(MorpError):
    """Raised when required configuration (e.g. master secret) is missing. Never catch silently."""
    pass


class ValidationError(MorpError, ValueError):
    """Raised for malformed requests; rejected synchronously, no retry."""
    pass


class InvalidAmount(ValidationError):
    pass


class SameToken(ValidationError):
    pass


class EmptyBatch(ValidationError):
    pass


class ElementNotInSet(ValidationError):
    pass


class UnknownProofType(ValidationError):
    pass


class IntegrityError(MorpError):
    """Raised when data fails a hash or authentication check."""
    pass


class DecodeError(IntegrityError):
    pass


class ConflictError(MorpError):
    """409-equivalent: the operation conflicts with existing state."""
    pass


class DuplicateNullifier(ConflictError):
    """A live proof already exists for this nullifier."""

    def __init__(self, nullifier: str, existing_id: Optional[str] = None):
        self.nullifier = nullifier
        self.existing_id = existing_id
        super().__init__(f"Proof already exists for nullifier {nullifier[:16]}...")


class NotScheduled(ConflictError):
    pass


class NotCancellable(ConflictError):
    pass


class AlreadyRevoked(ConflictError):
    pass


class NotFound(MorpError, LookupError):
    pass


class ExecutionError(MorpError):
    """An underlying transfer failed. Recorded on the segment."""
    pass
