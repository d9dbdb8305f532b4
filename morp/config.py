"""MORP configuration.

All settings can be overridden via environment variables with MORP_ prefix.
The master secret is read from MORP_MASTER_SECRET, falling back to
SESSION_SECRET. It is required: components refuse to start without it.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from .core import constants


@dataclass
class MorpConfig:
    """Engine configuration passed explicitly to each component."""

    # Secrets
    master_secret: str = field(default="", repr=False)

    # Persistence (None = in-memory only)
    ledger_dir: Optional[str] = None

    # Proof policy
    proof_expiry_days: int = constants.PROOF_EXPIRY_DAYS
    proof_version: str = constants.PROOF_VERSION

    # Default privacy profile
    enable_decoys: bool = constants.DEFAULT_ENABLE_DECOYS
    enable_timing_jitter: bool = constants.DEFAULT_ENABLE_TIMING_JITTER
    enable_splitting: bool = constants.DEFAULT_ENABLE_SPLITTING
    decoy_count: int = constants.DEFAULT_DECOY_COUNT
    split_threshold: float = constants.DEFAULT_SPLIT_THRESHOLD
    max_split_parts: int = constants.DEFAULT_MAX_SPLIT_PARTS
    min_delay_ms: int = constants.DEFAULT_MIN_DELAY_MS
    max_delay_ms: int = constants.DEFAULT_MAX_DELAY_MS

    # Execution
    decoy_completion_delay_ms: int = constants.DECOY_COMPLETION_DELAY_MS

    tenant_id: str = "default"

    @classmethod
    def from_env(cls) -> "MorpConfig":
        """Load configuration from environment variables."""
        config = cls()

        if "MORP_MASTER_SECRET" in os.environ:
            config.master_secret = os.environ["MORP_MASTER_SECRET"]
        elif "SESSION_SECRET" in os.environ:
            config.master_secret = os.environ["SESSION_SECRET"]

        if "MORP_LEDGER_DIR" in os.environ:
            config.ledger_dir = os.environ["MORP_LEDGER_DIR"]
        if "MORP_TENANT_ID" in os.environ:
            config.tenant_id = os.environ["MORP_TENANT_ID"]

        # Proof policy
        if "MORP_PROOF_EXPIRY_DAYS" in os.environ:
            config.proof_expiry_days = int(os.environ["MORP_PROOF_EXPIRY_DAYS"])

        # Routing
        if "MORP_ENABLE_DECOYS" in os.environ:
            config.enable_decoys = os.environ["MORP_ENABLE_DECOYS"].lower() == "true"
        if "MORP_ENABLE_TIMING_JITTER" in os.environ:
            config.enable_timing_jitter = os.environ["MORP_ENABLE_TIMING_JITTER"].lower() == "true"
        if "MORP_ENABLE_SPLITTING" in os.environ:
            config.enable_splitting = os.environ["MORP_ENABLE_SPLITTING"].lower() == "true"
        if "MORP_DECOY_COUNT" in os.environ:
            config.decoy_count = int(os.environ["MORP_DECOY_COUNT"])
        if "MORP_SPLIT_THRESHOLD" in os.environ:
            config.split_threshold = float(os.environ["MORP_SPLIT_THRESHOLD"])
        if "MORP_MAX_SPLIT_PARTS" in os.environ:
            config.max_split_parts = int(os.environ["MORP_MAX_SPLIT_PARTS"])
        if "MORP_MIN_DELAY_MS" in os.environ:
            config.min_delay_ms = int(os.environ["MORP_MIN_DELAY_MS"])
        if "MORP_MAX_DELAY_MS" in os.environ:
            config.max_delay_ms = int(os.environ["MORP_MAX_DELAY_MS"])

        return config

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []

        if not self.master_secret:
            errors.append("master_secret is required (set MORP_MASTER_SECRET)")
        if self.proof_expiry_days < 1:
            errors.append("proof_expiry_days must be >= 1")
        if self.decoy_count < 0 or self.decoy_count > constants.MAX_DECOY_COUNT:
            errors.append(f"decoy_count must be in [0, {constants.MAX_DECOY_COUNT}]")
        if self.split_threshold <= 0:
            errors.append("split_threshold must be > 0")
        if self.max_split_parts < 1:
            errors.append("max_split_parts must be >= 1")
        if self.min_delay_ms < 0 or self.max_delay_ms < self.min_delay_ms:
            errors.append("delay bounds must satisfy 0 <= min_delay_ms <= max_delay_ms")

        return errors
