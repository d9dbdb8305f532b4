"""MORP constants and thresholds.

All magic numbers live here. No exceptions.
"""

# Proof policy
PROOF_VERSION = "2.1.0"
PROOF_EXPIRY_DAYS = 30
PROOF_PROTOCOL = "hmac-commitment"
SECURITY_LEVEL = "cryptographic-commitment"
BLINDING_BYTES = 32
COMMITMENT_TYPE_INPUT = "commitment_type:hmac-sha256"

PROOF_TYPES = (
    "balance",
    "range",
    "transaction",
    "identity",
    "ownership",
    "merkle",
    "signature",
    "aggregated",
)

# Verification failure reasons
REASON_INTEGRITY = "integrity"
REASON_EXPIRED = "expired"
REASON_DOUBLE_SPEND = "double-spend"
REASON_REVOKED = "revoked"

# Codec
CODEC_IV_BYTES = 16
CODEC_TAG_BYTES = 16

# Fixed decimal grid for amounts (micro-units)
AMOUNT_DECIMALS = 6
AMOUNT_SCALE = 10 ** AMOUNT_DECIMALS

# Stealth commitments
STEALTH_SECRET_BYTES = 32
STEALTH_SALT_BYTES = 16

# Signature transcript group: multiplicative group of the BN254 scalar field
SIGNATURE_GROUP_NAME = "bn254-fr"
SIGNATURE_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617
SIGNATURE_GENERATOR = 5

# Routing defaults
DEFAULT_ENABLE_DECOYS = True
DEFAULT_ENABLE_TIMING_JITTER = True
DEFAULT_ENABLE_SPLITTING = False
DEFAULT_DECOY_COUNT = 3
DEFAULT_SPLIT_THRESHOLD = 1000.0
DEFAULT_MAX_SPLIT_PARTS = 4
DEFAULT_MIN_DELAY_MS = 500
DEFAULT_MAX_DELAY_MS = 5000
MAX_DECOY_COUNT = 10
DECOY_WINDOW_MS = 30_000
DECOY_COMPLETION_DELAY_MS = 100

# Privacy score weights
SCORE_DECOY_WEIGHT = 40
SCORE_TIMING_WEIGHT = 30
SCORE_SPLIT_BONUS = 15
SCORE_BASE = 15
TIMING_ENTROPY_JITTER = 0.8
TIMING_ENTROPY_FLAT = 0.2

BATCH_STATUSES = ("planning", "scheduled", "executing", "completed", "failed", "cancelled")
SEGMENT_STATUSES = ("pending", "executing", "completed", "failed", "skipped")
SEGMENT_TYPES = ("real", "decoy", "split")
CANCELLABLE_STATUSES = ("planning", "scheduled")

# Ledger file names
PROOF_LEDGER = "proofs.jsonl"
NULLIFIER_LEDGER = "nullifiers.jsonl"
ROUTE_LEDGER = "routes.jsonl"
PROFILE_LEDGER = "profiles.jsonl"
