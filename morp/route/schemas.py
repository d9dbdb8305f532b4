"""Routing batch, segment, and privacy profile records."""
import re
from dataclasses import asdict, dataclass, fields
from typing import Optional

from ..core import constants
from ..core.errors import ValidationError

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _option_name(key: str) -> str:
    """enableDecoys -> enable_decoys; snake_case passes through."""
    return _CAMEL.sub("_", key).lower()


def _check_type(name: str, expected: type, value) -> None:
    if expected is bool:
        ok = isinstance(value, bool)
    elif expected is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    else:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    if not ok:
        raise ValidationError(f"{name} must be {expected.__name__}, got {type(value).__name__}")


@dataclass
class PrivacyProfile:
    """Per-wallet routing defaults."""
    enable_decoys: bool = constants.DEFAULT_ENABLE_DECOYS
    enable_timing_jitter: bool = constants.DEFAULT_ENABLE_TIMING_JITTER
    enable_splitting: bool = constants.DEFAULT_ENABLE_SPLITTING
    decoy_count: int = constants.DEFAULT_DECOY_COUNT
    split_threshold: float = constants.DEFAULT_SPLIT_THRESHOLD
    max_split_parts: int = constants.DEFAULT_MAX_SPLIT_PARTS
    min_delay_ms: int = constants.DEFAULT_MIN_DELAY_MS
    max_delay_ms: int = constants.DEFAULT_MAX_DELAY_MS

    @classmethod
    def from_config(cls, config) -> "PrivacyProfile":
        return cls(**{f.name: getattr(config, f.name) for f in fields(cls)})

    def resolve(self, options: Optional[dict] = None) -> "PrivacyProfile":
        """Explicit request options override stored values; None means not given.

        Keys may be snake_case or camelCase (decoyCount).

        Raises:
            ValidationError: Unknown option or a value of the wrong type
        """
        types = {f.name: f.type for f in fields(self)}
        merged = asdict(self)
        for key, value in (options or {}).items():
            name = _option_name(key)
            if name not in types:
                raise ValidationError(f"Unknown privacy option: {key}")
            if value is None:
                continue
            _check_type(key, types[name], value)
            merged[name] = value
        return PrivacyProfile(**merged)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PrivacyProfile":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class RoutingSegment:
    """One step of a routed transfer.

    Decoys carry amount=None and token_mint=None; the absence of an amount,
    not a zero, is what hides them.
    """
    batch_id: str
    segment_type: str
    segment_index: int
    commitment: str
    nullifier: str
    amount: Optional[float]
    token_mint: Optional[str]
    scheduled_at: int
    delay_applied_ms: int
    status: str = "pending"
    tx_signature: Optional[str] = None
    error: Optional[str] = None
    executed_at: Optional[str] = None

    @property
    def is_decoy(self) -> bool:
        return self.segment_type == "decoy"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RoutingSegment":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class RoutingBatch:
    id: str
    wallet_address: str
    input_token: str
    output_token: str
    amount: float
    random_seed: str
    scheduled_window: dict
    status: str
    total_segments: int
    completed_segments: int
    privacy_score: int
    obfuscation_level: int
    timing_jitter_applied: bool
    failed_segments: int = 0
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    def public_view(self) -> dict:
        """Batch fields safe to show outside the wallet owner (no seed)."""
        data = self.to_dict()
        data.pop("random_seed", None)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "RoutingBatch":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})
