"""Private route planning.

Decomposes one transfer intent into a shuffled batch of real, split and decoy
segments with timing jitter, then scores the batch's privacy.

Algorithm:
    1. Resolve settings: request options override the stored profile
    2. Split into min(max_split_parts, ceil(amount / split_threshold)) parts
       when splitting is enabled and amount exceeds the threshold
    3. Real/split segments: commitment H(batch|index|"real"|seed),
       nullifier H(batch|wallet|index), uniform jitter delay
    4. Decoys: no amount, no token, random time inside the window
    5. Uniform shuffle, then re-index 0..N-1 so position leaks nothing
    6. privacy_score = min(100, round(decoy_ratio*40 + timing_entropy*30 + split_bonus + 15))
    7. Promote planning -> scheduled

The random seed comes from the CSPRNG; shuffling and jitter use a
random.Random seeded from it, so each batch's randomness is self-contained.
"""
import logging
import math
import random
import secrets
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core import constants
from ..core.errors import InvalidAmount, SameToken, ValidationError
from ..core.receipt import emit_anomaly, emit_receipt, sha256_hex, utc_now_iso
from .schemas import PrivacyProfile, RoutingBatch, RoutingSegment

logger = logging.getLogger("morp.route")


def segment_commitment(batch_id: str, index: int, kind: str, random_seed: str) -> str:
    return sha256_hex(f"{batch_id}:{index}:{kind}:{random_seed}")


def segment_nullifier(batch_id: str, wallet_address: str, index: int) -> str:
    return sha256_hex(f"{batch_id}:{wallet_address}:{index}")


def real_segment_count(amount: float, settings: PrivacyProfile) -> int:
    if settings.enable_splitting and amount > settings.split_threshold:
        return min(settings.max_split_parts, math.ceil(amount / settings.split_threshold))
    return 1


def privacy_score(decoy_count: int, total_segments: int, jitter: bool, real_count: int) -> int:
    """0-100 heuristic over decoy ratio, timing entropy, and splitting."""
    decoy_ratio = decoy_count / total_segments if total_segments else 0.0
    timing_entropy = constants.TIMING_ENTROPY_JITTER if jitter else constants.TIMING_ENTROPY_FLAT
    split_bonus = constants.SCORE_SPLIT_BONUS if real_count > 1 else 0
    raw = (
        decoy_ratio * constants.SCORE_DECOY_WEIGHT
        + timing_entropy * constants.SCORE_TIMING_WEIGHT
        + split_bonus
        + constants.SCORE_BASE
    )
    # Round half up
    return min(100, math.floor(raw + 0.5))


def _validate_settings(settings: PrivacyProfile) -> None:
    if settings.decoy_count < 0 or settings.decoy_count > constants.MAX_DECOY_COUNT:
        raise ValidationError(f"decoy_count must be in [0, {constants.MAX_DECOY_COUNT}]")
    if settings.split_threshold <= 0:
        raise ValidationError("split_threshold must be > 0")
    if settings.max_split_parts < 1:
        raise ValidationError("max_split_parts must be >= 1")
    if settings.min_delay_ms < 0 or settings.max_delay_ms < settings.min_delay_ms:
        raise ValidationError("delay bounds must satisfy 0 <= min_delay_ms <= max_delay_ms")


class RoutePlanner:
    """Plans routing batches. Holds no state across calls."""

    def __init__(self, config=None, clock: Optional[Callable[[], datetime]] = None):
        self.default_profile = PrivacyProfile.from_config(config) if config else PrivacyProfile()
        self.tenant_id = config.tenant_id if config else "default"
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def plan(
        self,
        wallet_address: str,
        input_token: str,
        output_token: str,
        amount: float,
        options: Optional[dict] = None,
        profile: Optional[PrivacyProfile] = None,
    ) -> tuple[RoutingBatch, list[RoutingSegment]]:
        """Plan a routing batch.

        Raises:
            InvalidAmount: amount <= 0 or not a number
            SameToken: input_token == output_token
            ValidationError: resolved settings out of bounds
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) \
                or not math.isfinite(amount) or amount <= 0:
            emit_anomaly("route_amount", "violation", "reject", tenant_id=self.tenant_id)
            raise InvalidAmount(f"Amount must be positive, got {amount!r}")
        if input_token == output_token:
            emit_anomaly("route_tokens", "violation", "reject", tenant_id=self.tenant_id)
            raise SameToken("Input and output token must differ")

        settings = (profile or self.default_profile).resolve(options)
        _validate_settings(settings)

        batch_id = str(uuid.uuid4())
        random_seed = secrets.token_hex(32)
        rng = random.Random(random_seed)
        now_ms = int(self.clock().timestamp() * 1000)
        jitter = bool(settings.enable_timing_jitter)

        real_count = real_segment_count(amount, settings)
        part_amount = amount / real_count
        real_type = "split" if real_count > 1 else "real"

        if jitter:
            window_ms = settings.max_delay_ms * real_count
        else:
            window_ms = constants.DECOY_WINDOW_MS

        segments = []
        for i in range(real_count):
            delay = rng.randint(settings.min_delay_ms, settings.max_delay_ms) if jitter else 0
            segments.append(RoutingSegment(
                batch_id=batch_id,
                segment_type=real_type,
                segment_index=i,
                commitment=segment_commitment(batch_id, i, "real", random_seed),
                nullifier=segment_nullifier(batch_id, wallet_address, i),
                amount=part_amount,
                token_mint=input_token,
                scheduled_at=now_ms + delay,
                delay_applied_ms=delay,
            ))

        decoy_count = settings.decoy_count if settings.enable_decoys else 0
        for j in range(decoy_count):
            index = real_count + j
            offset = rng.randint(0, window_ms)
            segments.append(RoutingSegment(
                batch_id=batch_id,
                segment_type="decoy",
                segment_index=index,
                commitment=segment_commitment(batch_id, index, "decoy", random_seed),
                nullifier=segment_nullifier(batch_id, wallet_address, index),
                amount=None,
                token_mint=None,
                scheduled_at=now_ms + offset,
                delay_applied_ms=offset,
            ))

        rng.shuffle(segments)
        for position, segment in enumerate(segments):
            segment.segment_index = position

        total = len(segments)
        created_at = utc_now_iso()
        batch = RoutingBatch(
            id=batch_id,
            wallet_address=wallet_address,
            input_token=input_token,
            output_token=output_token,
            amount=amount,
            random_seed=random_seed,
            scheduled_window={"start_ms": now_ms, "end_ms": now_ms + window_ms},
            status="planning",
            total_segments=total,
            completed_segments=0,
            privacy_score=privacy_score(decoy_count, total, jitter, real_count),
            obfuscation_level=decoy_count,
            timing_jitter_applied=jitter,
            created_at=created_at,
            updated_at=created_at,
        )

        # Segments are materialized
        batch.status = "scheduled"
        logger.debug("planned batch %s with %d segments", batch_id, total)

        emit_receipt("route_planned", {
            "tenant_id": self.tenant_id,
            "batch_id": batch_id,
            "total_segments": total,
            "privacy_score": batch.privacy_score,
            "obfuscation_level": decoy_count,
            "timing_jitter_applied": jitter,
        })

        return batch, segments
