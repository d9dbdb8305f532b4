"""Routing batch execution state machine.

    planning -> scheduled -> executing -> completed | failed
    planning | scheduled -> cancelled

Segments run serially in segment_index order. Real and split segments go
through the injected transfer callable after their jitter delay; decoys
complete synthetically and never touch it. A transfer failure is recorded on
the segment and fails the batch. Nothing retries.
"""
import logging
import time
from typing import Callable

from ..core import constants
from ..core.errors import NotCancellable, NotScheduled
from ..core.receipt import emit_anomaly, emit_receipt, utc_now_iso
from .schemas import RoutingBatch, RoutingSegment

logger = logging.getLogger("morp.route")

Transfer = Callable[[RoutingBatch, RoutingSegment], str]


class RouteExecutor:
    """Runs scheduled batches against an injected transfer callable.

    Args:
        store: RouteStore holding batches and segments
        transfer: Called as transfer(batch, segment) for real segments;
            returns the transaction signature, raises on failure
        sleep: Seconds-based sleep, swapped out in tests
        decoy_delay_ms: Synthetic completion delay for decoys
    """

    def __init__(
        self,
        store,
        transfer: Transfer,
        sleep: Callable[[float], None] = time.sleep,
        decoy_delay_ms: int = constants.DECOY_COMPLETION_DELAY_MS,
        tenant_id: str = "default",
    ):
        self.store = store
        self.transfer = transfer
        self.sleep = sleep
        self.decoy_delay_ms = decoy_delay_ms
        self.tenant_id = tenant_id

    def execute(self, batch_id: str) -> dict:
        """Execute a scheduled batch.

        Returns:
            {batch_id, status, completed_segments, failed_segments, total_segments}

        Raises:
            NotFound: Unknown batch
            NotScheduled: Batch is not in "scheduled"
        """
        batch = self.store.transition(batch_id, ("scheduled",), "executing")
        if batch is None:
            current = self.store.get_batch(batch_id).status
            emit_anomaly("route_state", "violation", "reject",
                         tenant_id=self.tenant_id, batch_id=batch_id, status=current)
            raise NotScheduled(f"Batch {batch_id} is {current}, not scheduled")

        segments = self.store.get_segments(batch_id)
        for segment in segments:
            self._run_segment(batch, segment)
            if segment.status == "completed":
                batch.completed_segments += 1
            elif segment.status == "failed":
                batch.failed_segments += 1
            self.store.save(batch, segments)

        batch.status = "failed" if batch.failed_segments else "completed"
        self.store.save(batch, segments)
        logger.info("batch %s %s (%d/%d completed)", batch_id, batch.status,
                    batch.completed_segments, batch.total_segments)

        result = {
            "batch_id": batch_id,
            "status": batch.status,
            "completed_segments": batch.completed_segments,
            "failed_segments": batch.failed_segments,
            "total_segments": batch.total_segments,
        }
        emit_receipt("route_executed", {"tenant_id": self.tenant_id, **result})
        return result

    def _run_segment(self, batch: RoutingBatch, segment: RoutingSegment) -> None:
        segment.status = "executing"
        if segment.is_decoy:
            self.sleep(self.decoy_delay_ms / 1000)
            segment.status = "completed"
        else:
            self.sleep(segment.delay_applied_ms / 1000)
            try:
                segment.tx_signature = self.transfer(batch, segment)
                segment.status = "completed"
            except Exception as e:
                # Recorded on the segment; the batch fails at the end
                segment.status = "failed"
                segment.error = str(e) or type(e).__name__
                logger.warning("segment %d of batch %s failed: %s",
                               segment.segment_index, batch.id, segment.error)
                emit_anomaly("segment_transfer", "failure", "fail_batch",
                             tenant_id=self.tenant_id, batch_id=batch.id,
                             segment_index=segment.segment_index)
        segment.executed_at = utc_now_iso()

        # Decoy and real receipts are shaped alike
        emit_receipt("segment_executed", {
            "tenant_id": self.tenant_id,
            "batch_id": batch.id,
            "segment_index": segment.segment_index,
            "commitment": segment.commitment,
            "status": segment.status,
        })

    def cancel(self, batch_id: str) -> RoutingBatch:
        """Cancel a batch that has not started executing.

        Raises:
            NotFound: Unknown batch
            NotCancellable: Batch is executing or terminal
        """
        batch = self.store.transition(batch_id, constants.CANCELLABLE_STATUSES, "cancelled")
        if batch is None:
            current = self.store.get_batch(batch_id).status
            emit_anomaly("route_state", "violation", "reject",
                         tenant_id=self.tenant_id, batch_id=batch_id, status=current)
            raise NotCancellable(f"Batch {batch_id} is {current} and cannot be cancelled")

        segments = self.store.get_segments(batch_id)
        for segment in segments:
            if segment.status == "pending":
                segment.status = "skipped"
        self.store.save(batch, segments)

        emit_receipt("route_cancelled", {
            "tenant_id": self.tenant_id,
            "batch_id": batch_id,
            "skipped_segments": sum(1 for s in segments if s.status == "skipped"),
        })
        return batch
