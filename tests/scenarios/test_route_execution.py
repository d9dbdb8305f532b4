"""ROUTE EXECUTION scenario: plan, execute, fail, cancel.

Pass criteria:
- Segments run in segment_index order; decoys never reach the transfer
- One failed transfer fails the batch; nothing retries
- Cancel only from planning/scheduled; pending segments become skipped
- Services sharing a ledger cannot both start the same batch
"""
import threading

import pytest

from morp.config import MorpConfig
from morp.core.errors import ExecutionError, NotCancellable, NotFound, NotScheduled
from morp.service import MorpService

from conftest import TEST_SECRET, WALLET

NO_JITTER = {"enable_timing_jitter": False, "decoy_count": 2}


class Recorder:
    """Transfer stand-in that records calls and can fail on chosen calls."""

    def __init__(self, fail_on: set[int] = frozenset()):
        self.calls = []
        self.fail_on = fail_on

    def __call__(self, batch, segment) -> str:
        self.calls.append(segment.segment_index)
        if len(self.calls) in self.fail_on:
            raise ExecutionError("rpc timeout")
        return f"tx-{segment.segment_index}"


def _service(config: MorpConfig, transfer, sleeps: list | None = None) -> MorpService:
    record = sleeps.append if sleeps is not None else (lambda s: None)
    return MorpService(config, transfer=transfer, sleep=record)


class TestExecuteSuccess:
    """Happy path."""

    def test_completes_all_segments(self, config):
        transfer = Recorder()
        service = _service(config, transfer)
        batch, segments = service.plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)

        result = service.execute_route(batch.id)

        assert result["status"] == "completed"
        assert result["completed_segments"] == 3
        assert result["failed_segments"] == 0
        real = [s for s in segments if not s.is_decoy]
        assert transfer.calls == [real[0].segment_index], "Decoys must not reach transfer"

        stored, stored_segments = service.get_route(batch.id)
        assert stored.status == "completed"
        assert all(s.status == "completed" and s.executed_at for s in stored_segments)
        assert [s.tx_signature for s in stored_segments if not s.is_decoy] == [f"tx-{real[0].segment_index}"]
        assert all(s.tx_signature is None for s in stored_segments if s.is_decoy)

    def test_index_order_and_delays(self, config):
        sleeps = []
        transfer = Recorder()
        service = _service(config, transfer, sleeps)
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 2000, {
            "enable_splitting": True, "split_threshold": 500, "max_split_parts": 4,
            "min_delay_ms": 100, "max_delay_ms": 300, "decoy_count": 3})

        service.execute_route(batch.id)

        assert transfer.calls == sorted(transfer.calls)
        assert len(transfer.calls) == 4
        _, segments = service.get_route(batch.id)
        expected = [0.1 if s.is_decoy else s.delay_applied_ms / 1000 for s in segments]
        assert sleeps == pytest.approx(expected)

    def test_execute_twice_rejected(self, service: MorpService):
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        service.execute_route(batch.id)

        with pytest.raises(NotScheduled):
            service.execute_route(batch.id)


class TestExecuteFailure:
    """A failed transfer fails the batch."""

    def test_failed_segment_fails_batch(self, config):
        transfer = Recorder(fail_on={1})
        service = _service(config, transfer)
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 1000, {
            "enable_splitting": True, "split_threshold": 500, "max_split_parts": 2,
            "enable_timing_jitter": False, "decoy_count": 1})

        result = service.execute_route(batch.id)

        assert result["status"] == "failed"
        assert result["failed_segments"] == 1
        assert result["completed_segments"] == 2
        assert len(transfer.calls) == 2, "No retry of the failed segment"
        _, segments = service.get_route(batch.id)
        failed = [s for s in segments if s.status == "failed"]
        assert len(failed) == 1
        assert failed[0].error == "rpc timeout"

    def test_no_transfer_configured(self, config):
        service = MorpService(config, sleep=lambda s: None)
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)

        result = service.execute_route(batch.id)

        assert result["status"] == "failed"
        assert result["completed_segments"] == 2

    def test_failed_batch_not_cancellable(self, config):
        service = _service(config, Recorder(fail_on={1}))
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        service.execute_route(batch.id)

        with pytest.raises(NotCancellable):
            service.cancel_route(batch.id)


class TestCancel:
    """Coarse-grained cancellation."""

    def test_cancel_scheduled(self, service: MorpService):
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)

        cancelled = service.cancel_route(batch.id)

        assert cancelled.status == "cancelled"
        _, segments = service.get_route(batch.id)
        assert all(s.status == "skipped" for s in segments)
        with pytest.raises(NotScheduled):
            service.execute_route(batch.id)

    def test_cancel_completed_rejected(self, service: MorpService):
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        service.execute_route(batch.id)

        with pytest.raises(NotCancellable):
            service.cancel_route(batch.id)

    def test_cancel_twice_rejected(self, service: MorpService):
        batch, _ = service.plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        service.cancel_route(batch.id)

        with pytest.raises(NotCancellable):
            service.cancel_route(batch.id)

    def test_unknown_batch(self, service: MorpService):
        with pytest.raises(NotFound):
            service.execute_route("missing")
        with pytest.raises(NotFound):
            service.cancel_route("missing")


class TestProfilesAndPersistence:
    """Stored profiles and restart."""

    def test_profile_applies_to_plan(self, service: MorpService):
        from morp.route import PrivacyProfile

        service.set_privacy_profile(WALLET, PrivacyProfile(decoy_count=6, enable_timing_jitter=False))

        batch, segments = service.plan_route(WALLET, "SOL", "USDC", 10)
        assert len(segments) == 7
        assert not batch.timing_jitter_applied

        _, overridden = service.plan_route(WALLET, "SOL", "USDC", 10, {"decoy_count": 1})
        assert len(overridden) == 2

    def test_execute_after_restart(self, tmp_path):
        config = MorpConfig(master_secret=TEST_SECRET, ledger_dir=str(tmp_path))
        batch, _ = _service(config, Recorder()).plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)

        restarted = _service(config, Recorder())
        result = restarted.execute_route(batch.id)

        assert result["status"] == "completed"
        assert _service(config, Recorder()).get_route(batch.id)[0].status == "completed"


class TestSharedLedger:
    """Status transitions hold across services sharing a ledger directory."""

    @pytest.fixture
    def shared(self, tmp_path) -> MorpConfig:
        return MorpConfig(master_secret=TEST_SECRET, ledger_dir=str(tmp_path))

    def test_second_service_cannot_execute(self, shared):
        batch, _ = _service(shared, Recorder()).plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        first_transfer, second_transfer = Recorder(), Recorder()
        first = _service(shared, first_transfer)
        second = _service(shared, second_transfer)

        first.execute_route(batch.id)

        with pytest.raises(NotScheduled):
            second.execute_route(batch.id)
        assert len(first_transfer.calls) == 1
        assert second_transfer.calls == []

    def test_concurrent_execute_one_runs(self, shared):
        batch, _ = _service(shared, Recorder()).plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        transfers = [Recorder() for _ in range(4)]
        services = [_service(shared, t) for t in transfers]
        barrier = threading.Barrier(len(services))
        outcomes = []
        lock = threading.Lock()

        def worker(service):
            barrier.wait()
            try:
                service.execute_route(batch.id)
                outcome = "ran"
            except NotScheduled:
                outcome = "rejected"
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker, args=(s,)) for s in services]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["ran", "rejected", "rejected", "rejected"]
        assert sum(len(t.calls) for t in transfers) == 1

    def test_stale_cancel_after_execute_rejected(self, shared):
        batch, _ = _service(shared, Recorder()).plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        stale = _service(shared, Recorder())
        _service(shared, Recorder()).execute_route(batch.id)

        with pytest.raises(NotCancellable):
            stale.cancel_route(batch.id)
        assert _service(shared, Recorder()).get_route(batch.id)[0].status == "completed"

    def test_stale_execute_after_cancel_rejected(self, shared):
        batch, _ = _service(shared, Recorder()).plan_route(WALLET, "SOL", "USDC", 10, NO_JITTER)
        transfer = Recorder()
        stale = _service(shared, transfer)
        _service(shared, Recorder()).cancel_route(batch.id)

        with pytest.raises(NotScheduled):
            stale.execute_route(batch.id)
        assert transfer.calls == []
