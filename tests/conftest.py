"""Test configuration and fixtures for the MORP core.

Fixtures: a deterministic test secret, config and keyring, in-memory and
ledger-backed services, and a fixed clock for expiry tests.
"""
import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from morp.config import MorpConfig
from morp.core.keys import KeyRing
from morp.service import MorpService

TEST_SECRET = "test-master-secret-do-not-use-in-production"
WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


@pytest.fixture(autouse=True)
def quiet_receipts(monkeypatch):
    """Keep receipt JSON off stdout so CLI output stays parseable."""
    monkeypatch.setenv("MORP_QUIET_RECEIPTS", "true")


@pytest.fixture
def config() -> MorpConfig:
    """In-memory config with a fixed secret."""
    return MorpConfig(master_secret=TEST_SECRET)


@pytest.fixture
def keyring(config: MorpConfig) -> KeyRing:
    return KeyRing.from_config(config)


@pytest.fixture
def service(config: MorpConfig) -> MorpService:
    """In-memory service with a no-op sleep and a transfer that always succeeds."""
    return MorpService(config, transfer=lambda batch, seg: f"sig-{seg.segment_index}",
                       sleep=lambda seconds: None)


@pytest.fixture
def ledger_config(tmp_path) -> MorpConfig:
    """Config persisting under a temporary ledger directory."""
    return MorpConfig(master_secret=TEST_SECRET, ledger_dir=str(tmp_path / "ledger"))


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
