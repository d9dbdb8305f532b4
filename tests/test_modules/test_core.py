"""Unit tests for core and config modules.

Functions tested: emit_receipt, emit_anomaly, KeyRing, MorpConfig.from_env,
MorpConfig.validate
SLO: a missing master secret is fatal at construction
"""
import json

import pytest

from morp.config import MorpConfig
from morp.core.errors import ConfigurationError, DuplicateNullifier, InvalidAmount, ValidationError
from morp.core.keys import KeyRing
from morp.core.receipt import emit_anomaly, emit_receipt, sha256_hex
from morp.service import MorpService

from conftest import TEST_SECRET, WALLET


class TestReceipts:
    """Tests for receipt emission."""

    def test_required_fields(self):
        receipt = emit_receipt("proof_generated", {"proof_id": "p1"})

        for field in ("receipt_type", "ts", "tenant_id", "payload_hash"):
            assert field in receipt, f"Receipt missing {field}"
        assert receipt["tenant_id"] == "default"
        assert receipt["ts"].endswith("Z")

    def test_payload_hash(self):
        data = {"b": 2, "a": 1}

        receipt = emit_receipt("aggregate", data)

        assert receipt["payload_hash"] == sha256_hex(json.dumps(data, sort_keys=True).encode())

    def test_tenant_from_data(self):
        assert emit_receipt("x", {"tenant_id": "acme"})["tenant_id"] == "acme"

    def test_quiet_suppresses_stdout(self, capsys):
        emit_receipt("x", {"k": "v"})

        assert capsys.readouterr().out == ""

    def test_prints_json_line(self, monkeypatch, capsys):
        monkeypatch.delenv("MORP_QUIET_RECEIPTS")

        emit_anomaly("route_amount", "violation", "reject")

        printed = json.loads(capsys.readouterr().out)
        assert printed["receipt_type"] == "anomaly"
        assert printed["metric"] == "route_amount"


class TestKeyRing:
    """Tests for key derivation."""

    def test_empty_secret_fatal(self):
        with pytest.raises(ConfigurationError):
            KeyRing("")

    def test_wallet_keys_differ(self, keyring: KeyRing):
        assert keyring.wallet_key("a") != keyring.wallet_key("b")
        assert keyring.wallet_key("a") == keyring.wallet_key("a")
        assert len(keyring.wallet_key("a")) == 32

    def test_encryption_key(self, keyring: KeyRing):
        assert len(keyring.encryption_key) == 32
        assert keyring.encryption_key != KeyRing("other").encryption_key

    def test_repr_redacted(self, keyring: KeyRing):
        assert TEST_SECRET not in repr(keyring)


class TestConfig:
    """Tests for environment configuration."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MORP_MASTER_SECRET", "s3cret")
        monkeypatch.setenv("MORP_ENABLE_DECOYS", "false")
        monkeypatch.setenv("MORP_DECOY_COUNT", "5")
        monkeypatch.setenv("MORP_SPLIT_THRESHOLD", "250.5")
        monkeypatch.setenv("MORP_LEDGER_DIR", "/tmp/morp-test")

        config = MorpConfig.from_env()

        assert config.master_secret == "s3cret"
        assert config.enable_decoys is False
        assert config.decoy_count == 5
        assert config.split_threshold == 250.5
        assert config.ledger_dir == "/tmp/morp-test"

    def test_session_secret_fallback(self, monkeypatch):
        monkeypatch.delenv("MORP_MASTER_SECRET", raising=False)
        monkeypatch.setenv("SESSION_SECRET", "session")

        assert MorpConfig.from_env().master_secret == "session"

    def test_validate(self):
        assert MorpConfig(master_secret="x").validate() == []
        errors = MorpConfig(decoy_count=99, min_delay_ms=10, max_delay_ms=5).validate()
        assert len(errors) == 3

    def test_secret_not_in_repr(self):
        assert "hunter2" not in repr(MorpConfig(master_secret="hunter2"))

    def test_service_refuses_missing_secret(self):
        with pytest.raises(ConfigurationError):
            MorpService(MorpConfig())


class TestErrors:
    """Tests for the error taxonomy."""

    def test_validation_is_value_error(self):
        assert issubclass(InvalidAmount, ValidationError)
        assert issubclass(ValidationError, ValueError)

    def test_duplicate_carries_existing_id(self):
        err = DuplicateNullifier("ab" * 32, existing_id="p1")

        assert err.existing_id == "p1"
        assert err.nullifier == "ab" * 32
        assert WALLET not in str(err)
