"""Core receipt and hash primitives shared by every MORP module.

Functions:
    sha256_hex: SHA256 hex digest of bytes, str, or dict
    sha512_hex: SHA512 hex digest of bytes, str, or dict
    hmac256_hex: HMAC-SHA256 hex digest
    emit_receipt: Emit receipt with required fields to stdout
"""
import hashlib
import hmac
import json
import os
from datetime import datetime, timezone


def _to_bytes(data: bytes | str | dict) -> bytes:
    if isinstance(data, dict):
        data = json.dumps(data, sort_keys=True, separators=(",", ":"))
    if isinstance(data, str):
        data = data.encode("utf-8")
    return data


def sha256_hex(data: bytes | str | dict) -> str:
    """Compute SHA256 hex digest.

    Dicts are serialized as canonical JSON (sorted keys, compact separators).
    Pure function with no side effects.
    """
    return hashlib.sha256(_to_bytes(data)).hexdigest()


def sha512_hex(data: bytes | str | dict) -> str:
    """Compute SHA512 hex digest."""
    return hashlib.sha512(_to_bytes(data)).hexdigest()


def hmac256(key: bytes, data: bytes | str | dict) -> bytes:
    """Compute raw HMAC-SHA256."""
    return hmac.new(key, _to_bytes(data), hashlib.sha256).digest()


def hmac256_hex(key: bytes, data: bytes | str | dict) -> str:
    """Compute HMAC-SHA256 hex digest."""
    return hmac.new(key, _to_bytes(data), hashlib.sha256).hexdigest()


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def emit_receipt(receipt_type: str, data: dict, tenant_id: str = "default") -> dict:
    """Emit a receipt with standard required fields.

    Prints JSON to stdout with flush=True unless MORP_QUIET_RECEIPTS is set.
    Callers must never place blinding factors, secrets, or real amounts in data.

    Args:
        receipt_type: Type of receipt (proof_generated, route_planned, anomaly, ...)
        data: Receipt payload data
        tenant_id: Tenant identifier (default: "default")

    Returns:
        Complete receipt dict with receipt_type, ts, tenant_id, payload_hash
    """
    tenant_id = data.get("tenant_id", tenant_id)

    payload_bytes = json.dumps(data, sort_keys=True).encode("utf-8")
    payload_hash = sha256_hex(payload_bytes)

    receipt = {
        "receipt_type": receipt_type,
        "ts": utc_now_iso(),
        "tenant_id": tenant_id,
        "payload_hash": payload_hash,
        **data
    }

    if os.environ.get("MORP_QUIET_RECEIPTS", "").lower() != "true":
        print(json.dumps(receipt, sort_keys=True), flush=True)

    return receipt


def emit_anomaly(metric: str, classification: str, action: str,
                 tenant_id: str = "default", **extra) -> dict:
    """Emit an anomaly receipt for a rejected or failed operation."""
    return emit_receipt("anomaly", {
        "tenant_id": tenant_id,
        "metric": metric,
        "classification": classification,
        "action": action,
        **extra,
    })
