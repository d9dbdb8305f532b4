"""Stealth payment commitments.

commitment = SHA256(amount || secret || salt), where the amount is floored to
the 6-decimal grid first so creation and claim agree regardless of float
noise. The amount is never stored; the recipient proves knowledge of
(amount, secret, salt) to claim.

Usage:
    data = generate_zk_commitment_data(1.5)
    share = format_zk_claim_data("CODE1", 1.5, data["secret"], "SOL")
    parsed = parse_zk_claim_data(share)
    verify_zk_commitment(data["commitment"], parsed["amount"], parsed["secret"], data["salt"])
"""
import hmac
import json
import secrets
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Optional

from ..core.constants import AMOUNT_DECIMALS, STEALTH_SALT_BYTES, STEALTH_SECRET_BYTES
from ..core.errors import InvalidAmount
from ..core.receipt import sha256_hex

_GRID = Decimal(1).scaleb(-AMOUNT_DECIMALS)


def normalize_amount(amount: float | int | str | Decimal) -> str:
    """Floor amount to the fixed decimal grid and render without trailing zeros.

    1.23456789 -> "1.234567", 2.0 -> "2".
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise InvalidAmount(f"Not a number: {amount!r}") from e
    if not value.is_finite():
        raise InvalidAmount(f"Not a finite amount: {amount!r}")
    floored = value.quantize(_GRID, rounding=ROUND_FLOOR)
    text = format(floored.normalize(), "f")
    return "0" if text in ("-0", "") else text


def generate_zk_secret() -> str:
    return secrets.token_hex(STEALTH_SECRET_BYTES)


def generate_zk_salt() -> str:
    return secrets.token_hex(STEALTH_SALT_BYTES)


def create_zk_commitment(amount: float, secret: str, salt: str) -> str:
    """Commit to amount under (secret, salt)."""
    return sha256_hex(f"{normalize_amount(amount)}:{secret}:{salt}")


def verify_zk_commitment(commitment: str, amount: float, secret: str, salt: str) -> bool:
    """True if (amount, secret, salt) opens commitment."""
    return hmac.compare_digest(create_zk_commitment(amount, secret, salt).encode(), commitment.encode())


def generate_zk_commitment_data(amount: float) -> dict:
    """Fresh secret and salt plus the resulting commitment for a new payment."""
    secret = generate_zk_secret()
    salt = generate_zk_salt()
    return {
        "commitment": create_zk_commitment(amount, secret, salt),
        "secret": secret,
        "salt": salt,
        "amount": amount,
    }


def format_zk_claim_data(claim_code: str, amount: float, secret: str, token_symbol: str) -> str:
    """Shareable claim string the sender passes to the recipient off-chain."""
    return json.dumps({
        "code": claim_code,
        "amount": amount,
        "secret": secret,
        "token": token_symbol,
    })


def parse_zk_claim_data(data: str) -> Optional[dict]:
    """Parse a shareable claim string. Returns None if malformed."""
    try:
        parsed = json.loads(data)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(parsed, dict):
        return None
    amount = parsed.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return None
    if not (parsed.get("code") and parsed.get("secret") and parsed.get("token")):
        return None
    return parsed


def generate_claim_nullifier(commitment: str, claimer_wallet: str) -> str:
    """Nullifier revealed when a stealth payment is claimed."""
    return sha256_hex(f"{commitment}:{claimer_wallet}")
