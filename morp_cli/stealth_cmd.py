"""Stealth commands: commit, verify, nullifier."""
import sys

import click

from morp.commit.stealth import generate_claim_nullifier, generate_zk_commitment_data, verify_zk_commitment
from morp.core.errors import MorpError

from .common import fail
from .output import print_json, print_error, success_box


@click.group()
def stealth():
    """Stealth payment commitments."""
    pass


@stealth.command()
@click.argument('amount', type=float)
def commit(amount: float):
    """Create a stealth commitment with a fresh secret and salt.

    Share the secret and salt with the recipient only.
    """
    try:
        print_json(generate_zk_commitment_data(amount))
    except MorpError as e:
        fail("Commit", e)


@stealth.command()
@click.argument('commitment')
@click.argument('amount', type=float)
@click.argument('secret')
@click.argument('salt')
def verify(commitment: str, amount: float, secret: str, salt: str):
    """Check that (AMOUNT, SECRET, SALT) opens COMMITMENT."""
    try:
        valid = verify_zk_commitment(commitment, amount, secret, salt)
    except MorpError as e:
        fail("Verify", e)

    if valid:
        success_box("Commitment Opens", [("Commitment", commitment)])
        sys.exit(0)
    print_error("Commitment does not open with the given amount, secret and salt")
    sys.exit(1)


@stealth.command()
@click.argument('commitment')
@click.argument('wallet')
def nullifier(commitment: str, wallet: str):
    """Nullifier revealed when WALLET claims COMMITMENT."""
    click.echo(generate_claim_nullifier(commitment, wallet))
