"""Proof commands: generate, verify, encode, decode, aggregate, revoke."""
import dataclasses
import json
import sys

import click

from morp.core.constants import PROOF_TYPES
from morp.core.errors import MorpError
from morp.proof import Proof

from .common import fail, get_service, parse_json_option
from .output import print_json, success_box


@click.group()
def proof():
    """Commitment proof operations."""
    pass


@proof.command()
@click.argument('proof_type', type=click.Choice([t for t in PROOF_TYPES if t != "aggregated"]))
@click.option('--wallet', '-w', required=True, help='Wallet address')
@click.option('--inputs', '-i', help='Private inputs as a JSON object')
@click.option('--thresholds', '-t', help='Public thresholds as a JSON object')
@click.option('--json', 'as_json', is_flag=True, help='Print the stored record as JSON')
@click.pass_context
def generate(ctx, proof_type: str, wallet: str, inputs: str | None, thresholds: str | None, as_json: bool):
    """Generate and store a proof.

    PROOF_TYPE: balance, range, transaction, identity, ownership, merkle, signature
    """
    private_inputs = parse_json_option(inputs, "--inputs")
    public_thresholds = parse_json_option(thresholds, "--thresholds")
    try:
        record = get_service(ctx).generate_proof(proof_type, wallet, private_inputs, public_thresholds)
    except MorpError as e:
        fail("Generate", e)

    if as_json:
        print_json(record.to_dict())
    else:
        success_box("Proof Generated", [
            ("ID", record.id),
            ("Type", record.proof.proof_type),
            ("Commitment", record.proof.commitment),
            ("Nullifier", record.proof.nullifier),
            ("Verified", str(record.proof.verified)),
            ("Expires", record.proof.metadata.expires_at),
        ], f"morp proof verify {record.id}")


@proof.command()
@click.argument('proof_id')
@click.pass_context
def verify(ctx, proof_id: str):
    """Verify a stored proof from its compressed data.

    Exits 0 when valid, 1 when rejected.
    """
    try:
        result = get_service(ctx).verify_stored(proof_id)
    except MorpError as e:
        fail("Verify", e)

    print_json(result.to_dict())
    sys.exit(0 if result.valid else 1)


@proof.command()
@click.argument('proof_file', type=click.Path(exists=True))
@click.pass_context
def encode(ctx, proof_file: str):
    """Encode a full proof JSON file into compressed form.

    PROOF_FILE: JSON proof including its blinding_factor
    """
    with open(proof_file) as f:
        data = json.load(f)
    try:
        click.echo(get_service(ctx).encode_proof(Proof.from_dict(data)))
    except (KeyError, TypeError, ValueError) as e:
        raise click.BadParameter(f"not a proof: {e}", param_hint="PROOF_FILE")


@proof.command()
@click.argument('compressed')
@click.option('--show-blinding', is_flag=True, help='Include the decrypted blinding factor')
@click.pass_context
def decode(ctx, compressed: str, show_blinding: bool):
    """Decode a compressed proof and check its authentication tag."""
    try:
        decoded = get_service(ctx).decode_proof(compressed)
    except MorpError as e:
        fail("Decode", e)

    data = dataclasses.asdict(decoded)
    if not show_blinding:
        data["blinding_factor"] = "<redacted>" if decoded.blinding_factor else None
    print_json(data)


@proof.command()
@click.argument('proof_ids', nargs=-1, required=True)
@click.option('--wallet', '-w', help='Store the aggregate as a proof for this wallet')
@click.pass_context
def aggregate(ctx, proof_ids: tuple, wallet: str | None):
    """Aggregate stored proofs into one batch commitment."""
    try:
        service = get_service(ctx)
        proofs = [service.load_proof(pid) for pid in proof_ids]
        if wallet:
            record = service.generate_aggregated_proof(wallet, proofs)
            success_box("Aggregated Proof Stored", [
                ("ID", record.id),
                ("Count", str(len(proofs))),
                ("Verified", str(record.proof.verified)),
            ], f"morp proof verify {record.id}")
            return
        agg = service.aggregate_proofs(proofs)
    except MorpError as e:
        fail("Aggregate", e)

    print_json({
        "count": len(agg.proofs),
        "aggregate_commitment": agg.aggregate_commitment,
        "aggregate_nullifier": agg.aggregate_nullifier,
        "batch_root": agg.batch_root,
        "verified": agg.verified,
    })


@proof.command()
@click.argument('proof_id')
@click.pass_context
def revoke(ctx, proof_id: str):
    """Revoke a stored proof. Terminal."""
    try:
        record = get_service(ctx).revoke_proof(proof_id)
    except MorpError as e:
        fail("Revoke", e)

    success_box("Proof Revoked", [
        ("ID", record.id),
        ("Revoked at", record.revoked_at),
    ])
