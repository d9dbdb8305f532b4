"""Route commands: plan, execute, cancel, show, profile."""
import sys

import click

from morp.core.errors import MorpError
from morp.core.receipt import sha256_hex
from morp.route import PrivacyProfile

from .common import fail, get_service
from .output import print_json, success_box, table


def _simulated_transfer(batch, segment) -> str:
    return "sim_" + sha256_hex(f"{batch.id}:{segment.commitment}")[:44]


@click.group()
def route():
    """Private routing operations."""
    pass


@route.command()
@click.option('--wallet', '-w', required=True, help='Wallet address')
@click.option('--from', 'input_token', required=True, help='Input token')
@click.option('--to', 'output_token', required=True, help='Output token')
@click.option('--amount', '-a', required=True, type=float, help='Amount to route')
@click.option('--decoys/--no-decoys', 'enable_decoys', default=None, help='Add decoy segments')
@click.option('--decoy-count', type=int, help='Number of decoys')
@click.option('--jitter/--no-jitter', 'enable_timing_jitter', default=None, help='Randomize segment timing')
@click.option('--split/--no-split', 'enable_splitting', default=None, help='Split large amounts')
@click.option('--split-threshold', type=float, help='Amount above which to split')
@click.option('--max-split-parts', type=int, help='Upper bound on split parts')
@click.pass_context
def plan(ctx, wallet, input_token, output_token, amount, **options):
    """Plan a routing batch with decoys and timing jitter."""
    try:
        batch, _ = get_service(ctx).plan_route(wallet, input_token, output_token, amount, options)
    except MorpError as e:
        fail("Plan", e)

    success_box("Route Scheduled", [
        ("Batch", batch.id),
        ("Segments", str(batch.total_segments)),
        ("Decoys", str(batch.obfuscation_level)),
        ("Privacy score", f"{batch.privacy_score}/100"),
        ("Jitter", str(batch.timing_jitter_applied)),
    ], f"morp route execute {batch.id}")


@route.command()
@click.argument('batch_id')
@click.option('--simulate', is_flag=True, help='Complete real segments with synthetic signatures')
@click.pass_context
def execute(ctx, batch_id: str, simulate: bool):
    """Execute a scheduled batch.

    Without --simulate no transfer executor is configured and real segments fail.
    """
    try:
        service = get_service(ctx, transfer=_simulated_transfer if simulate else None)
        result = service.execute_route(batch_id)
    except MorpError as e:
        fail("Execute", e)

    print_json(result)
    sys.exit(0 if result["status"] == "completed" else 1)


@route.command()
@click.argument('batch_id')
@click.pass_context
def cancel(ctx, batch_id: str):
    """Cancel a batch that has not started executing."""
    try:
        batch = get_service(ctx).cancel_route(batch_id)
    except MorpError as e:
        fail("Cancel", e)

    success_box("Route Cancelled", [("Batch", batch.id), ("Status", batch.status)])


@route.command()
@click.argument('batch_id')
@click.pass_context
def show(ctx, batch_id: str):
    """Show a batch and its segments. Decoys show no amount."""
    try:
        batch, segments = get_service(ctx).get_route(batch_id)
    except MorpError as e:
        fail("Show", e)

    print_json(batch.public_view())
    table(
        ["#", "type", "status", "amount", "delay_ms"],
        [[str(s.segment_index), s.segment_type, s.status,
          "-" if s.amount is None else f"{s.amount:g}", str(s.delay_applied_ms)]
         for s in segments],
    )


@route.command()
@click.option('--wallet', '-w', required=True, help='Wallet address')
@click.option('--decoys/--no-decoys', 'enable_decoys', default=True)
@click.option('--decoy-count', type=int, default=PrivacyProfile.decoy_count)
@click.option('--jitter/--no-jitter', 'enable_timing_jitter', default=True)
@click.option('--split/--no-split', 'enable_splitting', default=False)
@click.option('--split-threshold', type=float, default=PrivacyProfile.split_threshold)
@click.option('--max-split-parts', type=int, default=PrivacyProfile.max_split_parts)
@click.option('--min-delay-ms', type=int, default=PrivacyProfile.min_delay_ms)
@click.option('--max-delay-ms', type=int, default=PrivacyProfile.max_delay_ms)
@click.pass_context
def profile(ctx, wallet, **settings):
    """Store a wallet's default privacy profile."""
    saved = get_service(ctx).set_privacy_profile(wallet, PrivacyProfile(**settings))
    print_json({"wallet_address": wallet, **saved.to_dict()})
