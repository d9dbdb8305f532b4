"""MORP CLI entry point - assembles all command groups."""
import click

from . import __version__
from .anchor_cmd import anchor
from .proof_cmd import proof
from .route_cmd import route
from .stealth_cmd import stealth


@click.group()
@click.version_option(version=__version__)
@click.option('--ledger-dir', envvar='MORP_LEDGER_DIR', type=click.Path(file_okay=False),
              help='Directory for JSONL ledgers (default: .morp)')
@click.pass_context
def cli(ctx, ledger_dir: str | None):
    """MORP: commitments, nullifiers and private routing."""
    ctx.ensure_object(dict)
    ctx.obj["ledger_dir"] = ledger_dir


cli.add_command(proof)
cli.add_command(route)
cli.add_command(stealth)
cli.add_command(anchor)


if __name__ == "__main__":
    cli()
