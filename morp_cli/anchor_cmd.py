"""Anchor commands: root, path, verify."""
import json
import sys

import click

from morp.anchor import MerkleProof, build_path, build_root, leaf_hash, verify_path
from morp.core.errors import MorpError

from .common import fail
from .output import print_json, print_error, success_box


def _collect(items_file: str | None, data: tuple) -> list[str]:
    """Leaf hashes for JSONL file lines (parsed when JSON) and inline items."""
    items = []
    if items_file:
        with open(items_file) as f:
            for line in f:
                if line.strip():
                    try:
                        items.append(json.loads(line))
                    except json.JSONDecodeError:
                        items.append(line.strip())
    items.extend(data)
    return [leaf_hash(item) for item in items]


@click.group()
def anchor():
    """Merkle anchoring operations."""
    pass


@anchor.command()
@click.option('--items', type=click.Path(exists=True), help='JSONL file of items')
@click.argument('data', nargs=-1)
def root(items: str | None, data: tuple):
    """Compute the Merkle root of items."""
    leaves = _collect(items, data)
    success_box("Merkle Root", [
        ("Items", str(len(leaves))),
        ("Root", build_root(leaves)),
    ])


@anchor.command()
@click.option('--items', type=click.Path(exists=True), help='JSONL file of items')
@click.option('--index', '-n', required=True, type=int, help='Leaf index')
@click.argument('data', nargs=-1)
def path(items: str | None, index: int, data: tuple):
    """Print the inclusion path for the item at INDEX as JSON."""
    try:
        proof = build_path(_collect(items, data), index)
    except MorpError as e:
        fail("Path", e)
    print_json(proof.to_dict())


@anchor.command()
@click.argument('proof_file', type=click.Path(exists=True))
def verify(proof_file: str):
    """Verify an inclusion path JSON file produced by `morp anchor path`."""
    with open(proof_file) as f:
        data = json.load(f)
    try:
        proof = MerkleProof.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise click.BadParameter(f"not an inclusion path: {e}", param_hint="PROOF_FILE")

    if verify_path(proof):
        success_box("Path Valid", [("Root", proof.root)])
        sys.exit(0)
    print_error("Inclusion path does not reach its root")
    sys.exit(1)
