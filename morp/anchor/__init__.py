"""Anchor subpackage for Merkle construction and verification."""
from .merkle import EMPTY_ROOT, MerkleProof, build_path, build_root, leaf_hash
from .verify import verify_inclusion, verify_path

__all__ = [
    "build_root",
    "build_path",
    "verify_path",
    "verify_inclusion",
    "leaf_hash",
    "MerkleProof",
    "EMPTY_ROOT",
]
