"""Merkle path verification."""
from .merkle import MerkleProof, hash_pair


def verify_path(proof: MerkleProof) -> bool:
    """Replay the hash chain from proof.leaf and compare to proof.root.

    Args:
        proof: MerkleProof with leaf, path, indices, root

    Returns:
        True if the path reproduces the root
    """
    if len(proof.path) != len(proof.indices):
        return False

    current = proof.leaf
    for sibling, position in zip(proof.path, proof.indices):
        if position == 0:
            # We're on left, sibling on right
            current = hash_pair(current, sibling)
        elif position == 1:
            current = hash_pair(sibling, current)
        else:
            return False

    return current == proof.root


def verify_inclusion(leaf: str, proof: MerkleProof, root: str) -> bool:
    """Verify leaf is included under an externally trusted root."""
    if leaf != proof.leaf or root != proof.root:
        return False
    return verify_path(proof)
