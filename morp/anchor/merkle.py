"""Merkle tree construction over hex-digest leaves.

Leaves are hex strings (already hashed). Odd levels duplicate their last node;
parents are SHA256(left + right) over the hex text. An empty set has root
SHA256("empty"); a single leaf is its own root with an empty path.
"""
import json
from dataclasses import asdict, dataclass, field

from ..core.errors import ValidationError
from ..core.receipt import sha256_hex

EMPTY_ROOT = sha256_hex(b"empty")


@dataclass
class MerkleProof:
    """Inclusion path for one leaf.

    Attributes:
        leaf: Leaf digest being proven
        path: Sibling digests from leaf level upward
        indices: 0 if the running node is on the left at that level, 1 if right
        root: Root the path must reproduce
    """
    leaf: str
    path: list[str] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    root: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "MerkleProof":
        return cls(
            leaf=data["leaf"],
            path=list(data.get("path", [])),
            indices=[int(i) for i in data.get("indices", [])],
            root=data.get("root", ""),
        )


def leaf_hash(item: bytes | str | dict) -> str:
    """Hash an item into a leaf. Dicts use sorted-key JSON like receipts do."""
    if isinstance(item, dict):
        item = json.dumps(item, sort_keys=True)
    return sha256_hex(item)


def hash_pair(left: str, right: str) -> str:
    return sha256_hex((left + right).encode("utf-8"))


def _build_levels(leaves: list[str]) -> list[list[str]]:
    """All tree levels from leaves to root, before odd-padding."""
    levels = [leaves[:]]
    current = leaves[:]

    while len(current) > 1:
        # Duplicate last if odd
        if len(current) % 2 == 1:
            current.append(current[-1])

        new_level = []
        for i in range(0, len(current), 2):
            new_level.append(hash_pair(current[i], current[i + 1]))
        current = new_level
        levels.append(current[:])

    return levels


def build_root(leaves: list[str]) -> str:
    """Compute Merkle root from leaf digests.

    Args:
        leaves: List of hex leaf digests

    Returns:
        Merkle root as hex string
    """
    if not leaves:
        return EMPTY_ROOT
    return _build_levels(leaves)[-1][0]


def build_path(leaves: list[str], index: int) -> MerkleProof:
    """Generate the inclusion path for leaves[index].

    Raises:
        ValidationError: If index is out of range
    """
    if index < 0 or index >= len(leaves):
        raise ValidationError(f"Leaf index {index} out of range for {len(leaves)} leaves")

    levels = _build_levels(leaves)
    idx = index
    path = []
    indices = []

    for level in levels[:-1]:  # All levels except root
        level_copy = level[:]
        if len(level_copy) % 2 == 1:
            level_copy.append(level_copy[-1])

        sibling_idx = idx ^ 1
        path.append(level_copy[sibling_idx])
        indices.append(idx % 2)

        idx //= 2

    return MerkleProof(
        leaf=leaves[index],
        path=path,
        indices=indices,
        root=levels[-1][0],
    )
