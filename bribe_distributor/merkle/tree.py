"""
Merkle tree over bytes32 leaves, compatible with OpenZeppelin's SimpleMerkleTree.

Layout ("simple-v1" dump format):
- leaves are sorted ascending and stored at the end of a flat array
  of 2n - 1 nodes, in reverse order
- node i has children 2i + 1 and 2i + 2; the root is node 0
- inner nodes hash their children in sorted order, so proofs need no
  left/right flags and verify with OpenZeppelin's MerkleProof library
"""

from typing import Any, Dict, List, Sequence, Union

from eth_utils import keccak
from hexbytes import HexBytes

DUMP_FORMAT = "simple-v1"

BytesLike = Union[bytes, str]


class LeafNotFoundError(KeyError):
    """Raised when a proof is requested for a leaf that is not in the tree."""


def _to_bytes32(value: BytesLike) -> bytes:
    data = bytes(HexBytes(value))
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}: {value!r}")
    return data


def _to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Commutative keccak256 of two nodes."""
    return keccak(b"".join(sorted((a, b))))


def _left_child(i: int) -> int:
    return 2 * i + 1


def _right_child(i: int) -> int:
    return 2 * i + 2


def _parent(i: int) -> int:
    return (i - 1) // 2


def _sibling(i: int) -> int:
    return i + 1 if i % 2 == 1 else i - 1


def process_proof(leaf: BytesLike, proof: Sequence[BytesLike]) -> bytes:
    """Fold a proof into the root it implies for ``leaf``."""
    node = _to_bytes32(leaf)
    for sibling in proof:
        node = hash_pair(node, _to_bytes32(sibling))
    return node


class SimpleMerkleTree:
    """Merkle tree whose leaves are already-hashed bytes32 values."""

    def __init__(self, tree: List[bytes], values: List[Dict[str, Any]]):
        self._tree = tree
        # (leaf value, index in the flat tree) in insertion order
        self._values = values
        self._index = {}
        for position, entry in enumerate(values):
            self._index.setdefault(entry["value"], position)

    @classmethod
    def of(cls, leaves: Sequence[BytesLike]) -> "SimpleMerkleTree":
        """Build a tree from bytes32 leaves."""
        if not leaves:
            raise ValueError("Expected non-zero number of leaves")

        hashed = [
            (_to_bytes32(leaf), value_index)
            for value_index, leaf in enumerate(leaves)
        ]
        hashed.sort(key=lambda item: item[0])

        size = 2 * len(hashed) - 1
        tree: List[bytes] = [b""] * size
        for leaf_index, (leaf, _) in enumerate(hashed):
            tree[size - 1 - leaf_index] = leaf
        for i in range(size - 1 - len(hashed), -1, -1):
            tree[i] = hash_pair(tree[_left_child(i)], tree[_right_child(i)])

        values: List[Dict[str, Any]] = [
            {"value": b"", "treeIndex": 0} for _ in hashed
        ]
        for leaf_index, (leaf, value_index) in enumerate(hashed):
            values[value_index] = {
                "value": leaf,
                "treeIndex": size - 1 - leaf_index,
            }

        return cls(tree, values)

    @classmethod
    def load(cls, data: Dict[str, Any]) -> "SimpleMerkleTree":
        """Load a tree from its ``dump()`` representation."""
        if data.get("format") != DUMP_FORMAT:
            raise ValueError(f"Unknown format '{data.get('format')}'")

        tree = [_to_bytes32(node) for node in data["tree"]]
        values = [
            {"value": _to_bytes32(v["value"]), "treeIndex": int(v["treeIndex"])}
            for v in data["values"]
        ]
        loaded = cls(tree, values)
        loaded.validate()
        return loaded

    def dump(self) -> Dict[str, Any]:
        return {
            "format": DUMP_FORMAT,
            "tree": [_to_hex(node) for node in self._tree],
            "values": [
                {"value": _to_hex(v["value"]), "treeIndex": v["treeIndex"]}
                for v in self._values
            ],
        }

    @property
    def root(self) -> str:
        return _to_hex(self._tree[0])

    def __len__(self) -> int:
        return len(self._values)

    def validate(self) -> None:
        """Check that every inner node matches the hash of its children."""
        for i in range(len(self._tree)):
            if _right_child(i) < len(self._tree):
                expected = hash_pair(
                    self._tree[_left_child(i)], self._tree[_right_child(i)]
                )
                if self._tree[i] != expected:
                    raise ValueError(f"Merkle tree is invalid at node {i}")
        for v in self._values:
            if self._tree[v["treeIndex"]] != v["value"]:
                raise ValueError("Merkle tree does not contain its values")

    def get_proof(self, leaf: BytesLike) -> List[str]:
        """
        Get the sibling path proving membership of ``leaf``.

        Raises:
            LeafNotFoundError: if the leaf is not in the tree
        """
        key = _to_bytes32(leaf)
        if key not in self._index:
            raise LeafNotFoundError(f"Leaf is not in tree: {_to_hex(key)}")

        i = self._values[self._index[key]]["treeIndex"]
        proof: List[str] = []
        while i > 0:
            proof.append(_to_hex(self._tree[_sibling(i)]))
            i = _parent(i)
        return proof

    @staticmethod
    def verify(
        root: BytesLike, leaf: BytesLike, proof: Sequence[BytesLike]
    ) -> bool:
        return process_proof(leaf, proof) == _to_bytes32(root)
