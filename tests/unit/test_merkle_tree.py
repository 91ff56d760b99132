"""
Unit tests for the sorted-pair merkle tree.
"""

import pytest
from eth_utils import keccak

from bribe_distributor.merkle.tree import (
    LeafNotFoundError,
    SimpleMerkleTree,
    hash_pair,
)


def _leaves(n):
    return [keccak(text=f"leaf-{i}") for i in range(n)]


class TestSimpleMerkleTree:
    """Tests for tree construction and proofs."""

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 8])
    def test_every_leaf_proves_membership(self, size):
        leaves = _leaves(size)
        tree = SimpleMerkleTree.of(leaves)

        for leaf in leaves:
            proof = tree.get_proof(leaf)
            assert SimpleMerkleTree.verify(tree.root, leaf, proof)

    def test_single_leaf_root_is_leaf(self):
        leaf = keccak(text="only")
        tree = SimpleMerkleTree.of([leaf])

        assert tree.root == "0x" + leaf.hex()
        assert tree.get_proof(leaf) == []

    def test_two_leaf_root_is_sorted_pair_hash(self):
        a, b = _leaves(2)
        tree = SimpleMerkleTree.of([a, b])

        assert tree.root == "0x" + keccak(min(a, b) + max(a, b)).hex()
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_root_independent_of_leaf_order(self):
        leaves = _leaves(6)

        assert (
            SimpleMerkleTree.of(leaves).root
            == SimpleMerkleTree.of(list(reversed(leaves))).root
        )

    def test_missing_leaf_raises(self):
        tree = SimpleMerkleTree.of(_leaves(3))

        with pytest.raises(LeafNotFoundError):
            tree.get_proof(keccak(text="stranger"))

    def test_proof_fails_for_other_root(self):
        leaves = _leaves(4)
        tree = SimpleMerkleTree.of(leaves)
        other = SimpleMerkleTree.of(_leaves(5))

        proof = tree.get_proof(leaves[0])
        assert not SimpleMerkleTree.verify(other.root, leaves[0], proof)

    def test_empty_tree_rejected(self):
        with pytest.raises(ValueError):
            SimpleMerkleTree.of([])

    def test_non_bytes32_leaf_rejected(self):
        with pytest.raises(ValueError):
            SimpleMerkleTree.of([b"short"])


class TestDumpAndLoad:
    """Tests for the persisted representation."""

    def test_load_restores_root_and_proofs(self):
        leaves = _leaves(5)
        tree = SimpleMerkleTree.of(leaves)

        loaded = SimpleMerkleTree.load(tree.dump())

        assert loaded.root == tree.root
        assert len(loaded) == 5
        assert loaded.get_proof(leaves[2]) == tree.get_proof(leaves[2])

    def test_dump_format(self):
        dump = SimpleMerkleTree.of(_leaves(3)).dump()

        assert dump["format"] == "simple-v1"
        assert len(dump["tree"]) == 5
        assert {v["treeIndex"] for v in dump["values"]} == {2, 3, 4}

    def test_load_rejects_tampered_tree(self):
        dump = SimpleMerkleTree.of(_leaves(3)).dump()
        dump["tree"][0] = "0x" + "00" * 32

        with pytest.raises(ValueError):
            SimpleMerkleTree.load(dump)

    def test_load_rejects_unknown_format(self):
        dump = SimpleMerkleTree.of(_leaves(2)).dump()
        dump["format"] = "standard-v1"

        with pytest.raises(ValueError):
            SimpleMerkleTree.load(dump)
