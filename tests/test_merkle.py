# Author: Bradley R. Kinnard
# tests for the commitment merkle tree

import dataclasses

import pytest

from crypto.commitments import CommitmentHasher, UninitializedHasherError
from crypto.merkle import CommitmentMerkleTree


@pytest.fixture
def tree(hasher):
    return CommitmentMerkleTree(hasher, depth=4)


class TestConstruction:
    """empty tree state."""

    def test_uninitialized_hasher_rejected(self):
        with pytest.raises(UninitializedHasherError):
            CommitmentMerkleTree(CommitmentHasher(), depth=4)

    def test_bad_depth(self, hasher):
        with pytest.raises(ValueError):
            CommitmentMerkleTree(hasher, depth=0)

    def test_empty_root_is_zero_chain(self, hasher, tree):
        z = "0"
        for _ in range(4):
            z = hasher.hash(z, z)
        assert tree.root == z
        assert tree.size == 0
        assert tree.capacity == 16


class TestInsert:
    """appending leaves."""

    def test_returns_sequential_indices(self, tree, hasher):
        leaves = [hasher.simple_hash(i) for i in range(3)]
        assert [tree.insert(leaf) for leaf in leaves] == [0, 1, 2]
        assert tree.size == 3

    def test_root_changes(self, tree, hasher):
        before = tree.root
        tree.insert(hasher.simple_hash(1))
        assert tree.root != before

    def test_root_matches_manual_fold(self, hasher):
        t = CommitmentMerkleTree(hasher, depth=2)
        t.insert("5")
        t.insert("6")
        t.insert("7")

        left = hasher.hash("5", "6")
        right = hasher.hash("7", "0")
        assert t.root == hasher.hash(left, right)

    def test_full_tree(self, hasher):
        t = CommitmentMerkleTree(hasher, depth=1)
        t.insert(1)
        t.insert(2)
        with pytest.raises(OverflowError):
            t.insert(3)

    def test_index_of(self, tree):
        tree.insert(10)
        tree.insert(20)
        assert tree.index_of(20) == 1
        assert tree.index_of("10") == 0
        assert tree.index_of(30) == -1


class TestProofs:
    """inclusion proofs."""

    def test_every_leaf_proves(self, tree, hasher):
        for i in range(5):
            tree.insert(hasher.simple_hash(i))
        for i in range(5):
            proof = tree.proof(i)
            assert len(proof.path_elements) == tree.depth
            assert CommitmentMerkleTree.verify_proof(hasher, proof)

    def test_path_indices_are_index_bits(self, tree):
        for i in range(6):
            tree.insert(i + 100)
        assert tree.proof(5).path_indices == (1, 0, 1, 0)

    def test_wrong_leaf_fails(self, tree, hasher):
        tree.insert(hasher.simple_hash(1))
        proof = dataclasses.replace(tree.proof(0), leaf=hasher.simple_hash(2))
        assert not CommitmentMerkleTree.verify_proof(hasher, proof)

    def test_stale_root_fails(self, tree, hasher):
        tree.insert(1)
        old = tree.proof(0)
        tree.insert(2)
        # the old proof still recomputes its own root, which is no longer current
        assert CommitmentMerkleTree.verify_proof(hasher, old)
        assert old.root != tree.root

    def test_mismatched_path_lengths(self, tree, hasher):
        tree.insert(1)
        proof = dataclasses.replace(tree.proof(0), path_indices=(0,))
        assert not CommitmentMerkleTree.verify_proof(hasher, proof)

    def test_out_of_range(self, tree):
        with pytest.raises(IndexError):
            tree.proof(0)

    def test_to_dict(self, tree):
        tree.insert(1)
        d = tree.proof(0).to_dict()
        assert d["leaf"] == "1"
        assert d["leaf_index"] == 0
        assert isinstance(d["path_elements"], list)
