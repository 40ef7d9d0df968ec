# Author: Bradley R. Kinnard
# fixed-depth MiMC merkle tree for publishing auth commitments
# leaves are commitments; membership proofs feed circuits that check them

from dataclasses import dataclass
from typing import Any

from crypto.commitments import CommitmentHasher
from utils.helpers import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MerkleProof:
    """proof of inclusion: sibling per level plus 0/1 left-right bits."""
    leaf: str
    leaf_index: int
    path_elements: tuple[str, ...]
    path_indices: tuple[int, ...]
    root: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "leaf": self.leaf,
            "leaf_index": self.leaf_index,
            "path_elements": list(self.path_elements),
            "path_indices": list(self.path_indices),
            "root": self.root,
        }


class CommitmentMerkleTree:
    """
    append-only merkle tree of fixed depth over MiMC hash(left, right).

    empty slots hold the zero element; zeros[i] is the root of an empty
    subtree of height i. the hasher must be initialized before use.
    """

    def __init__(self, hasher: CommitmentHasher, depth: int = 20, zero_element: int | str = 0):
        if depth < 1:
            raise ValueError("depth must be at least 1")
        if not hasher.is_initialized:
            # raises UninitializedHasherError
            hasher.simple_hash(0)

        self._hasher = hasher
        self._depth = depth
        self._zeros = self._compute_zero_hashes(str(zero_element))
        self._layers: list[list[str]] = [[] for _ in range(depth + 1)]

    def _compute_zero_hashes(self, zero: str) -> list[str]:
        """compute zero hashes for empty subtrees."""
        zeros = [zero]
        for _ in range(self._depth):
            zeros.append(self._hasher.hash(zeros[-1], zeros[-1]))
        return zeros

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def capacity(self) -> int:
        return 2 ** self._depth

    @property
    def size(self) -> int:
        return len(self._layers[0])

    @property
    def root(self) -> str:
        top = self._layers[self._depth]
        return top[0] if top else self._zeros[self._depth]

    def _node(self, level: int, index: int) -> str:
        layer = self._layers[level]
        return layer[index] if index < len(layer) else self._zeros[level]

    def insert(self, leaf: int | str) -> int:
        """append a leaf, update the path to the root, return its index."""
        if self.size >= self.capacity:
            raise OverflowError(f"merkle tree full ({self.capacity} leaves)")

        index = self.size
        current = str(leaf)
        self._layers[0].append(current)

        idx = index
        for level in range(1, self._depth + 1):
            parent = idx // 2
            left = self._node(level - 1, parent * 2)
            right = self._node(level - 1, parent * 2 + 1)
            node = self._hasher.hash(left, right)

            layer = self._layers[level]
            if parent < len(layer):
                layer[parent] = node
            else:
                layer.append(node)
            idx = parent

        logger.debug(f"inserted leaf {index}, root={self.root[:16]}...")
        return index

    def index_of(self, leaf: int | str) -> int:
        """position of a leaf, -1 if absent."""
        try:
            return self._layers[0].index(str(leaf))
        except ValueError:
            return -1

    def proof(self, index: int) -> MerkleProof:
        """inclusion proof for the leaf at index."""
        if index < 0 or index >= self.size:
            raise IndexError(f"leaf index {index} out of range")

        elements = []
        bits = []
        idx = index
        for level in range(self._depth):
            elements.append(self._node(level, idx ^ 1))
            bits.append(idx % 2)
            idx //= 2

        return MerkleProof(
            leaf=self._layers[0][index],
            leaf_index=index,
            path_elements=tuple(elements),
            path_indices=tuple(bits),
            root=self.root,
        )

    @staticmethod
    def verify_proof(hasher: CommitmentHasher, proof: MerkleProof) -> bool:
        """recompute the root from a leaf and its path."""
        if len(proof.path_elements) != len(proof.path_indices):
            return False

        current = proof.leaf
        for sibling, bit in zip(proof.path_elements, proof.path_indices):
            if bit:
                current = hasher.hash(sibling, current)
            else:
                current = hasher.hash(current, sibling)

        return current == proof.root
