"""Merkle tree construction over the files of a directory."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

from .hashing import (
    EMPTY_ROOT,
    Digest,
    hash_files,
    check_read_error_policy,
    hash_pair,
    pad_leaves,
    sort_digests,
)
from .scanner import list_files

logger = logging.getLogger(__name__)


def left_child(index: int) -> int:
    return 2 * index + 1


def right_child(index: int) -> int:
    return 2 * index + 2


def parent(index: int) -> int:
    return (index - 1) // 2


def level_bounds(level: int) -> tuple[int, int]:
    """Leftmost and rightmost level-order index of a level."""
    return 2**level - 1, 2 ** (level + 1) - 2


def level_of(index: int) -> int:
    """Level holding a level-order index (root is level 0)."""
    return (index + 1).bit_length() - 1


def compute_height(num_leaves: int) -> int:
    """ceil(log2(num_leaves)), or 0 for an empty tree."""
    if num_leaves <= 1:
        return 0
    return (num_leaves - 1).bit_length()


def count_nodes(num_leaves: int) -> int:
    """Number of distinct nodes: the leaves plus ceil(n/2) per level above.

    There is no closed form, so it is summed level by level until only
    the root remains. Internal padding copies are not counted.
    """
    if num_leaves == 0:
        return 0
    count = num_leaves
    total = num_leaves
    while count != 1:
        count = (count + 1) // 2
        total += count
    return total


@dataclass(frozen=True)
class TreeShape:
    """Shape of a tree derived from its leaf count."""

    num_leaves: int
    height: int
    total_nodes: int

    @classmethod
    def for_leaves(cls, num_leaves: int) -> TreeShape:
        return cls(
            num_leaves=num_leaves,
            height=compute_height(num_leaves),
            total_nodes=count_nodes(num_leaves),
        )

    @property
    def capacity(self) -> int:
        """Slots a complete tree of this height would need."""
        if self.num_leaves == 0:
            return 0
        return 2 ** (self.height + 1) - 1

    @property
    def first_leaf(self) -> int:
        return 2**self.height - 1


def place_leaves(shape: TreeShape, leaves: list[Digest]) -> dict[int, Digest]:
    """Put the sorted leaves on the bottom level, left to right."""
    return {shape.first_leaf + i: leaf for i, leaf in enumerate(leaves)}


def build_level(nodes: dict[int, Digest], level: int) -> int:
    """
    Compute the nodes of one level from the level below.

    Walks the level left to right. Once the populated range ends, a level
    with an odd number of built nodes gets a copy of its last node so the
    level above can pair it.

    Returns:
        Number of populated slots on this level, padding included
    """
    first, last = level_bounds(level)
    nodes_built = 0
    for index in range(first, last + 1):
        left = nodes.get(left_child(index))
        if left is None:
            if nodes_built % 2 != 0:
                nodes[index] = nodes[index - 1]
                logger.debug("Level %d has %d nodes, duplicated index %d", level, nodes_built, index - 1)
                return nodes_built + 1
            return nodes_built
        nodes[index] = hash_pair(left, nodes.get(right_child(index)))
        nodes_built += 1
    return nodes_built


def build_levels(nodes: dict[int, Digest], height: int) -> None:
    """Fill in every internal level, bottom-up, ending with the root."""
    for level in range(height - 1, -1, -1):
        build_level(nodes, level)


@dataclass(frozen=True)
class MerkleTree:
    """Immutable result of one build: leaves, nodes and metadata."""

    directory: Path
    recursive: bool = False
    leaves: tuple[Digest, ...] = ()
    height: int = 0
    num_leaves: int = 0
    total_nodes: int = 0
    nodes: Mapping[int, Digest] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_empty(self) -> bool:
        return self.num_leaves == 0

    @property
    def root_hash(self) -> Digest:
        """Root digest, or 32 zero bytes when there is no tree."""
        return self.nodes.get(0, EMPTY_ROOT)

    def get(self, index: int) -> Digest | None:
        """Digest at a level-order index, None if the slot is absent."""
        return self.nodes.get(index)

    def slots(self) -> list[Digest | None] | None:
        """Full tree laid out as a complete binary tree.

        Returns None when there is no tree.
        """
        if self.is_empty:
            return None
        shape = TreeShape.for_leaves(self.num_leaves)
        return [self.nodes.get(i) for i in range(shape.capacity)]

    def level(self, level: int) -> list[Digest]:
        """Populated digests of one level, left to right."""
        first, last = level_bounds(level)
        return [self.nodes[i] for i in range(first, last + 1) if i in self.nodes]

    def to_dict(self) -> dict[str, Any]:
        """Render as a JSON-friendly dictionary (hex encoded)."""
        return {
            "directory": str(self.directory),
            "recursive": self.recursive,
            "root_hash": self.root_hash.hex(),
            "height": self.height,
            "num_leaves": self.num_leaves,
            "total_nodes": self.total_nodes,
            "leaves": [leaf.hex() for leaf in self.leaves],
            "nodes": {str(i): self.nodes[i].hex() for i in sorted(self.nodes)},
        }


class MerkleBuilder:
    """Builds Merkle trees from a directory and keeps the latest result.

    Each build produces a fresh MerkleTree and swaps it in only after it
    has fully succeeded; a failed build leaves the previous result as is.
    Builds are not synchronized, so callers sharing a builder across
    threads must serialize build() calls.
    """

    def __init__(
        self,
        directory: Path | None = None,
        recursive: bool = False,
        on_read_error: Literal["abort", "skip"] = "abort",
    ):
        self.directory = Path(directory) if directory is not None else None
        self.recursive = recursive
        self.on_read_error = check_read_error_policy(on_read_error)
        self._tree: MerkleTree | None = None
        self._exists = False

    @classmethod
    def from_config(cls, config, directory: Path | None = None) -> MerkleBuilder:
        """Create a builder using settings from a MerkleConfig."""
        return cls(
            directory=directory,
            recursive=config.recursive,
            on_read_error=config.on_read_error,
        )

    def build(self, directory: Path | None = None, recursive: bool | None = None) -> Digest:
        """Build a tree and return its root hash."""
        return self.build_tree(directory, recursive).root_hash

    def build_tree(
        self,
        directory: Path | None = None,
        recursive: bool | None = None,
    ) -> MerkleTree:
        """
        Build a Merkle tree from the files in a directory.

        Args:
            directory: Directory to fingerprint (defaults to the builder's)
            recursive: Override the builder's recursive flag for this build

        Returns:
            The new MerkleTree, also kept as the builder's current result

        Raises:
            AlgorithmUnavailable: If SHA-256 cannot be instantiated
            FileReadFailure: If a file or directory cannot be read under
                the "abort" policy
            ValueError: If no directory is known or on_read_error is invalid
        """
        if directory is None:
            directory = self.directory
        if directory is None:
            raise ValueError("No directory given to build from")
        directory = Path(directory)
        if recursive is None:
            recursive = self.recursive
        check_read_error_policy(self.on_read_error)

        logger.debug("Building tree for %s (recursive=%s)", directory, recursive)

        files = list_files(directory, recursive, self.on_read_error)
        digests = hash_files(files, self.on_read_error)

        if not digests:
            tree = MerkleTree(directory=directory, recursive=recursive)
        else:
            leaves = pad_leaves(sort_digests(digests))
            shape = TreeShape.for_leaves(len(leaves))
            nodes = place_leaves(shape, leaves)
            build_levels(nodes, shape.height)
            tree = MerkleTree(
                directory=directory,
                recursive=recursive,
                leaves=tuple(leaves),
                height=shape.height,
                num_leaves=shape.num_leaves,
                total_nodes=shape.total_nodes,
                nodes=MappingProxyType(nodes),
            )

        self.directory = directory
        self._tree = tree
        if not tree.is_empty:
            self._exists = True
        logger.debug(
            "Built tree for %s: %d leaves, height %d, root %s",
            directory,
            tree.num_leaves,
            tree.height,
            tree.root_hash.hex(),
        )
        return tree

    @property
    def result(self) -> MerkleTree | None:
        """Latest completed build, None before the first build."""
        return self._tree

    @property
    def exists(self) -> bool:
        """True once a non-empty tree has been built."""
        return self._exists

    @property
    def height(self) -> int:
        return self._tree.height if self._tree else 0

    @property
    def num_leaves(self) -> int:
        return self._tree.num_leaves if self._tree else 0

    @property
    def total_nodes(self) -> int:
        return self._tree.total_nodes if self._tree else 0

    @property
    def root_hash(self) -> Digest:
        return self._tree.root_hash if self._tree else EMPTY_ROOT

    @property
    def tree(self) -> list[Digest | None] | None:
        """Level-order view of the latest tree, None if there is none."""
        return self._tree.slots() if self._tree else None
