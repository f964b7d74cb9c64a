"""Dir Merkle - Tamper-evident Merkle fingerprints over directories."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .merkle import MerkleTree

__version__ = "0.1.0"

# Directory and file constants
CONFIG_DIR = ".dir-merkle"
CONFIG_FILE = "config.json"
CONFIG_ENV_VAR = "DIRMERKLE_CONFIG"


def build_tree(directory: Path, recursive: bool = False) -> MerkleTree:
    """Convenience wrapper around MerkleBuilder.build_tree()."""
    from .merkle import MerkleBuilder

    return MerkleBuilder(directory, recursive=recursive).build_tree()
