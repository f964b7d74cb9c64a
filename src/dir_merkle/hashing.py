"""Digest computation and canonical leaf ordering."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

Digest = bytes

DIGEST_ALGORITHM = "sha256"
DIGEST_SIZE = 32

# Root hash reported when no tree exists
EMPTY_ROOT: Digest = bytes(DIGEST_SIZE)

READ_ERROR_POLICIES = ("abort", "skip")


class MerkleError(Exception):
    """Base exception for Merkle tree build errors."""


class AlgorithmUnavailable(MerkleError):
    """The hash primitive cannot be instantiated."""

    def __init__(self, algorithm: str, reason: str | None = None):
        self.algorithm = algorithm
        message = f"Hash algorithm {algorithm!r} is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FileReadFailure(MerkleError):
    """A file or directory could not be read."""

    def __init__(self, path: Path, error: OSError):
        self.path = Path(path)
        self.error = error
        super().__init__(f"Cannot read {self.path}: {error}")


def check_read_error_policy(on_read_error: str) -> str:
    """Reject anything but "abort" or "skip"."""
    if on_read_error not in READ_ERROR_POLICIES:
        raise ValueError(
            f"on_read_error must be one of {READ_ERROR_POLICIES}, got {on_read_error!r}"
        )
    return on_read_error


def new_hasher(algorithm: str = DIGEST_ALGORITHM):
    """Instantiate the hash primitive, checking it produces 32-byte digests."""
    try:
        hasher = hashlib.new(algorithm)
    except (ValueError, TypeError) as e:
        raise AlgorithmUnavailable(algorithm, str(e)) from e
    if hasher.digest_size != DIGEST_SIZE:
        raise AlgorithmUnavailable(
            algorithm, f"digest size is {hasher.digest_size} bytes, expected {DIGEST_SIZE}"
        )
    return hasher


def compute_hash(content: bytes) -> Digest:
    """Return the raw 32-byte SHA-256 digest of *content*."""
    hasher = new_hasher()
    hasher.update(content)
    return hasher.digest()


def hash_pair(left: Digest, right: Digest | None) -> Digest:
    """Hash the concatenation of two child digests.

    A missing right child hashes ``left || left``.
    """
    if right is None:
        right = left
    return compute_hash(left + right)


def compute_file_hash(filepath: Path) -> Digest:
    """Compute SHA-256 digest of the full file contents in one pass."""
    with open(filepath, "rb") as f:
        content = f.read()
    return compute_hash(content)


def hash_files(
    files: Iterable[Path],
    on_read_error: Literal["abort", "skip"] = "abort",
) -> list[Digest]:
    """
    Hash every file, one at a time.

    Args:
        files: File paths to hash
        on_read_error: "abort" raises on the first unreadable file,
            "skip" logs a warning and leaves the file out

    Returns:
        One digest per readable file, in input order

    Raises:
        AlgorithmUnavailable: If the hash primitive cannot be built
        FileReadFailure: If a file is unreadable and the policy is "abort"
        ValueError: If on_read_error is not "abort" or "skip"
    """
    check_read_error_policy(on_read_error)

    # Fail fast before touching any file
    new_hasher()

    digests: list[Digest] = []
    for filepath in files:
        try:
            digests.append(compute_file_hash(filepath))
        except OSError as e:
            if on_read_error == "abort":
                raise FileReadFailure(filepath, e) from e
            logger.warning("Skipping unreadable file %s: %s", filepath, e)
    return digests


def hex_key(digest: Digest) -> str:
    """Sort key: lowercase hexadecimal encoding of a digest."""
    return digest.hex()


def sort_digests(digests: Iterable[Digest]) -> list[Digest]:
    """Order digests ascending by their hex encoding."""
    return sorted(digests, key=hex_key)


def pad_leaves(digests: list[Digest]) -> list[Digest]:
    """Duplicate the last (greatest) digest when the count is odd."""
    leaves = list(digests)
    if len(leaves) % 2 == 1:
        logger.debug("Odd leaf count %d, duplicating last leaf", len(leaves))
        leaves.append(leaves[-1])
    return leaves
