"""File enumeration for Merkle tree builds."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from .hashing import FileReadFailure, check_read_error_policy

logger = logging.getLogger(__name__)


def list_files(
    directory: Path,
    recursive: bool = False,
    on_read_error: Literal["abort", "skip"] = "abort",
) -> list[Path]:
    """
    List regular files under a directory.

    Args:
        directory: Directory to enumerate
        recursive: Also descend into nested subdirectories, at any depth
        on_read_error: "abort" raises on an unlistable subdirectory,
            "skip" logs it and moves on

    Returns:
        File paths in no particular order. Directories are never included.

    Raises:
        FileReadFailure: If the root directory itself cannot be listed
        ValueError: If on_read_error is not "abort" or "skip"
    """
    check_read_error_policy(on_read_error)
    directory = Path(directory)
    if not directory.is_dir():
        raise FileReadFailure(directory, NotADirectoryError(f"Not a directory: {directory}"))

    files: list[Path] = []
    _collect(directory, recursive, on_read_error, files, is_root=True)
    logger.debug("Enumerated %d files under %s (recursive=%s)", len(files), directory, recursive)
    return files


def _collect(
    directory: Path,
    recursive: bool,
    on_read_error: str,
    files: list[Path],
    is_root: bool = False,
) -> None:
    """Append the files of one directory, recursing when asked."""
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        if is_root or on_read_error == "abort":
            raise FileReadFailure(directory, e) from e
        logger.warning("Skipping unreadable directory %s: %s", directory, e)
        return

    for entry in entries:
        if entry.is_dir():
            # Symlinked directories are not followed (cycles)
            if recursive and not entry.is_symlink():
                _collect(entry, recursive, on_read_error, files)
        elif entry.is_file():
            files.append(entry)
