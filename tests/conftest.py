"""Shared test fixtures for dir-merkle."""

from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def cli_runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch) -> Path:
    """Point the config file at a temp location and clear env overrides."""
    config_path = tmp_path_factory.mktemp("config") / "config.json"
    monkeypatch.setenv("DIRMERKLE_CONFIG", str(config_path))
    monkeypatch.delenv("DIRMERKLE_RECURSIVE", raising=False)
    monkeypatch.delenv("DIRMERKLE_ON_READ_ERROR", raising=False)
    return config_path


def _make_files(root: Path, count: int, prefix: str = "file") -> list[Path]:
    """Create *count* files with distinct content under *root*."""
    root.mkdir(parents=True, exist_ok=True)
    paths = []
    for i in range(count):
        path = root / f"{prefix}{i:02d}.txt"
        path.write_text(f"{prefix} number {i}\n")
        paths.append(path)
    return paths


@pytest.fixture
def make_files():
    """Factory creating numbered files with distinct content."""
    return _make_files


@pytest.fixture
def nested_dir(tmp_path: Path) -> Path:
    """
    Directory with files at the top level and in nested subdirectories.

    Structure:
        nested/
        ├── top00.txt .. top02.txt
        └── sub/
            ├── inner00.txt
            └── deeper/
                └── deep00.txt
    """
    root = tmp_path / "nested"
    _make_files(root, 3, prefix="top")
    _make_files(root / "sub", 1, prefix="inner")
    _make_files(root / "sub" / "deeper", 1, prefix="deep")
    return root
