"""CLI for Dir Merkle."""

import json
import logging
import sys
from pathlib import Path
from typing import Literal

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import MerkleConfig, get_config_path, load_config, save_config
from .hashing import DIGEST_SIZE, MerkleError
from .merkle import MerkleBuilder, MerkleTree, level_of

console = Console()
error_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    """Route package logs to stderr through rich."""
    logger = logging.getLogger("dir_merkle")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.addHandler(RichHandler(console=error_console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _run_build(
    config: MerkleConfig,
    directory: Path,
    recursive: bool | None,
    skip_unreadable: bool = False,
) -> MerkleTree:
    """Build a tree, exiting with an error message on failure."""
    builder = MerkleBuilder.from_config(config, directory)
    if skip_unreadable:
        builder.on_read_error = "skip"
    try:
        return builder.build_tree(recursive=recursive)
    except MerkleError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def _parse_root_hash(ctx, param, value: str) -> bytes:
    """Validate a hex encoded 32-byte root hash."""
    value = value.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    try:
        digest = bytes.fromhex(value)
    except ValueError:
        raise click.BadParameter("must be a hexadecimal string")
    if len(digest) != DIGEST_SIZE:
        raise click.BadParameter(f"must be {DIGEST_SIZE * 2} hex characters")
    return digest


@click.group()
@click.version_option(version=__version__, prog_name="dirmerkle")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.dir-merkle/config.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """Dir Merkle - Tamper-evident fingerprints of directories.

    Builds a Merkle tree over the files of a directory. Any change to
    file contents or to the set of files changes the root hash.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command()
@click.option("--recursive", is_flag=True, help="Include nested subdirectories by default")
@click.option(
    "--on-read-error",
    type=click.Choice(["abort", "skip"]),
    default="abort",
    help="What to do with unreadable files",
)
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@click.pass_context
def init(
    ctx: click.Context,
    recursive: bool,
    on_read_error: Literal["abort", "skip"],
    force: bool,
) -> None:
    """Write a configuration file."""
    path = get_config_path(ctx.obj["config_path"])

    if path.exists() and not force:
        error_console.print(
            f"[yellow]Warning:[/yellow] {path} already exists. Use --force to overwrite.",
            soft_wrap=True,
        )
        sys.exit(1)

    config = MerkleConfig(recursive=recursive, on_read_error=on_read_error)
    save_config(config, path)

    console.print(
        Panel(
            f"[green]Saved configuration[/green]\n\n"
            f"Recursive: [bold]{config.recursive}[/bold]\n"
            f"On read error: [bold]{config.on_read_error}[/bold]\n"
            f"Config file: [dim]{path}[/dim]",
            title="dirmerkle init",
        )
    )


@main.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--recursive/--no-recursive",
    default=None,
    help="Include nested subdirectories (default: from config)",
)
@click.option("--skip-unreadable", is_flag=True, help="Skip files that cannot be read")
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON")
@click.option("--tree", "show_tree", is_flag=True, help="List every tree node")
@click.pass_context
def build(
    ctx: click.Context,
    directory: Path,
    recursive: bool | None,
    skip_unreadable: bool,
    as_json: bool,
    show_tree: bool,
) -> None:
    """Build the Merkle tree of DIRECTORY and print its root hash."""
    config = load_config(ctx.obj["config_path"])
    tree = _run_build(config, directory, recursive, skip_unreadable)

    if as_json:
        click.echo(json.dumps(tree.to_dict(), indent=2))
        return

    console.print(f"[bold]Root hash:[/bold] {tree.root_hash.hex()}", soft_wrap=True)

    table = Table(title="Merkle Tree")
    table.add_column("Property", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Directory", str(tree.directory))
    table.add_row("Recursive", str(tree.recursive))
    table.add_row("Leaves", str(tree.num_leaves))
    table.add_row("Height", str(tree.height))
    table.add_row("Total nodes", str(tree.total_nodes))

    console.print(table)

    if tree.is_empty:
        console.print("[yellow]No files found - empty tree.[/yellow]")
        return

    if show_tree:
        console.print("[bold]Nodes[/bold] (index, level, digest)")
        for index in sorted(tree.nodes):
            console.print(
                f"{index:>6}  {level_of(index):>3}  {tree.nodes[index].hex()}",
                soft_wrap=True,
            )


@main.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument("expected_root", callback=_parse_root_hash)
@click.option(
    "--recursive/--no-recursive",
    default=None,
    help="Include nested subdirectories (default: from config)",
)
@click.pass_context
def verify(
    ctx: click.Context,
    directory: Path,
    expected_root: bytes,
    recursive: bool | None,
) -> None:
    """Check DIRECTORY against an EXPECTED_ROOT hash."""
    config = load_config(ctx.obj["config_path"])
    tree = _run_build(config, directory, recursive)

    if tree.root_hash == expected_root:
        console.print(f"[green]MATCH[/green] {tree.root_hash.hex()}", soft_wrap=True)
        return

    error_console.print("[red]MISMATCH[/red]", soft_wrap=True)
    error_console.print(f"  expected: {expected_root.hex()}", soft_wrap=True)
    error_console.print(f"  actual:   {tree.root_hash.hex()}", soft_wrap=True)
    sys.exit(1)


if __name__ == "__main__":
    main()
