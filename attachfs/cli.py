import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.traceback import install
from rich.tree import Tree as RichTree

from .config import load_config
from .decorators import handle_filesystem_errors
from .loader import load_tree
from .vfs import AFileSystem, DirectoryNode, SlotSequence, Visitor, traverse

# Initialize Rich Traceback for better error messages
install(show_locals=False)

# Initialize Rich Console
console = Console()

# Configure logging to use Rich's RichHandler
logging.basicConfig(
    level=logging.INFO,  # Set to INFO by default, DEBUG if verbose
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Inspect versioned virtual filesystems described in YAML or JSON")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
):
    """
    attachfs - a versioned virtual filesystem for file attachments.

    Each command takes a tree description file (YAML or JSON) and a path
    such as /data/table@2 or /data/table@release.
    """
    config = load_config()
    if verbose or config.cli.verbose:
        logging.getLogger("attachfs").setLevel(logging.DEBUG)
        console.print("[bold green]Verbose mode enabled.[/bold green]")


def open_filesystem(tree_file: Path) -> AFileSystem:
    """Load a tree description into a read-only filesystem."""
    config = load_config()
    tree = load_tree(tree_file, http=config.http)
    return AFileSystem(tree, read_only=True, name=tree_file.stem, config=config)


def render_tree(node: DirectoryNode, branch: RichTree) -> RichTree:
    for name in sorted(node.children):
        child = node.children[name]
        if isinstance(child, DirectoryNode):
            render_tree(child, branch.add(f"[bold blue]{name}/[/bold blue]"))
        else:
            present = sum(1 for slot in child.slots if slot is not None)
            summary = f"{present} version{'s' if present != 1 else ''}"
            if child.labels:
                summary += f", labels: {', '.join(sorted(child.labels))}"
            branch.add(f"{name} [dim]({summary})[/dim]")
    return branch


@app.command()
@handle_filesystem_errors
def show(
    tree_file: Path = typer.Argument(..., help="Tree description (YAML or JSON)"),
):
    """Display the directories and files of a tree description."""
    fs = open_filesystem(tree_file)
    console.print(render_tree(fs.tree, RichTree(f"[bold]{fs.name}[/bold] /")))


@app.command()
@handle_filesystem_errors
def cat(
    tree_file: Path = typer.Argument(..., help="Tree description (YAML or JSON)"),
    path: str = typer.Argument(..., help="Path to the file, e.g. /data/table@2"),
    format: str = typer.Option("text", "--format", "-f", help="Output format: text or json"),
):
    """Print the content of a file version.

    Examples:
        attachfs cat tree.yaml /data/notes
        attachfs cat tree.yaml /data/table@release --format json
    """
    if format not in ("text", "json"):
        console.print(f"[bold red]Error:[/bold red] Unknown format '{format}'")
        raise typer.Exit(code=1)
    fs = open_filesystem(tree_file)

    async def read():
        found = fs.find(path).exists
        return await (found.json() if format == "json" else found.text())

    content = asyncio.run(read())
    if format == "json":
        console.print_json(data=content)
    else:
        console.print(content, markup=False, highlight=False)


@app.command()
@handle_filesystem_errors
def metadata(
    tree_file: Path = typer.Argument(..., help="Tree description (YAML or JSON)"),
    path: str = typer.Argument(..., help="Path to the file, e.g. /data/table@2"),
):
    """Show the merged metadata of a file version.

    Remote files are queried with an HTTP HEAD request.
    """
    fs = open_filesystem(tree_file)
    record = asyncio.run(fs.metadata(path))
    if record is None:
        console.print(f"[bold red]Error:[/bold red] Virtual file not found: {path}")
        raise typer.Exit(code=1)

    table = Table(title=f"Metadata: {path}")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in record.items():
        table.add_row(str(key), str(value))
    console.print(table)


@app.command()
@handle_filesystem_errors
def versions(
    tree_file: Path = typer.Argument(..., help="Tree description (YAML or JSON)"),
    path: str = typer.Argument(..., help="Path to the file"),
):
    """List the versions and labels of a file."""
    fs = open_filesystem(tree_file)

    def sequence(path: str, name: str, version: Optional[str], files: SlotSequence) -> SlotSequence:
        return files

    files = asyncio.run(traverse(fs, path, fs.tree, Visitor(file=sequence)))
    if files is None:
        console.print(f"[bold red]Error:[/bold red] Virtual file not found: {path}")
        raise typer.Exit(code=1)

    table = Table(title=f"Versions: {path}")
    table.add_column("Version", style="cyan")
    table.add_column("File")
    for index, slot in enumerate(files.slots):
        table.add_row(str(index + 1), "[dim](deleted)[/dim]" if slot is None else repr(slot))
    for label, target in sorted(files.labels.items()):
        table.add_row(f"@{label}", repr(target))
    console.print(table)


if __name__ == "__main__":
    app()
