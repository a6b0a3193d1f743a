"""Decorators for attachfs CLI commands."""

import functools
import logging
from typing import Any, Callable

import typer
import yaml
from rich.console import Console

from attachfs.errors import FilesystemError, ReadOnlyFilesystemError, VirtualFileNotFound

logger = logging.getLogger(__name__)
console = Console()


def handle_filesystem_errors(func: Callable) -> Callable:
    """
    Decorator to handle common filesystem command errors.

    Centralizes error handling for:
    - VirtualFileNotFound: Path has no file
    - ReadOnlyFilesystemError: Write to a read-only filesystem
    - FilesystemError: Bad paths and versions
    - FileNotFoundError / yaml.YAMLError / ValueError: Unreadable tree description
    - General exceptions: Unexpected errors
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except VirtualFileNotFound as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except ReadOnlyFilesystemError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            console.print("[yellow]Tip: The filesystem was opened read-only[/yellow]")
            raise typer.Exit(code=1)
        except FilesystemError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except FileNotFoundError as e:
            console.print(f"[bold red]Error:[/bold red] Tree description not found: {e}")
            raise typer.Exit(code=1)
        except (yaml.YAMLError, ValueError) as e:
            console.print(f"[bold red]Error:[/bold red] Invalid tree description: {e}")
            raise typer.Exit(code=1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(code=130)
        except typer.Exit:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            console.print(f"[bold red]Unexpected error:[/bold red] {e}")
            raise typer.Exit(code=1)

    return wrapper
