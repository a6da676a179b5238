import typer
from rich.console import Console

import taskreport.core.logger as logger

console = Console()
err_console = Console(stderr=True)

def success(message: str, icon: str = "✅ "):
    """Standard success notification."""
    if logger.QUIET:
        return
    console.print(f"{icon} {message}", markup=False, style="bold green")

def error(message: str, icon: str = "❌ "):
    """Standard error notification (always shown, written to stderr)."""
    err_console.print(f"{icon} {message}", markup=False, style="bold red")

def info(message: str, icon: str = "ℹ️ "):
    """Standard info notification."""
    if logger.QUIET:
        return
    console.print(f"{icon} {message}", markup=False, style="cyan")

def summary(message, error_count=0):
    if logger.QUIET:
        return
    typer.echo(f"🧾 {str(message)}")
    if error_count:
        typer.echo(f"⚠️  {error_count} error(s) occurred.")
