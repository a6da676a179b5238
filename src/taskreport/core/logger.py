# taskreport/core/logger.py
from datetime import datetime

from rich.console import Console

console = Console()

# Verbosity controls (set by the root callback in taskreport.app)
QUIET = False
VERBOSE = False

def set_verbosity(quiet: bool = False, verbose: bool = False):
    """--quiet wins over --verbose."""
    global QUIET, VERBOSE
    QUIET = quiet
    VERBOSE = verbose and not quiet

def log(message: str, style="cyan", force: bool = False, verbose_only: bool = False):
    """Prints a styled progress line. Verbose-only lines are timestamped."""
    if QUIET and not force:
        return
    if verbose_only:
        if not VERBOSE:
            return
        message = f"{datetime.now():%H:%M:%S} {message}"
    # Messages carry filter lists like [["project", "in", ...]]; never parse them as markup.
    console.print(message, style=style, markup=False, highlight=False)
