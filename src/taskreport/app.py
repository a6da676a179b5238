import typer
from taskreport.commands import reports
from taskreport.core.logger import set_verbosity
from taskreport.core.version import read_local_version

app = typer.Typer(help="Frappe task/comment report CLI")

app.add_typer(reports.app, name="reports", help="Generate project/task/comment JSON reports.")

@app.callback()
def main(
    quiet: bool = typer.Option(False, "--quiet", help="Silence non-error output."),
    verbose: bool = typer.Option(False, "--verbose", help="Show verbose logs (backend requests, etc.)."),
):
    set_verbosity(quiet=quiet, verbose=verbose)


@app.command("version")
def show_version():
    """Print the installed CLI version."""
    typer.echo(read_local_version())


if __name__ == "__main__":
    app()
