"""fincast command line entry point."""

import typer

from fincast import __version__
from fincast.cli.forecast import forecast_command
from fincast.cli.loan_cmd import loan_app
from fincast.cli.status import status_command
from fincast.cli.upcoming import upcoming_command
from fincast.core.log import configure_logging

app = typer.Typer(
    name="fincast",
    help="Personal finance forecasting over a local JSON document.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"fincast {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    configure_logging(verbose)


app.command(name="forecast")(forecast_command)
app.command(name="status")(status_command)
app.command(name="upcoming")(upcoming_command)
app.add_typer(loan_app, name="loan")


if __name__ == "__main__":
    app()
