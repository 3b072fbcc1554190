#!/usr/bin/env python3
"""
Main CLI entry point for filterbar
"""

import typer

from filterbar import __version__
from filterbar.commands import query
from filterbar.config.settings import get_log_level, validate_all_env_vars
from filterbar.exceptions import ConfigurationError
from filterbar.utils.logging import setup_logging
from filterbar.utils.output import console


def version():
    """Show filterbar version"""
    typer.echo(f"filterbar version {__version__}")


def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
):
    """
    filterbar - filter query tokenizer and value dropdown

    [bold]Examples:[/bold]

    Show the token under the cursor:
        [cyan]filterbar tokenize "author:@me label:~bu"[/cyan]

    List label suggestions:
        [cyan]filterbar suggest "label:" --file candidates.yaml --scope my-project[/cyan]

    Pick a value with the keyboard:
        [cyan]filterbar complete "label:" --keys down,down,enter[/cyan]
    """
    if verbose and quiet:
        typer.echo("Error: --verbose and --quiet are mutually exclusive", err=True)
        raise typer.Exit(1)

    for error in validate_all_env_vars():
        console.print(f"[yellow]Warning: {error}[/yellow]")

    if verbose:
        setup_logging("DEBUG")
    elif quiet:
        setup_logging("ERROR")
    else:
        try:
            setup_logging(get_log_level())
        except ConfigurationError:
            setup_logging("WARNING")


def create_app() -> typer.Typer:
    """Create and configure the main CLI application"""
    app = typer.Typer(
        help="Filter query tokenizer and value dropdown",
        rich_markup_mode="rich",
        no_args_is_help=True,
    )
    app.command()(query.tokenize)
    app.command()(query.suggest)
    app.command()(query.complete)
    app.command()(query.keys)
    app.command()(version)
    app.callback()(main)
    return app


# Create the app instance
app = create_app()


def run():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    run()
