"""Main CLI application module.

This module provides the main entry point for the grpl CLI.

Command Groups:
- resource: Deploy or render GRAS resources
"""

import typer

from .commands import resource_app

# Create the main CLI application
app = typer.Typer(
    help="🍇 grpl - GRAS resource deployment tool",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(resource_app, name="resource", help="GRAS resource commands")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
