"""Main Typer application — imports and registers all CLI commands.

Entry point: ``hookpool`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer

from hookpool.cli.commands.check import check_cmd
from hookpool.cli.commands.plan import plan_cmd
from hookpool.cli.commands.run import run_cmd

app = typer.Typer(
    name="hookpool",
    help="hookpool: keep a guild's webhook pool topped up and dispatching.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="run", help="Provision webhooks and dispatch messages until interrupted.")(run_cmd)
app.command(name="check", help="Validate a config file and show the effective settings.")(check_cmd)
app.command(name="plan", help="Preview the creation schedule for a number of missing webhooks.")(plan_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
