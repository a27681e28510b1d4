"""``hookpool plan`` — preview the burst schedule for N missing webhooks.

Uses the same ``compute_burst_plan`` the provisioner runs, treating all
missing webhooks as belonging to one channel.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from hookpool.config import DEFAULT_CONFIG_PATH, HookpoolSettings, load_config
from hookpool.core.provisioner import compute_burst_plan
from hookpool.errors import ConfigError
from hookpool.models.provisioning import ChannelDeficit

console = Console()


def plan_cmd(
    missing: int = typer.Option(
        ...,
        "--missing",
        "-n",
        min=0,
        help="Number of webhooks missing across the guild.",
    ),
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Read createBurst/burstWindowMs from a config file (e.g. {DEFAULT_CONFIG_PATH}).",
    ),
) -> None:
    """Show how many creations one pass would start and how far apart."""
    if config_path is not None:
        try:
            settings = load_config(config_path)
        except ConfigError as exc:
            console.print(f"[bold red]Invalid config:[/bold red] {exc}")
            raise typer.Exit(code=1)
    else:
        settings = HookpoolSettings()

    deficits = [ChannelDeficit(channel_id="*", existing=0, missing=missing)] if missing else []
    plan = compute_burst_plan(deficits, settings.create_burst, settings.burst_window_ms)

    last_start = plan.delay_ms(plan.starts - 1) if plan.starts else 0
    console.print(
        Panel(
            "\n".join([
                f"[bold]Missing:[/bold]      {plan.total_missing}",
                f"[bold]Starts:[/bold]       {plan.starts}",
                f"[bold]Spacing:[/bold]      {plan.spacing_ms}ms",
                f"[bold]Last start:[/bold]   +{last_start}ms",
                f"[bold]Deferred:[/bold]     {plan.deferred}",
            ]),
            title="[bold]Burst plan[/bold]",
            border_style="cyan",
            padding=(1, 2),
        )
    )
