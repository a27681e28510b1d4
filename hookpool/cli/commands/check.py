"""``hookpool check`` — validate a config file and show the effective settings."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from hookpool.config import DEFAULT_CONFIG_PATH, load_config
from hookpool.core.provisioner import compute_burst_plan
from hookpool.errors import ConfigError
from hookpool.models.provisioning import ChannelDeficit

console = Console()


def check_cmd(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to the JSON config file.",
    ),
) -> None:
    """Load the config, report problems, and print the settings that would be used."""
    try:
        settings = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[bold red]Invalid config:[/bold red] {exc}")
        raise typer.Exit(code=1)

    table = Table(title=f"hookpool settings ({config_path})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("token", settings.masked_token)
    table.add_row("guildId", settings.guild_id)
    table.add_row("webhooksFile", str(settings.webhooks_file))
    table.add_row("messagesFile", str(settings.messages_file))
    table.add_row("scanEveryMs", str(settings.scan_every_ms))
    table.add_row("desiredPerChannel", str(settings.desired_per_channel))
    table.add_row("webhookName", settings.webhook_name)
    table.add_row("createBurst", str(settings.create_burst))
    table.add_row("burstWindowMs", str(settings.burst_window_ms))
    full_burst = compute_burst_plan(
        [ChannelDeficit(channel_id="*", existing=0, missing=settings.create_burst)],
        settings.create_burst,
        settings.burst_window_ms,
    )
    table.add_row("burst spacing", f"{full_burst.spacing_ms}ms")
    table.add_row("sendDelayMin", str(settings.send_delay_min))
    table.add_row("sendDelayMax", str(settings.send_delay_max))
    table.add_row("logLevel", settings.log_level)

    console.print(table)
    console.print("[bold green]Config OK[/bold green]")
