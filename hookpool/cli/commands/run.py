"""``hookpool run`` — provision webhooks and dispatch messages until interrupted.

Fatal startup errors (bad config, failed login) are logged as a single
line and exit with status 1.  Once running, nothing but a signal stops
the process.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer

from hookpool.cli.logging_setup import configure_logging
from hookpool.config import DEFAULT_CONFIG_PATH, load_config
from hookpool.core.messages import MessagePool
from hookpool.core.runtime import serve
from hookpool.errors import HookpoolError

logger = logging.getLogger("hookpool")


def run_cmd(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to the JSON config file.",
    ),
    messages_path: Path = typer.Option(
        None,
        "--messages",
        "-m",
        help="Message file (blocks separated by blank lines). Overrides messagesFile.",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        "-L",
        help="Log level. Overrides logLevel from the config.",
    ),
) -> None:
    """Keep the guild's webhook pool topped up and dispatch messages through it."""
    try:
        settings = load_config(config_path)
    except HookpoolError as exc:
        configure_logging(log_level or "INFO")
        logger.error("%s", exc)
        raise typer.Exit(code=1)

    configure_logging(log_level or settings.log_level)
    pool = MessagePool.from_file(messages_path or settings.messages_file)

    try:
        asyncio.run(serve(settings, pool))
    except HookpoolError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        pass
