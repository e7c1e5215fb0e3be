from __future__ import annotations

import logging
from functools import partial
from typing import Optional

import typer

from logging_config import configure_logging
from services.ingest import StoreService
from services.lifecycle import ShutdownHooks
from services.subscriber import ReconnectingSubscriber, RetryPolicy
from settings import get_settings
from storage.rotating import build_default_store
from transport.mqtt import connect_server
from transport.registry import DirectoryClient, RegistrationError

VERSION = "0.1.0"

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Persist GridEye sensor events from the pub/sub channel into daily CSV files.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main() -> None:
    """Entry point for the CLI."""


@app.command("version")
def version_command() -> None:
    """Print the daemon version."""
    typer.echo(f"grideye-store {VERSION}")


@app.command("run")
def run_command(
    nodesrv: Optional[str] = typer.Option(
        None,
        "--nodesrv",
        help="Node directory service URL (defaults to GRIDEYE_NODESRV env or http://127.0.0.1:9990).",
    ),
    local: Optional[str] = typer.Option(
        None,
        "--local",
        help="Data-plane server address that overrides the one handed out at registration.",
    ),
    base_dir: Optional[str] = typer.Option(
        None,
        "--base-dir",
        help="Directory for daily CSV files ('default' means ./store).",
    ),
    backoff: Optional[float] = typer.Option(
        None,
        "--backoff",
        min=0.0,
        help="Seconds to wait before each reconnect attempt.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Register, connect and store sensor events until the process is stopped."""
    configure_logging(log_level.upper() if log_level else None)
    settings = get_settings()
    logger.info("GridEye-Store(%s) starting", VERSION)

    directory = DirectoryClient(nodesrv or settings.nodesrv)
    try:
        registration = directory.register_node(settings.node_name, [settings.channel])
    except RegistrationError as exc:
        directory.close()
        typer.secho(f"Can't register node: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    hooks = ShutdownHooks()
    hooks.register(directory.close)
    hooks.register(partial(directory.unregister_node, registration.node_id))
    hooks.install_signal_handlers()

    server_address = local or settings.local_server or registration.server_address
    logger.info("Connecting server", extra={"server_address": server_address})

    connect = partial(
        connect_server,
        topic=settings.channel,
        client_id=f"{settings.node_name}-{registration.node_id}",
    )
    connection = connect(server_address)
    if connection is None:
        hooks.run()
        typer.secho(
            f"Can't connect server {server_address}", fg=typer.colors.RED, err=True
        )
        raise typer.Exit(code=1)

    store = build_default_store(base_dir)
    hooks.register(store.close)

    service = StoreService(
        store=store, server_address=server_address, connection=connection
    )
    policy = RetryPolicy(
        backoff_seconds=settings.reconnect_backoff if backoff is None else backoff,
        max_attempts=settings.max_reconnects,
    )
    subscriber = ReconnectingSubscriber(service, connect=connect, policy=policy)

    logger.info("Subscribe supply", extra={"server_address": server_address})
    try:
        subscriber.run()
    finally:
        hooks.run()
