"""CLI entry point for the matchmaker client."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from matchmaker_client.client import Matchmaker
from matchmaker_client.config import load_config
from matchmaker_client.errors import MatchmakerError
from matchmaker_client.models.events import PendingBundle, PendingEvent, StreamEvent
from matchmaker_client.models.results import EventHistoryParams


def _format_event(event: PendingEvent) -> str:
    parts = [f"[{event.kind.value}]", event.hash]
    if isinstance(event, PendingBundle):
        parts.append(f"txs={len(event.txs or ())}")
    else:
        if event.to:
            parts.append(f"to={event.to}")
        if event.function_selector:
            parts.append(f"selector={event.function_selector}")
    if event.mev_gas_price is not None:
        parts.append(f"mevGasPrice={event.mev_gas_price}")
    if event.gas_used is not None:
        parts.append(f"gasUsed={event.gas_used}")
    if event.logs:
        parts.append(f"logs={len(event.logs)}")
    return " ".join(parts)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """matchmaker-client - bundle submission and event stream client."""
    ctx.ensure_object(dict)
    try:
        cfg = load_config(config_path)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    ctx.obj["config"] = cfg

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the resolved configuration."""
    cfg = ctx.obj["config"]
    attempts = cfg.stream.max_reconnect_attempts
    click.echo(f"Network:     {cfg.network} (chain {cfg.chain_id})")
    click.echo(f"API URL:     {cfg.api_url}")
    click.echo(f"Stream URL:  {cfg.stream_url}")
    click.echo(f"RPC timeout: {cfg.rpc_timeout}s")
    click.echo(
        f"Reconnect:   {cfg.stream.reconnect_delay}s..{cfg.stream.max_reconnect_delay}s, "
        f"{'unlimited' if attempts is None else attempts} attempts"
    )


@cli.command()
@click.option(
    "-k", "--kind",
    type=click.Choice(["all"] + [k.value for k in StreamEvent]),
    default="all",
    help="Event kind to print",
)
@click.pass_context
def listen(ctx: click.Context, kind: str) -> None:
    """Print pending transactions and bundles from the event stream."""
    cfg = ctx.obj["config"]
    kinds = list(StreamEvent) if kind == "all" else [StreamEvent(kind)]

    async def _listen() -> None:
        client = Matchmaker.from_config(cfg)
        try:
            for k in kinds:
                await client.subscribe(k, lambda event: click.echo(_format_event(event)))
            await client.subscriptions.wait_closed()
        finally:
            await client.close()

    click.echo(f"Listening on {cfg.stream_url} ({kind}); Ctrl-C to stop")
    try:
        asyncio.run(_listen())
    except KeyboardInterrupt:
        pass


@cli.command("history-info")
@click.pass_context
def history_info(ctx: click.Context) -> None:
    """Show the range covered by the event history API."""
    cfg = ctx.obj["config"]

    async def _info():
        return await Matchmaker.from_config(cfg).get_event_history_info()

    try:
        info = asyncio.run(_info())
    except MatchmakerError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Events:     {info.count}")
    click.echo(f"Blocks:     {info.min_block} - {info.max_block}")
    click.echo(f"Timestamps: {info.min_timestamp} - {info.max_timestamp}")
    click.echo(f"Max limit:  {info.max_limit}")


@cli.command()
@click.option("--block-start", type=int, default=None)
@click.option("--block-end", type=int, default=None)
@click.option("--limit", type=int, default=20, show_default=True)
@click.option("--offset", type=int, default=None)
@click.pass_context
def history(
    ctx: click.Context,
    block_start: int | None,
    block_end: int | None,
    limit: int,
    offset: int | None,
) -> None:
    """Print past stream events."""
    cfg = ctx.obj["config"]
    params = EventHistoryParams(
        block_start=block_start, block_end=block_end, limit=limit, offset=offset,
    )

    async def _history():
        return await Matchmaker.from_config(cfg).get_event_history(params)

    try:
        entries = asyncio.run(_history())
    except MatchmakerError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    for entry in entries:
        click.echo(f"block {entry.block} @{entry.timestamp} {_format_event(entry.hint)}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
