import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from logwatch.core.config import (
    DEFAULT_ADDRESS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEOUT_S,
    Mode,
    WatchConfig,
    parse_duration,
)
from logwatch.core.errors import ConfigError, WatchError

console = Console(stderr=True)

DEFAULT_CONFIG_FILE = "config.json"

# config file key -> option name
_CONFIG_KEYS = {
    "endpoint": "endpoint",
    "address": "address",
    "timeout": "timeout",
    "subscribe": "subscribe",
    "getlogs": "get_logs",
    "get_logs": "get_logs",
    "limit": "limit",
    "start_block": "start_block",
    "retry_delay": "retry_delay",
}


class Duration(click.ParamType):
    """Go-style duration (`60s`, `1m30s`, `500ms`) or plain seconds."""

    name = "duration"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> float:
        if isinstance(value, float):
            return value
        try:
            return parse_duration(value)
        except ConfigError as e:
            self.fail(str(e), param, ctx)


def _load_config_file(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    """Feed a JSON config file into the defaults of the remaining options."""
    path = Path(value) if value else Path(DEFAULT_CONFIG_FILE)
    if not path.is_file():
        if value:
            raise click.BadParameter(f"no such file: {value}", ctx=ctx, param=param)
        return value
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"cannot read {path}: {e}", ctx=ctx, param=param) from e
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must hold a JSON object", ctx=ctx, param=param)

    unknown = sorted(k for k in data if k.lower() not in _CONFIG_KEYS)
    if unknown:
        raise click.BadParameter(f"unknown keys in {path}: {', '.join(unknown)}", ctx=ctx, param=param)
    defaults = {_CONFIG_KEYS[k.lower()]: v for k, v in data.items()}
    ctx.default_map = {**defaults, **(ctx.default_map or {})}
    return str(path)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
)
def cli(log_level: str) -> None:
    """logwatch: watch an EVM contract's logs by subscription or paged queries."""
    setup_logging(log_level)


@cli.command("watch")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=str,
    default=None,
    is_eager=True,
    expose_value=False,
    callback=_load_config_file,
    help=f"JSON config file (default: ./{DEFAULT_CONFIG_FILE} if present)",
)
@click.option("--endpoint", envvar="ES_ENDPOINT", required=True, help="Node endpoint (ws://, wss://, http://, https://)")
@click.option("--address", envvar="ES_ADDRESS", default=DEFAULT_ADDRESS, show_default=True, help="Contract address to watch")
@click.option(
    "--timeout",
    envvar="ES_TIMEOUT",
    type=Duration(),
    default=DEFAULT_TIMEOUT_S,
    show_default=True,
    help="Deadline for connect, subscribe and each query",
)
@click.option("--subscribe/--no-subscribe", envvar="ES_SUBSCRIBE", default=False, help="Stream live logs")
@click.option("--get-logs/--no-get-logs", "get_logs", envvar="ES_GETLOGS", default=False, help="Page through historical logs")
@click.option("--limit", envvar="ES_LIMIT", type=int, default=DEFAULT_PAGE_SIZE, show_default=True, help="Blocks per query window")
@click.option("--start-block", envvar="ES_START_BLOCK", type=int, default=0, show_default=True, help="First block for --get-logs")
@click.option(
    "--retry-delay",
    envvar="ES_RETRY_DELAY",
    type=Duration(),
    default=0.0,
    show_default=True,
    help="Pause before retrying a failed query window",
)
@click.option("--max-events", type=int, default=None, help="Stop after this many subscription events")
@click.option("--max-iterations", type=int, default=None, help="Stop after this many query attempts")
def watch_cmd(
    endpoint: str,
    address: str,
    timeout: float,
    subscribe: bool,
    get_logs: bool,
    limit: int,
    start_block: int,
    retry_delay: float,
    max_events: int | None,
    max_iterations: int | None,
) -> None:
    """Subscribe to, or page through, the logs of one contract."""
    try:
        config = WatchConfig(
            endpoint=endpoint,
            address=address,
            timeout_s=timeout,
            mode=Mode.from_flags(subscribe, get_logs),
            page_size=limit,
            start_block=start_block,
            retry_delay_s=retry_delay,
        )
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    from logwatch.orchestration import watch

    try:
        output = asyncio.run(watch(config, max_events=max_events, max_iterations=max_iterations))
    except KeyboardInterrupt:
        console.print("[yellow]interrupted[/]")
        return
    except WatchError as e:
        raise click.ClickException(str(e)) from e

    if output.mode is Mode.SUBSCRIBE:
        console.print(f"[bold]done[/]: {output.events} events")
    elif output.mode is Mode.POLL:
        console.print(f"[bold]done[/]: next offset {output.next_offset:,}")
