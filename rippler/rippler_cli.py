#!/usr/bin/env python3

from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import typer
import yaml
from rich.console import Console

from shared.log import configure_root_logging, get_logger
from shared.message import RemoteError, RipplerError
from shared.utils import parse_command_line
from .config import ClientConfig, load_config
from .dispatcher import Dispatcher, Result

app = typer.Typer(help="Rippler: command line client for the ledger WebSocket API")
console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)


def build_dispatcher(config: ClientConfig) -> Dispatcher:
    return Dispatcher(config, emit=lambda item: console.print(item, markup=False))


async def _execute(dispatcher: Dispatcher, command: str, params: Dict[str, Any],
                   timeout: Optional[float]) -> Result:
    # wait_for(..., None) waits forever
    return await asyncio.wait_for(dispatcher.process(command, params), timeout)


def _print_result(result: Result) -> None:
    if result is None:
        return
    if isinstance(result, list):
        for line in result:
            console.print(line, markup=False, highlight=False)
        return
    console.print_json(data=result)


@app.command()
def run(
    words: Optional[List[str]] = typer.Argument(
        None, help="COMMAND (default account_info) followed by key:value params; [a,b] is a list"
    ),
    uri: Optional[str] = typer.Option(None, help="WebSocket URI of the ledger service"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
    timeout: Optional[float] = typer.Option(None, help="Give up after this many seconds"),
    log_level: str = typer.Option("WARNING", help="DEBUG, INFO, WARNING or ERROR"),
):
    """Send one command to the ledger and print the reply."""
    try:
        command, params = parse_command_line(words or [])
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="WORDS")

    configure_root_logging(log_level)
    try:
        cfg = load_config(config, uri=uri)
    except (OSError, ValueError, yaml.YAMLError) as e:
        err_console.print(f"Cannot load config: {e}", style="red", markup=False)
        raise typer.Exit(code=1)

    logger.info("Running %s", command, extra={"command": command, "uri": cfg.uri})
    dispatcher = build_dispatcher(cfg)
    try:
        result = asyncio.run(_execute(dispatcher, command, params, timeout))
    except RemoteError as e:
        err_console.print(str(e), style="bold red", markup=False)
        err_console.print_json(data=e.document)
        raise typer.Exit(code=1)
    except RipplerError as e:
        err_console.print(f"{type(e).__name__}: {e}", style="bold red", markup=False)
        raise typer.Exit(code=1)
    except asyncio.TimeoutError:
        err_console.print(f"Timed out after {timeout}s", style="bold red")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        raise typer.Exit(code=130)

    _print_result(result)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
