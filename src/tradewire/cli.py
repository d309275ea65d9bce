"""Typer-based CLI for inspecting the account and watching trades."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from .client import Client
    from .models import SpotOrder
    from .settings import Settings


def _load_settings(config_path: Optional[Path] = None) -> "Settings":
    from .config import load_settings
    return load_settings(config_path)


def _build_client(settings: "Settings") -> "Client":
    from .client import Client
    return Client.from_settings(settings)


def _configure_logging(log_dir: Path | None = None) -> None:
    from .logging import configure_logging
    configure_logging(log_dir)


app = typer.Typer(help="Venue REST and WebSocket client CLI")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


@app.callback()
def main(
    log_dir: Optional[Path] = typer.Option(None, help="Directory for the rotating log file"),
) -> None:
    _configure_logging(log_dir)


def _run(coro_factory, config: Optional[Path]) -> None:
    """Build a client, run one coroutine against it and always close it."""

    async def runner() -> None:
        client = _build_client(_load_settings(config))
        try:
            await coro_factory(client)
        finally:
            await client.close()

    try:
        asyncio.run(runner())
    except Exception as e:
        logger.error("Command failed: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _orders_table(title: str, orders: list["SpotOrder"]) -> Table:
    table = Table(title=title)
    table.add_column("Order ID", style="magenta")
    table.add_column("Symbol", style="green")
    table.add_column("Side", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Price", justify="right")
    table.add_column("Orig Qty", justify="right")
    table.add_column("Executed", justify="right")
    table.add_column("Status", style="white")
    for order in orders:
        table.add_row(
            str(order.order_id),
            order.symbol,
            order.side.value,
            order.type.value,
            str(order.price),
            str(order.orig_qty),
            str(order.executed_qty),
            order.status.value,
        )
    return table


@app.command()
def account(
    show_zero: bool = typer.Option(False, help="Include assets with a zero balance"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show account permissions and balances."""

    async def show(client: "Client") -> None:
        info = await client.account_information()
        console.print(Panel.fit(
            f"Account type: [cyan]{info.account_type}[/cyan]\n"
            f"Can trade: [bold]{info.can_trade}[/bold]  "
            f"Can deposit: [bold]{info.can_deposit}[/bold]  "
            f"Can withdraw: [bold]{info.can_withdraw}[/bold]\n"
            f"Updated: {info.update_time.isoformat()}",
            title="Account",
        ))
        table = Table(title="Balances")
        table.add_column("Asset", style="green")
        table.add_column("Free", justify="right")
        table.add_column("Locked", justify="right")
        table.add_column("Total", justify="right", style="bold")
        for asset, balance in sorted(info.balances.items()):
            if not show_zero and not balance.total:
                continue
            table.add_row(asset, str(balance.free), str(balance.locked), str(balance.total))
        console.print(table)

    _run(show, config)


@app.command()
def open_orders(
    symbol: Optional[str] = typer.Option(None, help="Only list orders on this symbol"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List open orders."""

    async def show(client: "Client") -> None:
        orders = await client.open_orders(symbol.upper() if symbol else None)
        if not orders:
            console.print("[yellow]No open orders[/yellow]")
            return
        console.print(_orders_table("Open Orders", orders))

    _run(show, config)


@app.command()
def order(
    symbol: str = typer.Argument(..., help="Trading symbol"),
    order_id: int = typer.Argument(..., help="Order ID assigned by the venue"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show a single order."""

    async def show(client: "Client") -> None:
        result = await client.query_order_by_id(symbol.upper(), order_id)
        console.print(_orders_table("Order", [result]))

    _run(show, config)


@app.command()
def cancel(
    symbol: str = typer.Argument(..., help="Trading symbol"),
    order_id: int = typer.Argument(..., help="Order ID assigned by the venue"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Cancel an open order."""

    async def run(client: "Client") -> None:
        result = await client.cancel_order_by_id(symbol.upper(), order_id)
        console.print(
            f"[green]✓[/green] Order [magenta]{result.order_id}[/magenta] "
            f"on {result.symbol} is now [bold]{result.status.value}[/bold]"
        )

    _run(run, config)


@app.command()
def trades(
    symbol: str = typer.Argument(..., help="Trading symbol"),
    count: int = typer.Option(10, min=1, help="Stop after this many trades"),
    format_type: str = typer.Option("table", help="Output format (table/json)"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Print live trades from the WebSocket stream."""

    async def watch(client: "Client") -> None:
        received = 0
        async with client.trades(symbol) as stream:
            async for item in stream:
                if item.is_error:
                    raise item.error
                trade = item.event
                if format_type == "json":
                    console.print_json(json.dumps(trade.model_dump(mode="json")))
                else:
                    side = "[red]SELL[/red]" if trade.is_buyer_maker else "[green]BUY[/green]"
                    console.print(
                        f"{trade.trade_time.isoformat()} {trade.symbol} {side} "
                        f"{trade.quantity} @ {trade.price}"
                    )
                received += 1
                if received >= count:
                    break
        console.print(f"\n[bold]Total trades:[/bold] {received}")

    _run(watch, config)


@app.command()
def config_show(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the effective configuration with secrets masked."""
    try:
        settings = _load_settings(config)
    except Exception as e:
        logger.error("Failed to load config: %s", e, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print_json(json.dumps(settings.redacted()))


if __name__ == "__main__":
    app()
