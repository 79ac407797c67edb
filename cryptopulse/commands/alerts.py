"""
Price alert commands for the CryptoPulse CLI
"""

import click
import logging
from rich.console import Console
from rich.table import Table
from typing import Dict, List, Optional

from cryptopulse.alerts import AlertBook, AlertError, alert_status, DIRECTIONS
from cryptopulse.api import APIError
from cryptopulse.models import PriceAlert
from cryptopulse.utils import handle_api_error, format_currency
from cryptopulse.commands.markets import make_api

logger = logging.getLogger("cryptopulse")

STATUS_STYLES = {
    "triggered": "magenta",
    "inactive": "dim",
    "condition_met": "green",
    "approaching": "yellow",
    "waiting": "blue",
    "unavailable": "dim",
}


@click.group()
def alerts():
    """Commands for managing price alerts"""
    pass


@alerts.command('add')
@click.argument('token_id')
@click.argument('price', type=float)
@click.option('--direction', type=click.Choice(DIRECTIONS), default='above',
              help='Fire when the price goes above or below PRICE')
@click.option('--symbol', help='Display symbol for the token')
@click.pass_context
def add_alert(ctx, token_id, price, direction, symbol):
    """Create an alert for TOKEN_ID at PRICE"""
    console = ctx.obj['console']
    book = AlertBook(ctx.obj['store'])

    try:
        alert = book.add_alert(token_id, price, direction, symbol=symbol)
    except AlertError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    console.print(f"[green]Alert created: {alert.symbol or alert.token_id} "
                  f"{alert.direction} {format_currency(alert.threshold_price)}[/green]")


@alerts.command('list')
@click.option('--live', is_flag=True, help='Fetch current prices to show alert status')
@click.pass_context
def list_alerts(ctx, live):
    """List price alerts"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    book = AlertBook(ctx.obj['store'])

    if not book.alerts:
        console.print("[yellow]No alerts defined[/yellow]")
        return

    prices: Dict[str, float] = {}
    if live:
        api = make_api(config)
        try:
            ids = sorted({alert.token_id for alert in book.alerts})
            with console.status("[bold green]Fetching prices..."):
                snapshots = api.get_market_snapshots(vs_currency=config.get('vs_currency', 'usd'),
                                                     ids=ids, per_page=len(ids))
            prices = {snapshot.id: snapshot.current_price for snapshot in snapshots}
        except APIError as e:
            handle_api_error(e, console)
        finally:
            api.close()

    _display_alerts_table(console, book.alerts, prices if live else None)


@alerts.command('remove')
@click.argument('number', type=int)
@click.pass_context
def remove_alert(ctx, number):
    """Delete alert NUMBER (as shown by 'alerts list')"""
    console = ctx.obj['console']
    book = AlertBook(ctx.obj['store'])
    try:
        alert = book.remove_alert(number - 1)
    except AlertError:
        console.print(f"[yellow]No alert numbered {number}[/yellow]")
        return
    console.print(f"[green]Removed alert for {alert.symbol or alert.token_id}[/green]")


@alerts.command('toggle')
@click.argument('number', type=int)
@click.pass_context
def toggle_alert(ctx, number):
    """Switch alert NUMBER on or off"""
    console = ctx.obj['console']
    book = AlertBook(ctx.obj['store'])
    try:
        alert = book.toggle_alert(number - 1)
    except AlertError:
        console.print(f"[yellow]No alert numbered {number}[/yellow]")
        return
    state = "enabled" if alert.active else "disabled"
    console.print(f"[green]Alert {number} {state}[/green]")


@alerts.command('reset')
@click.argument('number', type=int)
@click.pass_context
def reset_alert(ctx, number):
    """Re-arm a triggered alert"""
    console = ctx.obj['console']
    book = AlertBook(ctx.obj['store'])
    try:
        book.reset_alert(number - 1)
    except AlertError:
        console.print(f"[yellow]No alert numbered {number}[/yellow]")
        return
    console.print(f"[green]Alert {number} re-armed[/green]")


@alerts.command('check')
@click.pass_context
def check_alerts(ctx):
    """Fetch current prices and fire any alerts whose condition is met"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    book = AlertBook(ctx.obj['store'])

    armed = [alert for alert in book.alerts if alert.active and not alert.triggered]
    if not armed:
        console.print("[yellow]No armed alerts to check[/yellow]")
        return

    api = make_api(config)
    try:
        ids = sorted({alert.token_id for alert in armed})
        with console.status("[bold green]Checking alerts..."):
            snapshots = api.get_market_snapshots(vs_currency=config.get('vs_currency', 'usd'),
                                                 ids=ids, per_page=len(ids))
        fired = book.evaluate(snapshots)
    except APIError as e:
        handle_api_error(e, console)
        return
    finally:
        api.close()

    if not fired:
        console.print("[blue]No alerts triggered[/blue]")
        return
    for alert in fired:
        console.print(f"[bold magenta]{alert.symbol or alert.token_id} alert triggered: "
                      f"price is {alert.direction} {format_currency(alert.threshold_price)}[/bold magenta]")


def _display_alerts_table(console: Console, alert_list: List[PriceAlert],
                          prices: Optional[Dict[str, float]]):
    """Display alerts as a table"""
    table = Table(title="Price Alerts")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Token", style="cyan")
    table.add_column("Condition")
    table.add_column("Current", justify="right")
    table.add_column("Status")

    for number, alert in enumerate(alert_list, start=1):
        price = prices.get(alert.token_id) if prices is not None else None
        if prices is None:
            status = "triggered" if alert.triggered else ("active" if alert.active else "inactive")
        else:
            status = alert_status(alert, price)
        style = STATUS_STYLES.get(status, "white")
        table.add_row(
            str(number),
            alert.symbol or alert.token_id,
            f"{alert.direction} {format_currency(alert.threshold_price)}",
            format_currency(price) if price is not None else "-",
            f"[{style}]{status}[/{style}]",
        )

    console.print(table)
