"""
Watchlist commands for the CryptoPulse CLI
"""

import click
import logging
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cryptopulse.models import RiskSummary
from cryptopulse.utils import risk_style
from cryptopulse.watchlist import WatchlistRanker
from cryptopulse.commands.markets import make_api, make_poller, load_market, _display_tokens_table

logger = logging.getLogger("cryptopulse")


@click.group()
def watchlist():
    """Commands for managing the token watchlist"""
    pass


@watchlist.command('toggle')
@click.argument('token_id')
@click.pass_context
def toggle_token(ctx, token_id):
    """Add TOKEN_ID to the watchlist, or remove it if already watched"""
    console = ctx.obj['console']
    ranker = WatchlistRanker(ctx.obj['store'])

    if ranker.toggle_membership(token_id):
        console.print(f"[green]{token_id} added to the watchlist[/green]")
    else:
        console.print(f"[yellow]{token_id} removed from the watchlist[/yellow]")


@watchlist.command('add')
@click.argument('token_id')
@click.pass_context
def add_token(ctx, token_id):
    """Add TOKEN_ID to the watchlist"""
    console = ctx.obj['console']
    ranker = WatchlistRanker(ctx.obj['store'])

    if ranker.is_watched(token_id):
        console.print(f"[yellow]{token_id} is already in your watchlist[/yellow]")
        return
    ranker.set_membership(token_id, True)
    console.print(f"[green]{token_id} added to the watchlist[/green]")


@watchlist.command('remove')
@click.argument('token_id')
@click.pass_context
def remove_token(ctx, token_id):
    """Remove TOKEN_ID from the watchlist"""
    console = ctx.obj['console']
    ranker = WatchlistRanker(ctx.obj['store'])

    if not ranker.is_watched(token_id):
        console.print(f"[yellow]{token_id} is not in your watchlist[/yellow]")
        return
    ranker.set_membership(token_id, False)
    console.print(f"[green]{token_id} removed from the watchlist[/green]")


@watchlist.command('show')
@click.option('--risk', is_flag=True, help='Fetch market data and summarize watchlist risk')
@click.pass_context
def show_watchlist(ctx, risk):
    """Show watched tokens, optionally with a risk summary"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    ranker = WatchlistRanker(ctx.obj['store'])
    ids = sorted(ranker.watched_ids())

    if not ids:
        console.print("[yellow]Your watchlist is empty[/yellow]")
        return

    if not risk:
        table = Table(title="Watchlist")
        table.add_column("Token", style="cyan")
        for token_id in ids:
            table.add_row(token_id)
        console.print(table)
        console.print("[dim]Use 'cryptopulse watchlist show --risk' for live risk data[/dim]")
        return

    api = make_api(config)
    poller = make_poller(config, api, ranker)
    try:
        if not load_market(console, poller):
            return
    finally:
        api.close()

    ranker.set_filter('watchlist')
    tokens = ranker.visible()
    if not tokens:
        console.print("[yellow]None of your watched tokens are in the current market data[/yellow]")
        return
    _display_tokens_table(console, tokens, "Watchlist Risk")
    _display_risk_summary(console, ranker.risk_summary())


def _display_risk_summary(console: Console, summary: RiskSummary):
    """Display the watchlist risk analysis panel"""
    highest = summary.highest
    average_style = risk_style(summary.average_category)
    distribution = ", ".join(f"{category.value} {count}"
                             for category, count in summary.distribution.items() if count)
    console.print(Panel(
        f"Highest risk: [bold]{highest.name}[/bold] "
        f"([{risk_style(highest.risk_category)}]{highest.risk_index:.1f}[/{risk_style(highest.risk_category)}])\n"
        f"Average risk: [{average_style}]{summary.average_risk_index:.1f} "
        f"({summary.average_category.value})[/{average_style}]\n"
        f"Distribution: {distribution}",
        title="Watchlist Risk Analysis",
        expand=False,
    ))
