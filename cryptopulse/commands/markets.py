"""
Market commands for the CryptoPulse CLI
"""

import click
import logging
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from typing import List, Optional

from cryptopulse.alerts import AlertBook
from cryptopulse.api import MarketDataAPI, APIError
from cryptopulse.config import Config
from cryptopulse.models import ScoredToken
from cryptopulse.refresh import MarketPoller
from cryptopulse.scoring import score
from cryptopulse.watchlist import WatchlistRanker, SORT_FIELDS, SORT_DIRECTIONS
from cryptopulse.utils import (
    format_output,
    handle_api_error,
    format_currency,
    format_number,
    format_percent,
    risk_style,
    truncate_string,
)

logger = logging.getLogger("cryptopulse")

FILTER_CHOICES = ['all', 'watchlist', 'non-watchlist']


def make_api(config: Config) -> MarketDataAPI:
    return MarketDataAPI(
        config.api_url,
        timeout=config.get('timeout', 30),
        max_retries=config.get('max_retries', 3),
        api_key=config.get('api_key'),
    )


def make_poller(config: Config, api: MarketDataAPI, ranker: WatchlistRanker,
                alert_book=None) -> MarketPoller:
    return MarketPoller(
        api,
        ranker,
        alert_book=alert_book,
        interval=config.get('refresh_interval', 60),
        use_fallback=config.get('use_fallback', True),
        vs_currency=config.get('vs_currency', 'usd'),
        per_page=config.get('per_page', 100),
    )


def load_market(console: Console, poller: MarketPoller) -> bool:
    """Run one refresh, reporting failures; False when there is nothing to show"""
    with console.status("[bold green]Fetching market data..."):
        updated = poller.poll_once()
    if updated:
        return True
    if poller.using_fallback:
        console.print(f"[yellow]Market data unavailable ({poller.last_error}); "
                      f"showing fallback data[/yellow]")
        return True
    handle_api_error(APIError(poller.last_error), console)
    return False


@click.group()
def markets():
    """Commands for browsing risk-scored market data"""
    pass


@markets.command('list')
@click.option('--search', help='Case-insensitive match on name or symbol')
@click.option('--filter', 'filter_mode', type=click.Choice(FILTER_CHOICES), default='all',
              help='Restrict to watched or unwatched tokens')
@click.option('--sort', 'sort_field', type=click.Choice(SORT_FIELDS), default='risk_index',
              help='Sort field')
@click.option('--direction', type=click.Choice(SORT_DIRECTIONS), default='desc', help='Sort direction')
@click.option('--limit', type=int, default=25, help='Maximum number of rows to show')
@click.option('--format', type=click.Choice(['table', 'json', 'csv']), help='Output format')
@click.option('--output', type=click.Path(), help='Save output to file')
@click.pass_context
def list_markets(ctx, search, filter_mode, sort_field, direction, limit, format, output):
    """List tokens with their risk index"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    api = make_api(config)
    ranker = WatchlistRanker(ctx.obj['store'])
    poller = make_poller(config, api, ranker)

    try:
        if not load_market(console, poller):
            return

        ranker.set_search(search)
        ranker.set_filter(filter_mode)
        tokens = ranker.sort_by(sort_field, direction)
        if limit and limit > 0:
            tokens = tokens[:limit]

        output_format = format or config.get('format', 'table')
        if output_format == 'table':
            _display_tokens_table(console, tokens, f"Market Risk ({sort_field} {direction})")
        else:
            format_output([token.to_dict() for token in tokens], output_format, output, console)
    finally:
        api.close()


@markets.command('score')
@click.argument('token_id')
@click.option('--format', type=click.Choice(['table', 'json']), help='Output format')
@click.pass_context
def score_token(ctx, token_id, format):
    """Show the risk breakdown for a single token"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    api = make_api(config)
    try:
        with console.status(f"[bold green]Fetching {token_id}..."):
            snapshots = api.get_market_snapshots(vs_currency=config.get('vs_currency', 'usd'),
                                                 ids=[token_id])
        snapshot = snapshots[0] if snapshots else api.get_coin_snapshot(
            token_id, vs_currency=config.get('vs_currency', 'usd'))
        if snapshot is None:
            console.print(f"[yellow]Token '{token_id}' not found[/yellow]")
            return

        assessment = score(snapshot)

        if (format or 'table') == 'json':
            data = snapshot.to_dict()
            data.update(assessment.to_dict())
            format_output(data, 'json', None, console)
            return

        style = risk_style(assessment.risk_category)
        console.print(Panel(
            f"[bold]{snapshot.name} ({snapshot.symbol})[/bold]\n"
            f"Risk index: [{style}]{assessment.risk_index:.1f} "
            f"({assessment.risk_category.value})[/{style}]",
            expand=False,
        ))

        table = Table(title="Risk Factors")
        table.add_column("Factor", style="cyan")
        table.add_column("Input", style="white")
        table.add_column("Points", style="green", justify="right")
        table.add_row("Volatility", format_percent(snapshot.price_change_percentage_24h),
                      f"{assessment.volatility_factor:.2f}")
        table.add_row("Market cap", format_currency(snapshot.market_cap),
                      f"{assessment.market_cap_factor:.0f}")
        table.add_row("Liquidity", f"volume {format_currency(snapshot.total_volume)}",
                      f"{assessment.liquidity_factor:.0f}")
        table.add_row("Rank", str(snapshot.market_cap_rank or "unknown"),
                      f"{assessment.rank_factor:.1f}")
        table.add_row("Age", "n/a", f"{assessment.age_factor:.0f}")
        console.print(table)
    except APIError as e:
        handle_api_error(e, console)
    finally:
        api.close()


@markets.command('watch')
@click.option('--interval', type=float, help='Seconds between refreshes')
@click.option('--iterations', type=int, help='Stop after this many refreshes')
@click.option('--watchlist-only', is_flag=True, help='Only show watched tokens')
@click.option('--limit', type=int, default=15, help='Maximum number of rows to show')
@click.pass_context
def watch_markets(ctx, interval, iterations, watchlist_only, limit):
    """Poll market data and re-render the ranking on every refresh"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    api = make_api(config)
    ranker = WatchlistRanker(ctx.obj['store'])
    alert_book = AlertBook(ctx.obj['store'])
    poller = make_poller(config, api, ranker, alert_book=alert_book)
    if interval:
        poller.interval = interval
        poller.stale_after = interval * 2
    if watchlist_only:
        ranker.set_filter('watchlist')

    def on_cycle(updated: bool):
        if not updated:
            note = "fallback data" if poller.using_fallback else "stale data"
            console.print(f"[yellow]Refresh failed ({poller.last_error}); showing {note}[/yellow]")
        tokens = ranker.visible()[:limit]
        _display_tokens_table(console, tokens, "Market Risk")
        for alert in poller.fired_alerts:
            label = alert.symbol or alert.token_id
            console.print(f"[bold magenta]Alert: {label} is {alert.direction} "
                          f"{format_currency(alert.threshold_price)}[/bold magenta]")

    try:
        poller.run(iterations=iterations, on_cycle=on_cycle)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching[/yellow]")
    finally:
        api.close()


def _display_tokens_table(console: Console, tokens: List[ScoredToken], title: Optional[str] = None):
    """Display scored tokens as a table"""
    table = Table(title=title or "Tokens")
    table.add_column("Rank", style="dim", justify="right")
    table.add_column("Token", style="cyan")
    table.add_column("Price", justify="right")
    table.add_column("24h", justify="right")
    table.add_column("Market Cap", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Risk", justify="right")
    table.add_column("Category")
    table.add_column("Watch", justify="center")

    for token in tokens:
        change_style = "green" if token.price_change_percentage_24h >= 0 else "red"
        style = risk_style(token.risk_category)
        table.add_row(
            str(token.market_cap_rank or "-"),
            f"{truncate_string(token.name, 24)} ({token.symbol})",
            format_currency(token.current_price),
            f"[{change_style}]{format_percent(token.price_change_percentage_24h)}[/{change_style}]",
            format_number(token.market_cap),
            format_number(token.total_volume),
            f"[{style}]{token.risk_index:.1f}[/{style}]",
            f"[{style}]{token.risk_category.value}[/{style}]",
            "*" if token.on_watchlist else "",
        )

    if not tokens:
        console.print("[yellow]No tokens match the current search and filter[/yellow]")
    else:
        console.print(table)
