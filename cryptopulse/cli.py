"""
CryptoPulse CLI - risk-scored market watchlist and price alerts
"""

import click
import logging
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from cryptopulse import __version__
from cryptopulse.config import Config
from cryptopulse.storage import JsonFileStore
from cryptopulse.utils import setup_logging
from cryptopulse.commands.markets import markets
from cryptopulse.commands.watchlist import watchlist
from cryptopulse.commands.alerts import alerts

logger = logging.getLogger("cryptopulse")

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config', type=click.Path(), help='Path to config file (.json or .yaml)')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, config, no_color):
    """CryptoPulse CLI - market risk index, watchlist and price alerts"""
    setup_logging(debug)

    config_obj = Config(config)
    use_color = not no_color and config_obj.get('color', True)
    console = Console(color_system="auto" if use_color else None)

    ctx.ensure_object(dict)
    ctx.obj['console'] = console
    ctx.obj['config'] = config_obj
    ctx.obj['store'] = JsonFileStore(config_obj.storage_path)
    ctx.obj['debug'] = debug

    logger.debug("CLI initialized")


cli.add_command(markets)
cli.add_command(watchlist)
cli.add_command(alerts)


@cli.command()
@click.option('--key', help='Configuration key to get')
@click.pass_context
def config(ctx, key):
    """Get or list configuration values"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    if key:
        value = config.get(key)
        if value is not None:
            console.print(f"{key}: {value}")
        else:
            console.print(f"[yellow]Configuration key '{key}' not found[/yellow]")
    else:
        table = Table(title="Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")

        for k, v in config.get_all().items():
            table.add_row(k, str(v))

        console.print(table)


@cli.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_config(ctx, key, value):
    """Set a configuration value"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    if value.lower() == 'true':
        typed_value = True
    elif value.lower() == 'false':
        typed_value = False
    elif value.lower() in ('none', 'null'):
        typed_value = None
    elif value.isdigit():
        typed_value = int(value)
    elif value.replace('.', '', 1).isdigit():
        typed_value = float(value)
    else:
        typed_value = value

    config.set(key, typed_value)
    console.print(f"[green]Configuration updated: {key} = {typed_value}[/green]")


@cli.command()
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def reset_config(ctx, yes):
    """Reset configuration to defaults"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    if yes or Confirm.ask("Are you sure you want to reset all configuration to defaults?"):
        config.reset()
        console.print("[green]Configuration reset to defaults[/green]")
    else:
        console.print("[yellow]Reset cancelled[/yellow]")


if __name__ == '__main__':
    cli()
