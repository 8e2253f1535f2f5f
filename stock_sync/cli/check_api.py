# stock_sync/cli/check_api.py
import asyncio
import click

from stock_sync.core.config import StockApiConfig, get_settings
from stock_sync.services.stock_api.client import StockApiClient


@click.command("check-api")
def check_api():
    """Check that the stock API is reachable with the configured credentials"""
    config = StockApiConfig.from_settings(get_settings())

    click.echo("API settings:")
    click.echo(f"  URL: {config.url}")
    if config.auth_method == "bearer":
        click.echo("  Auth: Bearer token")
        click.echo(f"  Token: {config.token[:10]}...")
    elif config.auth_method == "basic":
        click.echo("  Auth: Basic")
        click.echo(f"  Login: {config.login}")
        click.echo(f"  Password: {'*' * len(config.password)}")
    else:
        click.echo("Error: no credentials. Set STOCK_API_TOKEN or STOCK_API_LOGIN and STOCK_API_PASSWORD", err=True)
        raise SystemExit(1)

    if asyncio.run(StockApiClient(config).health_check()):
        click.echo("Stock API is reachable")
    else:
        click.echo("Stock API is not reachable", err=True)
        raise SystemExit(1)
