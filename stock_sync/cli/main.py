# stock_sync/cli/main.py
import click

from stock_sync.cli.check_api import check_api
from stock_sync.cli.check_data import check_data
from stock_sync.cli.create_tables import create_tables
from stock_sync.cli.sync_all import sync_all
from stock_sync.cli.sync_retro import sync_retro


@click.group()
def cli():
    """Stock sync command line tools"""


cli.add_command(sync_all)
cli.add_command(sync_retro)
cli.add_command(check_api)
cli.add_command(check_data)
cli.add_command(create_tables)


if __name__ == "__main__":
    cli()
