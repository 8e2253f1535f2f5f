# stock_sync/cli/create_tables.py
import asyncio
import click

from stock_sync.database import create_tables as create_all_tables


@click.command("create-tables")
def create_tables():
    """Create all database tables directly using SQLAlchemy"""
    asyncio.run(create_all_tables())
    click.echo("All tables created successfully!")
