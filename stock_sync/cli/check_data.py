# stock_sync/cli/check_data.py
import asyncio
import click

from stock_sync.database import get_session
from stock_sync.services.stock_store import StockStore


async def run_check(limit: int) -> int:
    async with get_session() as session:
        store = StockStore(session)

        total = await store.count_all()
        click.echo(f"Rows in stock_snapshots: {total}")
        if total == 0:
            click.echo("The table is empty, no data has been written yet.")
            return 1

        click.echo("\nRows per warehouse:")
        for index, (warehouse_id, count, first_sync, last_sync) in enumerate(await store.summarize_by_warehouse(), 1):
            click.echo(f"  {index}. {warehouse_id}: {count} rows (first sync {first_sync}, last sync {last_sync})")

        click.echo(f"\nLatest {limit} rows:")
        for row in await store.latest(limit):
            click.echo(
                f"  {row.sync_timestamp} | {row.warehouse_id} | {row.product_id} | "
                f"on hand {row.quantity_on_hand}, reserved {row.quantity_reserved}, "
                f"available {row.quantity_available}, cost {row.average_cost}"
            )
        return 0


@click.command("check-data")
@click.option("--limit", default=10, show_default=True, help="Number of latest rows to show")
def check_data(limit):
    """Show what the sync has written to the database"""
    raise SystemExit(asyncio.run(run_check(limit)))
