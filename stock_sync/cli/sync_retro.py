# stock_sync/cli/sync_retro.py
import asyncio
import click

from stock_sync.cli.sync_all import echo_summary
from stock_sync.core.exceptions import ValidationError
from stock_sync.core.logging_config import configure_logging
from stock_sync.services.sync_pipeline import generate_date_range
from stock_sync.services.sync_runner import run_sync_retrospective


@click.command("sync-retro")
@click.option("--start", "start_date", required=True, help="First day, YYYY-MM-DD")
@click.option("--end", "end_date", required=True, help="Last day (inclusive), YYYY-MM-DD")
def sync_retro(start_date, end_date):
    """Load historical stock for every warehouse and every day in a range"""
    try:
        dates = generate_date_range(start_date, end_date)
    except ValidationError as e:
        raise click.BadParameter(str(e))

    configure_logging()
    click.echo(f"Requesting {len(dates)} dates: {dates[0]} .. {dates[-1]}")

    summary = asyncio.run(run_sync_retrospective(start_date, end_date))

    click.echo(f"\nRetrospective sync completed for {len(summary.dates)} dates x {summary.warehouses} warehouses")
    echo_summary(summary)

    if summary.failed:
        raise SystemExit(1)
