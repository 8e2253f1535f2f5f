# stock_sync/cli/sync_all.py
import asyncio
import logging
import click
from datetime import datetime

from stock_sync.core.logging_config import configure_logging
from stock_sync.schemas.sync import SyncSummary
from stock_sync.services.sync_runner import run_sync_all

logger = logging.getLogger(__name__)


def echo_summary(summary: SyncSummary) -> None:
    click.echo(f"Total: {summary.total}")
    click.echo(f"Success: {summary.success}")
    click.echo(f"Failed: {summary.failed}")
    click.echo(f"Records: {summary.total_records}")
    for outcome in summary.results:
        status = "OK " if outcome.success else "ERR"
        line = f"  [{status}] {outcome.warehouse}"
        if outcome.date:
            line += f" @ {outcome.date}"
        line += f": {outcome.record_count}"
        if outcome.error:
            line += f" ({outcome.error})"
        click.echo(line)


@click.command("sync-all")
def sync_all():
    """Sync the current stock of every listed warehouse once"""
    configure_logging()

    start_time = datetime.now()
    logger.info(f"Starting stock sync at {start_time}")

    summary = asyncio.run(run_sync_all())

    click.echo("\nSync completed!")
    echo_summary(summary)
    logger.info(f"Completed stock sync in {datetime.now() - start_time}")

    if summary.failed:
        raise SystemExit(1)
