"""CLI utilities."""

import asyncio
from typing import Optional

import click

from daily_tracker.config import settings
from daily_tracker.core.errors import TrackerError
from daily_tracker.core.formatting import format_reports
from daily_tracker.core.lifecycle import clear_external_history, export_reports
from daily_tracker.core.merge import import_shared, ingest_external, parse_day_range
from daily_tracker.core.status import local_now
from daily_tracker.database import init_db
from daily_tracker.dependencies import (
    configure_logging,
    get_report_store,
    get_shared_document,
    get_state_store,
    get_status_service,
    get_telegram_source,
)
from daily_tracker.models.report import ReportType


@click.group()
def cli():
    """Daily Report Tracker CLI."""
    configure_logging()
    init_db()


@cli.command()
def status():
    """Recompute and show today's report status."""
    current = get_status_service().refresh(local_now(settings.timezone))
    click.echo(f"Status: {current.value}")


@cli.command()
def unlock():
    """Reopen today's report slot until the day changes."""
    current = get_status_service().unlock(local_now(settings.timezone))
    click.echo(f"Report creation unlocked, status: {current.value}")


@cli.command()
@click.option("--since", type=int, default=None, help="Override the stored update cursor")
def refresh_external(since: Optional[int]):
    """Pull new reports from the Telegram bot."""
    source = get_telegram_source()
    if not source.is_available():
        raise click.ClickException("TELEGRAM_TOKEN is not configured")
    try:
        result = asyncio.run(
            ingest_external(source, get_report_store(), get_state_store(), since_cursor=since)
        )
    except TrackerError as e:
        raise click.ClickException(str(e))
    click.echo(f"Added {len(result.added)}, skipped {result.skipped}, cursor {result.cursor}")


@cli.command("import-shared")
@click.option("--start", default=None, help="First day (YYYY-MM-DD)")
@click.option("--end", default=None, help="Last day (YYYY-MM-DD)")
@click.option("--device", "provenance", default=None, help="Only reports from this device")
def import_shared_cmd(start: Optional[str], end: Optional[str], provenance: Optional[str]):
    """Import reports from the shared document."""
    try:
        result = import_shared(
            get_shared_document(),
            get_report_store(),
            day_range=parse_day_range(start, end),
            provenance=provenance,
        )
    except TrackerError as e:
        raise click.ClickException(str(e))
    click.echo(f"Imported {len(result.added)}, skipped {result.skipped} duplicates")


@cli.command()
@click.option("--start", default=None, help="First day (YYYY-MM-DD)")
@click.option("--end", default=None, help="Last day (YYYY-MM-DD)")
def export_shared(start: Optional[str], end: Optional[str]):
    """Append this device's reports to the shared document."""
    try:
        count = export_reports(
            get_report_store(),
            get_shared_document(),
            day_range=parse_day_range(start, end),
            device_name=settings.device_name,
            device_identifier=settings.device_identifier,
            now=local_now(settings.timezone),
        )
    except TrackerError as e:
        raise click.ClickException(str(e))
    click.echo(f"Exported {count} reports")


@cli.command()
@click.option("--date", "day", default=None, help="Only reports for this day (YYYY-MM-DD)")
@click.option("--provenance/--no-provenance", default=False, help="Include the device line")
def show(day: Optional[str], provenance: bool):
    """Print stored reports in the shared text format."""
    day_range = parse_day_range(day)
    reports = get_report_store().fetch(day_range.start if day_range else None)
    if not reports:
        raise click.ClickException("No reports stored")
    click.echo(
        format_reports(
            reports,
            include_provenance=provenance,
            device_name=settings.device_name,
            device_identifier=settings.device_identifier,
        )
    )


@cli.command()
@click.option(
    "--type",
    "report_type",
    default="all",
    type=click.Choice(["all", ReportType.EXTERNAL.value, ReportType.SHARED.value]),
)
@click.confirmation_option(prompt="Delete the selected reports?")
def clear(report_type: str):
    """Delete stored reports."""
    store = get_report_store()
    if report_type == ReportType.EXTERNAL.value:
        deleted = clear_external_history(store, get_state_store())
        click.echo(f"Deleted {deleted} external reports")
    elif report_type == ReportType.SHARED.value:
        deleted = store.delete_by_type(ReportType.SHARED)
        click.echo(f"Deleted {deleted} shared reports")
    else:
        store.clear()
        click.echo("All reports deleted")


if __name__ == "__main__":
    cli()
