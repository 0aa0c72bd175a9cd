"""CLI commands for report statistics and the PDF archive."""

import asyncio
import json

import click

from ..config import get_settings
from ..db import close_all_connections, get_session_factory
from ..rendering import PdfArchive
from ..workflow import SequenceGenerator, StatisticsAggregator


@click.command("stats")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json: bool) -> None:
    """Show dashboard statistics."""

    async def _stats() -> None:
        settings = get_settings()
        try:
            aggregator = StatisticsAggregator(get_session_factory(), settings.business_tz)
            result = await aggregator.get_statistics()
        finally:
            await close_all_connections()

        if as_json:
            click.echo(json.dumps(result.model_dump(), indent=2))
            return

        click.echo(f"Today's inquiries:  {result.today_inquiries}")
        click.echo(f"Pending approvals:  {result.pending_approvals}")
        click.echo(f"Completed (month):  {result.monthly_completed}")
        click.echo(f"Escalations:        {result.escalations}")

    asyncio.run(_stats())


@click.group("pdf")
def pdf_group() -> None:
    """Inspect the PDF archive."""
    pass


@pdf_group.command("list")
@click.option("--limit", "-l", default=20, type=int, help="Maximum results")
def list_pdfs(limit: int) -> None:
    """List archived PDFs, newest first."""
    settings = get_settings()
    archive = PdfArchive(
        settings.pdf_storage_path,
        SequenceGenerator(get_session_factory()),
        settings.business_tz,
    )
    files = archive.list()[:limit]
    if not files:
        click.echo(f"No PDFs in {settings.pdf_storage_path}")
        return

    for pdf in files:
        click.echo(f"{pdf.filename:<40} {pdf.size_bytes:>10,} bytes")
