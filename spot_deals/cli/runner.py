# spot_deals/cli/runner.py

"""Headless runners for the pipeline, health check and leaderboard view."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from spot_deals.models.global_deal import GlobalDeal
from spot_deals.scrapers.region_catalog import RegionCatalogError
from spot_deals.services.pipeline import SpotPipeline
from spot_deals.storage.dataset_store import (
    DatasetStoreError,
    JsonFileStore,
)

logger = logging.getLogger("spot_deals.cli")

# Stderr console for status messages
_err = Console(stderr=True)


def _print_leaderboard(
    deals: list[GlobalDeal], title: str = "Global Top Spot Deals",
) -> None:
    """Render the leaderboard as a Rich table on stdout."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Instance", style="bold")
    table.add_column("vCPUs", justify="right")
    table.add_column("Memory", justify="right")
    table.add_column("Price/h", justify="right", style="green")
    table.add_column("Per vCPU", justify="right", style="green")
    table.add_column("Region", style="magenta")

    for idx, d in enumerate(deals, 1):
        table.add_row(
            str(idx),
            d.instance_type,
            str(d.vcpus),
            d.memory or "-",
            f"${d.price:.4f}",
            f"${d.price_per_vcpu:.5f}",
            d.region,
        )

    Console().print(table)


async def run_pipeline(
    output_path: str | None = None,
    dry_run: bool = False,
) -> int:
    """Run one refresh and return an exit code (0=ok, 1=fatal)."""
    store = JsonFileStore(Path(output_path) if output_path else None)
    pipeline = SpotPipeline(store)

    _err.print(f"[bold]Refreshing spot deals[/bold] [dim]→ {store.path}[/dim]")
    try:
        result = await pipeline.run(dry_run=dry_run)
    except RegionCatalogError as exc:
        logger.critical("Error fetching regions: %s", exc, exc_info=True)
        _err.print(f"[red]Error fetching regions: {exc}[/red]")
        return 1
    except DatasetStoreError as exc:
        logger.critical("Error writing dataset: %s", exc, exc_info=True)
        _err.print(f"[red]Error writing dataset: {exc}[/red]")
        return 1

    fetched = result.region_count - len(result.failed_regions)
    logger.info(
        "Run summary: %d/%d regions fetched, failed=%s, changed=%s, written=%s",
        fetched,
        result.region_count,
        ",".join(result.failed_regions) or "none",
        result.changed,
        result.written,
    )
    _err.print(
        f"[green]✓ {fetched}/{result.region_count} regions fetched[/green]"
    )
    if result.failed_regions:
        _err.print(
            "[yellow]Carried over: "
            f"{', '.join(result.failed_regions)}[/yellow]"
        )

    if result.written:
        _err.print(f"[green]Updated spot data written to {store.path}[/green]")
    elif result.changed:
        _err.print("[yellow]Dry run: changes not written.[/yellow]")
    else:
        _err.print("[dim]No changes in spot data. Skipping file write.[/dim]")

    if dry_run:
        _print_leaderboard(result.dataset.global_top_5)
    return 0


def show_leaderboard(output_path: str | None = None) -> int:
    """Print the persisted leaderboard; exit 1 if nothing is stored."""
    store = JsonFileStore(Path(output_path) if output_path else None)
    dataset = store.load()
    if dataset is None:
        _err.print(f"[yellow]No dataset found at {store.path}.[/yellow]")
        return 1

    _print_leaderboard(
        dataset.global_top_5,
        title=f"Global Top Spot Deals ({dataset.last_updated})",
    )
    return 0


async def run_health_check() -> int:
    """Run connectivity health check on the upstream endpoints."""
    from spot_deals.services.health_checker import HealthChecker

    _err.print("[bold]Running upstream health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Upstream Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Endpoint", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "-"
        )
        table.add_row(
            r.endpoint, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0
