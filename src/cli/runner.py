# src/cli/runner.py

"""Headless runners for the price-tracking engine."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table

from src.models.check_result import CheckResult
from src.models.product import Product
from src.services.engine import PriceTrackingEngine

logger = logging.getLogger("pricewatch.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)


def _print_results(results: list[CheckResult]) -> None:
    """Render a Rich table of check results to stdout."""
    table = Table(
        title="Price Check Results",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Product", style="bold")
    table.add_column("Was", justify="right")
    table.add_column("Now", justify="right", style="green")
    table.add_column("Status", justify="center")

    for r in results:
        if not r.success:
            status = f"[red]failed: {r.error}[/red]"
        elif r.dropped:
            status = f"[green]dropped {r.difference:,.2f}[/green]"
        elif r.changed:
            status = f"[yellow]changed {r.difference:,.2f}[/yellow]"
        else:
            status = "[dim]unchanged[/dim]"
        table.add_row(
            r.product_id,
            r.original_price or "—",
            r.current_price or "—",
            status,
        )

    Console().print(table)


async def run_daemon(
    engine: PriceTrackingEngine,
    period_minutes: float | None = None,
    check_on_start: bool = False,
) -> int:
    """Start the recurring timer and block until cancelled."""
    engine.start(period_minutes)
    removed = engine.cleanup()
    if removed:
        _err.print(f"[dim]Pruned {removed} stale history entries[/dim]")
    try:
        if check_on_start:
            await engine.check_now()
        await asyncio.Event().wait()
    finally:
        await engine.aclose()
    return 0


async def run_check_now(engine: PriceTrackingEngine) -> int:
    """Run a single cycle and print its results (0=ok, 1=any failure)."""
    _err.print("[bold]Checking tracked products...[/bold]")
    try:
        results = await engine.check_now()
    finally:
        engine.stop()

    if not results:
        _err.print("[yellow]No products to check.[/yellow]")
        return 0

    _print_results(results)
    return 1 if any(not r.success for r in results) else 0


def show_history(engine: PriceTrackingEngine, product_id: str) -> int:
    """Print a product's price history and trend."""
    try:
        entries = engine.history_for(product_id)
        if not entries:
            _err.print(f"[yellow]No history for {product_id}.[/yellow]")
            return 1
        stats = engine.history.statistics(product_id)
        trend = engine.history.trend(product_id)
    finally:
        engine.stop()

    table = Table(title=f"History: {product_id}", title_style="bold cyan")
    table.add_column("Checked", style="dim")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Drop", justify="center")
    for e in entries:
        table.add_row(
            e.timestamp.strftime("%Y-%m-%d %H:%M"),
            f"{e.price:,.2f}",
            "▼" if e.dropped else "",
        )
    Console().print(table)

    if stats is not None:
        _err.print(
            f"[dim]min {stats.min_price:,.2f} · max {stats.max_price:,.2f}"
            f" · avg {stats.avg_price:,.2f} · trend {trend.direction}"
            f" ({trend.strength:.0%})[/dim]"
        )
    return 0


def show_drops(engine: PriceTrackingEngine, days_back: int) -> int:
    """Print products whose price dropped within ``days_back`` days."""
    try:
        products = engine.drops(days_back)
    finally:
        engine.stop()

    if not products:
        _err.print(f"[yellow]No price drops in the last {days_back} days.[/yellow]")
        return 0

    table = Table(
        title=f"Price drops (last {days_back} days)",
        title_style="bold cyan",
    )
    table.add_column("ID", style="dim")
    table.add_column("Title", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("URL", overflow="fold", style="dim")
    for p in products:
        table.add_row(p.id, p.title, p.price, p.url)
    Console().print(table)
    return 0


def add_product(
    engine: PriceTrackingEngine,
    url: str,
    title: str | None,
    price: str | None,
) -> int:
    """Start tracking a product page."""
    product = Product(
        id=uuid.uuid4().hex[:12],
        title=title or url,
        url=url,
        price=price or "",
        date_added=datetime.now(timezone.utc).isoformat(),
    )
    try:
        saved = engine.track(product)
    finally:
        engine.stop()
    if not saved:
        _err.print("[red]Failed to save product.[/red]")
        return 1
    _err.print(f"[green]✓ Tracking {product.id}[/green] {product.url}")
    return 0


def remove_product(engine: PriceTrackingEngine, product_id: str) -> int:
    """Stop tracking a product."""
    try:
        removed = engine.untrack(product_id)
    finally:
        engine.stop()
    if not removed:
        _err.print(f"[yellow]{product_id} is not tracked.[/yellow]")
        return 1
    _err.print(f"[green]✓ Removed {product_id}[/green]")
    return 0
