# src/cli/runner.py

"""Headless CLI runner for scans, searches and provider health checks."""

import json
import logging
import sys
from dataclasses import asdict
from typing import Any

from rich.console import Console
from rich.table import Table

from src.config.credentials import ProviderCredentials
from src.models.item import CanonicalItem, Recommendation
from src.services.deal_evaluator import evaluate_deal
from src.services.price_aggregator import PriceAggregator

logger = logging.getLogger("dealscan.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

_VERDICT_STYLES: dict[str, str] = {
    "DEAL": "bold green",
    "SO-SO": "bold yellow",
    "NO DEAL": "bold red",
}


def _item_to_dict(item: CanonicalItem) -> dict[str, Any]:
    """Serialise an item (verdict as its display string)."""
    data = asdict(item)
    data["verdict"] = item.verdict.value if item.verdict else None
    return data


def _write_json(payload: object) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _print_offers_table(
    title: str, offers: list[Recommendation],
) -> None:
    """Render competitor offers as a Rich table."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Store", style="magenta")
    table.add_column("Name", max_width=60)
    table.add_column("Price", justify="right", style="green")

    for idx, offer in enumerate(offers, 1):
        table.add_row(
            str(idx),
            offer.store,
            offer.name[:60],
            f"${offer.price:,.2f}",
        )

    Console().print(table)


def _print_items_table(items: list[CanonicalItem]) -> None:
    """Render search results as a Rich table."""
    table = Table(
        title="Search Results",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=60)
    table.add_column("Brand")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Store", style="magenta")
    table.add_column("Organic", justify="center")

    for idx, item in enumerate(items, 1):
        table.add_row(
            str(idx),
            item.name[:60],
            item.brand or "—",
            f"${item.price:,.2f}" if item.price > 0 else "N/A",
            item.store or "—",
            "yes" if item.is_organic else "",
        )

    Console().print(table)


async def cli_scan(
    identifier: str,
    latitude: float,
    longitude: float,
    radius_miles: float | None,
    output_format: str,
) -> int:
    """Resolve and evaluate a scanned identifier (0=found, 1=not found)."""
    aggregator = PriceAggregator(ProviderCredentials.from_env())
    _err.print(
        f"[bold]Scanning:[/bold] {identifier}  "
        f"[dim]at {latitude},{longitude}[/dim]"
    )
    try:
        result = await aggregator.resolve(
            identifier, latitude, longitude, radius_miles
        )
    finally:
        await aggregator.close()

    if result.item is None:
        _err.print("[yellow]Product not found.[/yellow]")
        return 1

    evaluated = evaluate_deal(result.item, result.deals)
    verdict = evaluated.verdict.value if evaluated.verdict else "—"
    _err.print(
        f"[{_VERDICT_STYLES.get(verdict, 'bold')}]{verdict}[/] "
        f"{evaluated.name} at {evaluated.store or 'unknown store'} "
        f"for ${evaluated.price:,.2f} "
        f"[dim]({len(result.deals)} competing offers)[/dim]"
    )

    if output_format == "table":
        _print_offers_table(
            "Recommended Alternatives",
            list(evaluated.recommendations or ()),
        )
    else:
        _write_json(
            {
                "item": _item_to_dict(evaluated),
                "deals": [asdict(d) for d in result.deals],
            }
        )
    return 0


async def cli_search(
    term: str,
    latitude: float,
    longitude: float,
    radius_miles: float | None,
    output_format: str,
) -> int:
    """Search all providers for a free-text term (0=ok, 1=no results)."""
    aggregator = PriceAggregator(ProviderCredentials.from_env())
    _err.print(f"[bold]Searching:[/bold] {term}")
    try:
        items = await aggregator.search(
            term, latitude, longitude, radius_miles
        )
    finally:
        await aggregator.close()

    if not items:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    _err.print(f"[green]✓ {len(items)} products[/green]")
    if output_format == "table":
        _print_items_table(items)
    else:
        _write_json([_item_to_dict(i) for i in items])
    return 0


async def run_health_check() -> int:
    """Run the provider health check (1 if any configured provider is down)."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running provider health check...[/bold]")
    checker = HealthChecker(ProviderCredentials.from_env())
    results = await checker.check_all()

    table = Table(
        title="Provider Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Provider", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        elif r.status == "unconfigured":
            status = "[dim]— UNCONFIGURED[/dim]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.provider_id, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0
