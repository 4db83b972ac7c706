# src/cli/runner.py

"""Headless driver for a search session: one command, then exit."""

import json
import logging
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.entities import Product
from src.models.search_state import SearchState, SearchViewState
from src.services.api_client import StorefrontAPI
from src.services.search_orchestrator import SearchOrchestrator
from src.storage.kv_store import SQLiteKeyValueStore
from src.storage.search_cache import LocalSearchCache

logger = logging.getLogger("storefront_search.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _products_to_dicts(products: list[Product]) -> list[dict[str, Any]]:
    return [
        {
            "id": p.id,
            "name": p.display_name,
            "brand": p.brand_name,
            "price": p.price,
            "slug": p.slug,
        }
        for p in products
    ]


def state_to_dict(state: SearchViewState) -> dict[str, Any]:
    """JSON-safe rendering of a session snapshot."""
    return {
        "query": state.query,
        "status": state.status.value,
        "products": _products_to_dicts(state.products),
        "brands": [
            {"id": b.id, "name": b.display_name} for b in state.brands
        ],
        "categories": [
            {"id": c.id, "name": c.display_name} for c in state.categories
        ],
        "recent_searches": state.recent_searches,
        "trending_searches": state.trending_searches,
        "recently_viewed": _products_to_dicts(state.recently_viewed),
    }


def _print_results(state: SearchViewState) -> None:
    console = Console()
    if state.brands:
        console.print(
            "[bold]Brands:[/bold] "
            + ", ".join(b.display_name for b in state.brands)
        )
    if state.categories:
        console.print(
            "[bold]Categories:[/bold] "
            + ", ".join(c.display_name for c in state.categories)
        )

    table = Table(
        title=f"Results for '{state.query}'",
        show_lines=False,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Product", max_width=60)
    table.add_column("Brand", style="magenta")
    table.add_column("Price", justify="right", style="green")
    for idx, p in enumerate(state.products, 1):
        table.add_row(
            str(idx),
            p.display_name[:60],
            p.brand_name or "—",
            f"{p.price:,.2f}" if p.price is not None else "N/A",
        )
    console.print(table)


def _print_history(state: SearchViewState) -> None:
    console = Console()
    sections = (
        ("Recent searches", state.recent_searches),
        ("Trending now", state.trending_searches),
        (
            "Recently viewed",
            [p.display_name for p in state.recently_viewed],
        ),
    )
    for title, items in sections:
        console.print(f"[bold cyan]{title}[/bold cyan]")
        if items:
            for item in items:
                console.print(f"  • {item}")
        else:
            console.print("  [dim](none)[/dim]")


def build_session(user_id: str | None = None) -> SearchOrchestrator:
    """Wire an orchestrator to the configured API and on-disk cache."""
    store = SQLiteKeyValueStore()
    return SearchOrchestrator(
        api=StorefrontAPI(),
        cache=LocalSearchCache(store),
        identity=user_id,
    )


async def _shutdown(session: SearchOrchestrator) -> None:
    await session.close()
    api = session.api
    if isinstance(api, StorefrontAPI):
        await api.close()
    store = session.cache.store
    if isinstance(store, SQLiteKeyValueStore):
        store.close()


async def cli_search(
    query: str,
    user_id: str | None,
    output_format: str,
    session: SearchOrchestrator | None = None,
) -> int:
    """Run one debounced search and print it; 0 = results, 1 = none."""
    session = session or build_session(user_id)
    _err.print(f"[bold]Searching:[/bold] {query}")
    try:
        await session.refresh_history()
        session.set_query(query)
        await session.settle()
        state = session.state
    finally:
        await _shutdown(session)

    if state.status is SearchState.FAILED:
        _err.print("[red]Search failed, see log for details.[/red]")
    if not state.has_results:
        _err.print("[yellow]No results found.[/yellow]")
        return 1

    _err.print(
        f"[green]✓ {len(state.products)} products, "
        f"{len(state.brands)} brands, "
        f"{len(state.categories)} categories[/green]"
    )
    if output_format == "table":
        _print_results(state)
    else:
        json.dump(state_to_dict(state), sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
    return 0


async def show_history(
    user_id: str | None,
    output_format: str,
    session: SearchOrchestrator | None = None,
) -> int:
    """Print recent, trending, and recently viewed lists."""
    session = session or build_session(user_id)
    try:
        await session.refresh_history()
        state = session.state
    finally:
        await _shutdown(session)

    if output_format == "table":
        _print_history(state)
    else:
        payload = state_to_dict(state)
        json.dump(
            {
                k: payload[k]
                for k in (
                    "recent_searches",
                    "trending_searches",
                    "recently_viewed",
                )
            },
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


async def clear_history(
    user_id: str | None,
    session: SearchOrchestrator | None = None,
) -> int:
    session = session or build_session(user_id)
    try:
        await session.clear_recent_searches()
    finally:
        await _shutdown(session)
    _err.print("[green]✓ Recent searches cleared[/green]")
    return 0


async def record_view(
    product_json: str,
    user_id: str | None,
    session: SearchOrchestrator | None = None,
) -> int:
    """Record a product view from a JSON object on the command line."""
    try:
        payload = json.loads(product_json)
    except json.JSONDecodeError as exc:
        _err.print(f"[red]Invalid product JSON: {exc}[/red]")
        return 1
    product = (
        Product.from_dict(payload) if isinstance(payload, dict) else None
    )
    if product is None:
        _err.print("[red]Product JSON needs an integer 'id'.[/red]")
        return 1

    session = session or build_session(user_id)
    try:
        await session.record_product_view(product)
    finally:
        await _shutdown(session)
    limit = Settings.RECENTLY_VIEWED_LIMIT
    _err.print(
        f"[green]✓ Recorded view of {product.display_name or product.id}"
        f" (keeping {limit})[/green]"
    )
    return 0
