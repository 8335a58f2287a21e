"""product-updates CLI — run the server, edit the catalog, watch live changes.

Usage:
    product-updates serve                         # Run the API + hub with uvicorn
    product-updates list                          # Show the catalog
    product-updates add "Widget" 9.99 -d "Blue"   # Create a product
    product-updates update 3 --price 12.50        # Change fields on product #3
    product-updates delete 3                      # Remove product #3
    product-updates watch                         # Mirror the catalog live over the hub
    product-updates health                        # Server health
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import sys
from typing import Optional

import click
import httpx

from product_updates import __version__
from product_updates.config import settings

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

def _api_url() -> str:
    """Server base URL, from PRODUCT_UPDATES_API_URL (see Settings.api_url)."""
    return settings.api_url.rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the product-updates server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


_PRODUCT_COLUMNS = [
    ("ID", "id", 6),
    ("NAME", "name", 24),
    ("PRICE", "price", 10),
    ("DESCRIPTION", "description", 32),
    ("UPDATED", "lastUpdated", 32),
]

_EVENT_COLORS = {
    "ProductAdded": "green",
    "ReceiveProductUpdate": "yellow",
    "ProductDeleted": "red",
}


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="product-updates")
def main():
    """product-updates — a product catalog with live change notifications."""


# ---------------------------------------------------------------------------
# product-updates serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", type=int, default=None, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the HTTP API and the WebSocket hub."""
    import uvicorn

    uvicorn.run(
        "product_updates.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_config=None,
    )


# ---------------------------------------------------------------------------
# product-updates list
# ---------------------------------------------------------------------------


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def list_products(as_json: bool):
    """List all products."""
    _run(_list_impl(as_json))


async def _list_impl(as_json: bool):
    async with _client() as c:
        r = await c.get("/api/products")
        r.raise_for_status()
        products = r.json()

    if as_json:
        click.echo(_pretty_json(products))
        return
    if not products:
        click.echo("No products.")
        return
    _print_table(products, _PRODUCT_COLUMNS)


# ---------------------------------------------------------------------------
# product-updates add
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.argument("price", type=float)
@click.option("--description", "-d", default="", help="Product description")
def add(name: str, price: float, description: str):
    """Create a product.

    NAME and PRICE are required; the server assigns the id.
    """
    _run(_add_impl(name, price, description))


async def _add_impl(name: str, price: float, description: str):
    async with _client() as c:
        r = await c.post(
            "/api/products",
            json={"name": name, "price": price, "description": description},
        )
        r.raise_for_status()
        product = r.json()
    click.secho(f"Product #{product['id']} created: {product['name']}", fg="green")


# ---------------------------------------------------------------------------
# product-updates update
# ---------------------------------------------------------------------------


@main.command()
@click.argument("product_id", type=int)
@click.option("--name", "-n", help="New name")
@click.option("--price", "-p", type=float, help="New price")
@click.option("--description", "-d", help="New description")
def update(product_id: int, name: Optional[str], price: Optional[float],
           description: Optional[str]):
    """Change fields on a product. Omitted fields keep their value."""
    body = {
        k: v
        for k, v in (("name", name), ("price", price), ("description", description))
        if v is not None
    }
    if not body:
        click.secho("Nothing to update: pass --name, --price or --description.", fg="yellow")
        sys.exit(1)
    _run(_update_impl(product_id, body))


async def _update_impl(product_id: int, body: dict):
    async with _client() as c:
        r = await c.put(f"/api/products/{product_id}", json=body)
        if r.status_code == 404:
            click.secho(f"Product #{product_id} not found.", fg="red")
            sys.exit(1)
        r.raise_for_status()
    click.secho(f"Product #{product_id} updated.", fg="green")


# ---------------------------------------------------------------------------
# product-updates delete
# ---------------------------------------------------------------------------


@main.command()
@click.argument("product_id", type=int)
def delete(product_id: int):
    """Delete a product."""
    _run(_delete_impl(product_id))


async def _delete_impl(product_id: int):
    async with _client() as c:
        r = await c.delete(f"/api/products/{product_id}")
        if r.status_code == 404:
            click.secho(f"Product #{product_id} not found.", fg="red")
            sys.exit(1)
        r.raise_for_status()
    click.secho(f"Product #{product_id} deleted.", fg="green")


# ---------------------------------------------------------------------------
# product-updates watch
# ---------------------------------------------------------------------------


@main.command()
@click.option("--hub-path", default=None, help="Hub path (default from settings)")
def watch(hub_path: Optional[str]):
    """Load the catalog, then print every pushed change until Ctrl-C."""
    try:
        _run(_watch_impl(hub_path or settings.hub_path))
    except KeyboardInterrupt:
        click.echo()


async def _watch_impl(hub_path: str):
    from product_updates.client import ClientSession

    session = ClientSession(_api_url(), hub_path=hub_path)

    def _print_event(event, products):
        color = _EVENT_COLORS.get(event.type, "white")
        detail = event.data.get("product", event.data)
        click.echo(
            f"{click.style(event.type, fg=color)}  {json.dumps(detail, default=str)}"
            f"  ({len(products)} products)"
        )

    for event_type in _EVENT_COLORS:
        session.on(event_type, _print_event)

    products = await session.load()
    click.secho(f"Loaded {len(products)} products. Watching {session.hub_url}", bold=True)
    await session.run()


# ---------------------------------------------------------------------------
# product-updates health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Check server health."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        try:
            r = await c.get("/health")
        except httpx.ConnectError:
            click.secho(f"Server not reachable at {_api_url()}", fg="red")
            sys.exit(1)
        r.raise_for_status()
    click.echo(_pretty_json(r.json()))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
