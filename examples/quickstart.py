#!/usr/bin/env python3
"""
Product Updates Quickstart — CRUD over HTTP while a live session mirrors it.

Opens a ClientSession on the hub, then adds, updates and deletes a
product over the REST API and prints what the session saw.
Run with: python examples/quickstart.py

Server must be running: product-updates serve  (http://localhost:5170)
"""

import asyncio
import sys

import httpx

from product_updates.client import ClientSession

BASE = "http://localhost:5170"


async def main():
    async with httpx.AsyncClient(base_url=BASE, timeout=10) as client:
        # ── Health check ──────────────────────────────────────────────
        print("Checking server health...")
        try:
            resp = await client.get("/health")
        except httpx.ConnectError:
            print(f"Server not reachable at {BASE}")
            sys.exit(1)
        print(f"  Status: {resp.json()['status']}")

        # ── Session: load snapshot, then listen ───────────────────────
        session = ClientSession(BASE)
        session.on("ProductAdded", lambda e, ps: print(f"  ← added   ({len(ps)} products)"))
        session.on("ReceiveProductUpdate", lambda e, ps: print(f"  ← updated ({len(ps)} products)"))
        session.on("ProductDeleted", lambda e, ps: print(f"  ← deleted ({len(ps)} products)"))
        await session.load(client)
        listener = asyncio.create_task(session.run())
        await asyncio.sleep(0.5)

        # ── Create ────────────────────────────────────────────────────
        print("\n1. Adding product...")
        resp = await client.post("/api/products", json={"name": "Widget", "price": 9.99})
        assert resp.status_code == 201, f"Failed: {resp.text}"
        product = resp.json()
        print(f"   Product #{product['id']}: {product['name']} @ {product['price']}")
        await asyncio.sleep(0.2)

        # ── Update ────────────────────────────────────────────────────
        print("\n2. Updating price...")
        resp = await client.put(f"/api/products/{product['id']}", json={"price": 7.49})
        assert resp.status_code == 204, f"Failed: {resp.text}"
        await asyncio.sleep(0.2)

        # ── Delete ────────────────────────────────────────────────────
        print("\n3. Deleting product...")
        resp = await client.delete(f"/api/products/{product['id']}")
        assert resp.status_code == 204, f"Failed: {resp.text}"
        await asyncio.sleep(0.2)

        listener.cancel()
        try:
            await listener
        except asyncio.CancelledError:
            pass

    print(f"\nMirror now holds {len(session.products)} products.")


if __name__ == "__main__":
    asyncio.run(main())
