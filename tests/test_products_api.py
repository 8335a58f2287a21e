"""Product API tests — status codes, wire format, broadcasts per request.

Pattern: test_<verb>_<noun>_<scenario>
"""

from datetime import datetime

import pytest


@pytest.fixture
async def widget(client):
    resp = await client.post(
        "/api/products",
        json={"name": "Widget", "price": 9.99, "description": "blue"},
    )
    assert resp.status_code == 201
    return resp.json()


# ═══════════════════════════════════════════════════════════
# GET /api/products
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_products_empty(client):
    resp = await client.get("/api/products")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_list_products_in_insertion_order(client):
    for name in ("A", "B", "C"):
        await client.post("/api/products", json={"name": name, "price": 1})
    resp = await client.get("/api/products")
    assert [p["name"] for p in resp.json()] == ["A", "B", "C"]


# ═══════════════════════════════════════════════════════════
# POST /api/products
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_product(client, widget):
    assert widget["id"] == 1
    assert widget["name"] == "Widget"
    assert widget["price"] == 9.99
    assert widget["description"] == "blue"
    datetime.fromisoformat(widget["lastUpdated"])


@pytest.mark.asyncio
async def test_create_product_ignores_client_id(client):
    resp = await client.post(
        "/api/products", json={"id": 500, "name": "Sneaky", "price": 1}
    )
    assert resp.status_code == 201
    assert resp.json()["id"] == 1


@pytest.mark.asyncio
async def test_create_product_sets_location(client):
    resp = await client.post("/api/products", json={"name": "A", "price": 1})
    assert resp.headers["location"].endswith("/api/products")


@pytest.mark.asyncio
async def test_create_product_broadcasts_once(client, listener):
    resp = await client.post("/api/products", json={"name": "A", "price": 1.0})
    assert listener.messages == [{"type": "ProductAdded", "product": resp.json()}]


@pytest.mark.asyncio
async def test_create_product_rejects_bad_price(client, listener):
    resp = await client.post("/api/products", json={"name": "A", "price": "lots"})
    assert resp.status_code == 422
    assert listener.messages == []


@pytest.mark.asyncio
async def test_create_product_requires_name(client):
    resp = await client.post("/api/products", json={"price": 1})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_after_delete_does_not_reuse_ids(client):
    """Widget #1, Widget #2, delete #1, Gadget → #3."""
    r1 = await client.post("/api/products", json={"name": "Widget", "price": 9.99})
    r2 = await client.post("/api/products", json={"name": "Widget", "price": 9.99})
    assert (r1.json()["id"], r2.json()["id"]) == (1, 2)

    assert (await client.delete("/api/products/1")).status_code == 204

    r3 = await client.post("/api/products", json={"name": "Gadget", "price": 5})
    assert r3.json()["id"] == 3


# ═══════════════════════════════════════════════════════════
# PUT /api/products/{id}
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_product(client, widget):
    resp = await client.put(
        f"/api/products/{widget['id']}",
        json={"name": "Widget Pro", "price": 19.99, "description": "red"},
    )
    assert resp.status_code == 204
    assert resp.content == b""

    [product] = (await client.get("/api/products")).json()
    assert product["id"] == widget["id"]
    assert product["name"] == "Widget Pro"
    assert product["price"] == 19.99
    assert product["description"] == "red"
    assert datetime.fromisoformat(product["lastUpdated"]) > datetime.fromisoformat(
        widget["lastUpdated"]
    )


@pytest.mark.asyncio
async def test_update_product_partial(client, widget):
    await client.put(f"/api/products/{widget['id']}", json={"price": 1.25})
    [product] = (await client.get("/api/products")).json()
    assert product["name"] == "Widget"
    assert product["price"] == 1.25


@pytest.mark.asyncio
async def test_update_product_broadcasts_full_record(client, widget, listener):
    await client.put(f"/api/products/{widget['id']}", json={"name": "B"})
    [product] = (await client.get("/api/products")).json()
    assert listener.messages == [{"type": "ReceiveProductUpdate", "product": product}]


@pytest.mark.asyncio
async def test_update_product_not_found(client, widget, listener):
    resp = await client.put("/api/products/999", json={"name": "Ghost"})
    assert resp.status_code == 404
    assert resp.content == b""
    assert listener.messages == []
    [product] = (await client.get("/api/products")).json()
    assert product["name"] == "Widget"


# ═══════════════════════════════════════════════════════════
# DELETE /api/products/{id}
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_delete_product(client, widget, listener):
    resp = await client.delete(f"/api/products/{widget['id']}")
    assert resp.status_code == 204
    assert (await client.get("/api/products")).json() == []
    assert listener.messages == [{"type": "ProductDeleted", "id": widget["id"]}]


@pytest.mark.asyncio
async def test_delete_product_not_found(client, widget, listener):
    resp = await client.delete("/api/products/999")
    assert resp.status_code == 404
    assert resp.content == b""
    assert listener.messages == []
    assert len((await client.get("/api/products")).json()) == 1


@pytest.mark.asyncio
async def test_delete_product_non_integer_id(client):
    resp = await client.delete("/api/products/abc")
    assert resp.status_code == 422


# ═══════════════════════════════════════════════════════════
# Full round trip
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_round_trip(client, listener):
    await client.post("/api/products", json={"name": "A", "price": 1.0, "description": "d"})
    [created] = (await client.get("/api/products")).json()
    assert (created["id"], created["name"], created["price"]) == (1, "A", 1.0)

    await client.put("/api/products/1", json={"name": "B"})
    [updated] = (await client.get("/api/products")).json()
    assert updated["name"] == "B"
    assert datetime.fromisoformat(updated["lastUpdated"]) > datetime.fromisoformat(
        created["lastUpdated"]
    )

    await client.delete("/api/products/1")
    assert (await client.get("/api/products")).json() == []

    assert [m["type"] for m in listener.messages] == [
        "ProductAdded",
        "ReceiveProductUpdate",
        "ProductDeleted",
    ]


@pytest.mark.asyncio
async def test_create_product_survives_backplane_outage(client, service, listener):
    class UnreachableBackplane:
        async def publish(self, event):
            raise ConnectionError("redis is down")

    service.hub.backplane = UnreachableBackplane()

    resp = await client.post("/api/products", json={"name": "A", "price": 1.0})

    assert resp.status_code == 201
    assert service.store.get(resp.json()["id"]).name == "A"
    assert listener.messages == [{"type": "ProductAdded", "product": resp.json()}]
