# tests/test_order_status.py

import asyncio
from datetime import timedelta

from conftest import create_driver, create_order, parse_ts, set_status


def as_driver(driver):
    return {"X-Actor-Id": driver["id"], "X-Actor-Role": "driver"}


ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}


# ────────────── PATCH /status ──────────────
async def test_status_change(client):
    order = await create_order(client)
    response = await set_status(client, order["id"], "confirmed")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "confirmed"
    assert parse_ts(body["updatedAt"]) >= parse_ts(order["updatedAt"])


async def test_status_is_required_and_known(client):
    order = await create_order(client)

    response = await client.patch(f"/api/orders/{order['id']}/status", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Status is required"}

    response = await set_status(client, order["id"], "teleported")
    assert response.status_code == 400
    assert "teleported" in response.json()["error"]

    # nothing was written
    assert (await client.get(f"/api/orders/{order['id']}")).json()["status"] == "pending"


async def test_status_of_missing_order(client):
    response = await set_status(client, "missing", "confirmed")
    assert response.status_code == 404


async def test_same_status_is_a_no_op(client):
    order = await create_order(client)
    response = await set_status(client, order["id"], "pending")
    assert response.status_code == 200
    assert response.json()["updatedAt"] == order["updatedAt"]


async def test_terminal_orders_are_frozen(client):
    order = await create_order(client)
    assert (await set_status(client, order["id"], "cancelled")).status_code == 200

    response = await set_status(client, order["id"], "confirmed")
    assert response.status_code == 409
    assert (await client.get(f"/api/orders/{order['id']}")).json()["status"] == "cancelled"


async def test_expected_status_guards_the_write(client):
    order = await create_order(client)

    response = await set_status(client, order["id"], "preparing", expectedStatus="confirmed")
    assert response.status_code == 409
    assert (await client.get(f"/api/orders/{order['id']}")).json()["status"] == "pending"

    response = await set_status(client, order["id"], "confirmed", expectedStatus="pending")
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"


async def test_driver_can_only_move_own_orders(client):
    mine = await create_driver(client)
    other = await create_driver(client, name="Saleh", phone="+967770000002")
    order = await create_order(client)
    await client.put(f"/api/orders/{order['id']}/assign-driver", json={"driverId": mine["id"]})

    response = await client.patch(
        f"/api/orders/{order['id']}/status", json={"status": "ready"}, headers=as_driver(other)
    )
    assert response.status_code == 403

    response = await client.patch(
        f"/api/orders/{order['id']}/status", json={"status": "ready"}, headers=as_driver(mine)
    )
    assert response.status_code == 200


# ────────────── POST /advance ──────────────
async def test_driver_walks_the_chain(client):
    driver = await create_driver(client)
    order = await create_order(client)
    await set_status(client, order["id"], "confirmed")
    assigned = await client.put(f"/api/orders/{order['id']}/assign-driver", json={"driverId": driver["id"]})
    assert assigned.json()["order"]["status"] == "preparing"

    seen = []
    for _ in range(4):
        response = await client.post(f"/api/orders/{order['id']}/advance", headers=as_driver(driver))
        assert response.status_code == 200
        seen.append(response.json()["status"])
    assert seen == ["ready", "picked_up", "on_way", "delivered"]

    response = await client.post(f"/api/orders/{order['id']}/advance", headers=as_driver(driver))
    assert response.status_code == 409


async def test_advance_needs_driver_or_admin(client):
    order = await create_order(client)
    await set_status(client, order["id"], "confirmed")

    response = await client.post(f"/api/orders/{order['id']}/advance")
    assert response.status_code == 403

    response = await client.post(
        f"/api/orders/{order['id']}/advance", headers={"X-Actor-Id": "c1", "X-Actor-Role": "customer"}
    )
    assert response.status_code == 403

    response = await client.post(f"/api/orders/{order['id']}/advance", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["status"] == "preparing"


async def test_advance_rejects_drivers_of_other_orders(client):
    mine = await create_driver(client)
    other = await create_driver(client, name="Saleh", phone="+967770000002")
    order = await create_order(client)
    await client.put(f"/api/orders/{order['id']}/assign-driver", json={"driverId": mine["id"]})

    response = await client.post(f"/api/orders/{order['id']}/advance", headers=as_driver(other))
    assert response.status_code == 403


async def test_pending_and_cancelled_orders_do_not_advance(client):
    order = await create_order(client)
    response = await client.post(f"/api/orders/{order['id']}/advance", headers=ADMIN)
    assert response.status_code == 409

    await set_status(client, order["id"], "cancelled")
    response = await client.post(f"/api/orders/{order['id']}/advance", headers=ADMIN)
    assert response.status_code == 409

    response = await client.post("/api/orders/missing/advance", headers=ADMIN)
    assert response.status_code == 404


async def test_concurrent_advances_never_skip_a_status(client):
    driver = await create_driver(client)
    order = await create_order(client)
    await client.put(f"/api/orders/{order['id']}/assign-driver", json={"driverId": driver["id"]})

    responses = await asyncio.gather(*(
        client.post(f"/api/orders/{order['id']}/advance", headers=as_driver(driver)) for _ in range(2)
    ))
    assert {r.status_code for r in responses} <= {200, 409}

    won = [r.json()["status"] for r in responses if r.status_code == 200]
    assert won
    # each successful advance is a distinct next step from preparing
    chain = ["ready", "picked_up"]
    assert sorted(won, key=chain.index) == chain[:len(won)]

    stored = (await client.get(f"/api/orders/{order['id']}")).json()
    assert stored["status"] == chain[len(won) - 1]


# ────────────── tracking ──────────────
async def test_checkout_then_track(client):
    order = await create_order(client)
    assert order["total"] == 55

    await set_status(client, order["id"], "confirmed")
    response = await client.get(f"/api/orders/{order['id']}/track")
    assert response.status_code == 200
    body = response.json()

    assert body["order"]["id"] == order["id"]
    assert body["driver"] is None
    steps = body["tracking"]
    assert [s["status"] for s in steps] == ["pending", "confirmed"]
    assert [s["actor"] for s in steps] == ["system", "restaurant"]

    created = parse_ts(order["createdAt"])
    assert parse_ts(steps[0]["timestamp"]) == created
    assert parse_ts(steps[1]["timestamp"]) == created + timedelta(minutes=5)


async def test_tracking_is_deterministic(client):
    order = await create_order(client)
    await set_status(client, order["id"], "ready")

    first = (await client.get(f"/api/orders/{order['id']}/track")).json()
    second = (await client.get(f"/api/orders/{order['id']}/track")).json()
    assert first["tracking"] == second["tracking"]
    assert len(first["tracking"]) == 4


async def test_cancelled_order_has_no_tracking(client):
    order = await create_order(client)
    await set_status(client, order["id"], "cancelled")

    body = (await client.get(f"/api/orders/{order['id']}/track")).json()
    assert body["order"]["status"] == "cancelled"
    assert body["tracking"] == []


async def test_tracking_shows_the_driver(client):
    driver = await create_driver(client, currentLocation="Tahrir square")
    order = await create_order(client)
    await client.put(f"/api/orders/{order['id']}/assign-driver", json={"driverId": driver["id"]})

    body = (await client.get(f"/api/orders/{order['id']}/track")).json()
    assert body["driver"] == {
        "id": driver["id"],
        "name": "Ahmed",
        "phone": "+967770000001",
        "currentLocation": "Tahrir square",
    }
    assert body["tracking"][-1]["status"] == "preparing"


async def test_track_missing_order(client):
    response = await client.get("/api/orders/missing/track")
    assert response.status_code == 404
