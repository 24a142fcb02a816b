# tests/test_assignment.py

import asyncio

from conftest import create_driver, create_order, set_status


async def assign(client, order_id, driver_id):
    return await client.put(f"/api/orders/{order_id}/assign-driver", json={"driverId": driver_id})


async def test_assign_driver(client):
    driver = await create_driver(client)
    order = await create_order(client)
    await set_status(client, order["id"], "confirmed")

    response = await assign(client, order["id"], driver["id"])
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["order"]["driverId"] == driver["id"]
    assert body["order"]["status"] == "preparing"

    stored = (await client.get(f"/api/drivers/{driver['id']}")).json()
    assert stored["isAvailable"] is False


async def test_assignment_of_a_pending_order_skips_to_preparing(client):
    driver = await create_driver(client)
    order = await create_order(client)

    body = (await assign(client, order["id"], driver["id"])).json()
    assert body["order"]["status"] == "preparing"


async def test_driver_id_is_required(client):
    order = await create_order(client)
    response = await client.put(f"/api/orders/{order['id']}/assign-driver", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "driverId is required"}


async def test_unknown_order_or_driver(client):
    driver = await create_driver(client)
    response = await assign(client, "missing", driver["id"])
    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}

    order = await create_order(client)
    response = await assign(client, order["id"], "nobody")
    assert response.status_code == 404
    assert response.json() == {"error": "Driver not found"}
    assert (await client.get(f"/api/orders/{order['id']}")).json()["driverId"] is None


async def test_already_assigned(client):
    first = await create_driver(client)
    second = await create_driver(client, name="Saleh", phone="+967770000002")
    order = await create_order(client)

    assert (await assign(client, order["id"], first["id"])).status_code == 200
    response = await assign(client, order["id"], second["id"])
    assert response.status_code == 409
    assert response.json() == {"error": "Order already assigned"}

    stored = (await client.get(f"/api/orders/{order['id']}")).json()
    assert stored["driverId"] == first["id"]
    assert (await client.get(f"/api/drivers/{second['id']}")).json()["isAvailable"] is True


async def test_closed_orders_cannot_be_assigned(client):
    driver = await create_driver(client)
    order = await create_order(client)
    await set_status(client, order["id"], "cancelled")

    response = await assign(client, order["id"], driver["id"])
    assert response.status_code == 409
    stored = (await client.get(f"/api/orders/{order['id']}")).json()
    assert stored["status"] == "cancelled"
    assert stored["driverId"] is None


async def test_concurrent_claims_have_one_winner(client):
    first = await create_driver(client)
    second = await create_driver(client, name="Saleh", phone="+967770000002")
    order = await create_order(client)
    await set_status(client, order["id"], "confirmed")

    responses = await asyncio.gather(
        assign(client, order["id"], first["id"]),
        assign(client, order["id"], second["id"]),
    )
    codes = sorted(r.status_code for r in responses)
    assert codes == [200, 409]

    winner = next(r for r in responses if r.status_code == 200).json()["order"]["driverId"]
    loser = second["id"] if winner == first["id"] else first["id"]

    stored = (await client.get(f"/api/orders/{order['id']}")).json()
    assert stored["driverId"] == winner
    assert (await client.get(f"/api/drivers/{winner}")).json()["isAvailable"] is False
    assert (await client.get(f"/api/drivers/{loser}")).json()["isAvailable"] is True


async def test_delivery_pays_the_driver_and_frees_them(client):
    driver = await create_driver(client)
    order = await create_order(client)
    await assign(client, order["id"], driver["id"])

    for status in ("ready", "picked_up", "on_way", "delivered"):
        assert (await set_status(client, order["id"], status)).status_code == 200

    stored = (await client.get(f"/api/drivers/{driver['id']}")).json()
    assert stored["earnings"] == order["deliveryFee"]
    assert stored["isAvailable"] is True

    stats = (await client.get(f"/api/drivers/{driver['id']}/stats")).json()
    assert stats == {"totalOrders": 1, "completedOrders": 1, "activeOrders": 0, "totalEarnings": 5}


async def test_many_concurrent_claims_have_one_winner(client):
    drivers = [await create_driver(client, name=f"Driver {n}", phone=f"+96777000010{n}") for n in range(3)]
    order = await create_order(client)

    responses = await asyncio.gather(*(assign(client, order["id"], d["id"]) for d in drivers))
    assert sorted(r.status_code for r in responses) == [200, 409, 409]
    assert all(r.json() == {"error": "Order already assigned"} for r in responses if r.status_code == 409)

    available = (await client.get("/api/drivers", params={"available": "true"})).json()
    assert len(available) == 2


async def test_cancelling_frees_the_driver_without_pay(client):
    driver = await create_driver(client)
    order = await create_order(client)
    await assign(client, order["id"], driver["id"])

    assert (await set_status(client, order["id"], "cancelled")).status_code == 200

    stored = (await client.get(f"/api/drivers/{driver['id']}")).json()
    assert stored["isAvailable"] is True
    assert stored["earnings"] == 0
