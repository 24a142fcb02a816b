# tests/conftest.py

import os
import tempfile

# Settings and the engine are built at import time, so the environment is set first
_TMP_DIR = tempfile.mkdtemp(prefix="delivery-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "log")
os.environ["LOG_PRINT"] = "0"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["NOTIFY_RETRY_DELAY"] = "0.01"
os.environ["STRICT_PRICING"] = "true"

from datetime import datetime

import httpx
import pytest

from delivery.main import app as fastapi_app, lifespan
from delivery.utils.database import drop_db, engine


@pytest.fixture
async def app():
    await drop_db()
    async with lifespan(fastapi_app):
        yield fastapi_app
    await engine.dispose()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def order_payload(**overrides) -> dict:
    payload = {
        "customerId": "cust-1",
        "customerName": "Ali Hassan",
        "customerPhone": "+967771112233",
        "deliveryAddress": "Sana'a, Hadda street 12",
        "items": [
            {"name": "Mandi", "quantity": 2, "price": 20, "restaurantId": "rest-1"},
            {"name": "Tea", "quantity": 1, "price": 10, "restaurantId": "rest-1"},
        ],
        "subtotal": 50,
        "deliveryFee": 5,
        "total": 55,
        "paymentMethod": "cash",
        "restaurantId": "rest-1",
    }
    payload.update(overrides)
    return payload


async def create_order(client, **overrides) -> dict:
    response = await client.post("/api/orders", json=order_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


async def create_driver(client, name="Ahmed", phone="+967770000001", **extra) -> dict:
    body = {"name": name, "phone": phone, "password": "driver123", **extra}
    response = await client.post("/api/drivers", json=body)
    assert response.status_code == 201, response.text
    return response.json()


async def set_status(client, order_id, status, **extra) -> httpx.Response:
    return await client.patch(f"/api/orders/{order_id}/status", json={"status": status, **extra})


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
