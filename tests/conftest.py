import json

import httpx
import pytest
from fastapi.testclient import TestClient

from backoffice.config import API_URL
from backoffice.main import app

API_PREFIX = httpx.URL(API_URL).path


class FakeApi:
    """API REST en memoria: (método, path relativo) → (status, json)."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, json=None, status=200):
        self.routes[(method, path)] = (status, json)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body))

        status, data = self.routes.get((request.method, path), (404, {"detail": "Not found."}))
        if callable(data):
            status, data = data(request)
        if data is None:
            return httpx.Response(status)
        return httpx.Response(status, json=data)

    def called(self, method, path):
        return [body for m, p, body in self.calls if m == method and p == path]


def page(*results):
    return {"count": len(results), "next": None, "previous": None, "results": list(results)}


def user_json(role="MANAGER", user_id=1, **extra):
    data = {
        "id": user_id,
        "username": "jdoe",
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "role": role,
        "is_active": True,
    }
    data.update(extra)
    return data


def loan_json(loan_id=7, status="ACTIVE", **extra):
    data = {
        "id": loan_id,
        "customer": 3,
        "customer_name": "John Smith",
        "loan_reference": f"LN-{loan_id:04d}",
        "status": status,
        "principal_amount": 1000,
        "interest_rate": 10,
        "application_date": "2024-01-31",
        "term_months": 12,
        "payment_frequency": "MONTHLY",
        "amount_paid": 250,
        "total_amount_due": 1100,
        "remaining_balance": 850,
        "days_past_due": 0,
    }
    data.update(extra)
    return data


def customer_json(customer_id=3, **extra):
    data = {
        "id": customer_id,
        "first_name": "John",
        "last_name": "Smith",
        "primary_phone": "+12125551234",
        "is_active": True,
    }
    data.update(extra)
    return data


def interaction_json(interaction_id=5, **extra):
    data = {
        "id": interaction_id,
        "customer": 3,
        "customer_name": "John Smith",
        "interaction_type": "CALL",
        "start_time": "2024-01-31T10:00:00Z",
        "notes": "Called about overdue balance",
    }
    data.update(extra)
    return data


def follow_up_json(follow_up_id=9, **extra):
    data = {
        "id": follow_up_id,
        "customer": 3,
        "customer_name": "John Smith",
        "follow_up_type": "CALL",
        "scheduled_date": "2024-02-01",
        "status": "PENDING",
        "priority": "MEDIUM",
    }
    data.update(extra)
    return data


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def anon_client(fake_api):
    app.state.api_transport = httpx.MockTransport(fake_api.handler)
    with TestClient(app, follow_redirects=False) as client:
        yield client
    app.state.api_transport = None


@pytest.fixture
def login_as(fake_api, anon_client):
    """Cliente con sesión iniciada y users/me/ respondiendo con el rol dado."""
    def _login(role="MANAGER", user_id=1):
        fake_api.add("GET", "users/me/", user_json(role, user_id))
        anon_client.cookies.set("access_token", "tok")
        anon_client.cookies.set("refresh_token", "ref")
        return anon_client
    return _login
