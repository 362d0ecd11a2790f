from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import Client

from ev_route_planner.auth import issue_token
from ev_route_planner.models import Account, ChargingStation


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client() -> Client:
    return Client()


def _make_account(email: str, role: str) -> Account:
    user = get_user_model().objects.create_user(
        username=email, email=email, password="s3cret-pass", first_name=email.split("@")[0]
    )
    return Account.objects.create(user=user, role=role)


@pytest.fixture
def user_account(db) -> Account:
    return _make_account("driver@example.com", Account.Role.USER)


@pytest.fixture
def owner_account(db) -> Account:
    return _make_account("owner@example.com", Account.Role.OWNER)


@pytest.fixture
def admin_account(db) -> Account:
    return _make_account("admin@example.com", Account.Role.ADMIN)


@pytest.fixture
def auth_header():
    def build(account: Account) -> dict[str, str]:
        return {"HTTP_AUTHORIZATION": f"Bearer {issue_token(account)}"}

    return build


@pytest.fixture
def make_station(db):
    def build(**overrides) -> ChargingStation:
        values = {
            "name": "Downtown Supercharger",
            "address": "1 Main St",
            "city": "New York",
            "state": "NY",
            "latitude": 40.7128,
            "longitude": -74.0060,
            "power_kw": 50.0,
            "cost_per_kwh": 0.35,
            "connector_type": "CCS",
            "verified": True,
        }
        values.update(overrides)
        return ChargingStation.objects.create(**values)

    return build
