"""Pytest configuration for shared fixtures."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest

from telemetry_contracts.config import reset_settings
from telemetry_contracts.request import RequestTelemetry


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Isolate every test from cached settings and ambient TELEMETRY_CONTRACTS_* variables."""
    for key in list(os.environ):
        if key.startswith("TELEMETRY_CONTRACTS_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def start_time() -> datetime:
    return datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def request_item(start_time: datetime) -> RequestTelemetry:
    """A populated request as a web framework integration would produce it."""
    item = RequestTelemetry(
        name="GET /orders/{id}",
        start_time=start_time,
        duration=timedelta(milliseconds=1500),
        response_code="200",
        success=True,
    )
    item.url = "https://shop.example.com/orders/42"
    item.source = "caller-ikey-hash"
    item.properties["region"] = "eu-west"
    item.metrics["payload_kb"] = 12.5
    item.context.operation.id = "4bf92f3577b34da6a3ce929d0e0e4736"
    item.context.cloud.role_name = "orders-api"
    return item
