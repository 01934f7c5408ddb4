"""Unit tests for the notification webhook client"""

import asyncio

import httpx
import pytest

from gameztarz_bank.infrastructure.clients.notifications import NotificationClient


@pytest.fixture
def webhook(monkeypatch):
    """Route the client's HTTP calls to a stub returning a configurable status"""
    state = {"status": 200, "calls": 0}
    real_async_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        state["calls"] += 1
        return httpx.Response(state["status"], json={})

    monkeypatch.setattr(httpx, "AsyncClient", lambda: real_async_client(transport=httpx.MockTransport(handler)))
    return state


def make_client() -> NotificationClient:
    client = NotificationClient(webhook_url="http://hooks.test/events", timeout=1.0)
    client.max_retries = 3
    client.backoff_base = 0
    return client


def test_delivers_event(webhook):
    assert asyncio.run(make_client().send_event("TRANSFER_RECEIVED", {"amount": 10})) is True
    assert webhook["calls"] == 1


def test_server_error_is_retried(webhook):
    webhook["status"] = 503

    assert asyncio.run(make_client().send_event("TRANSFER_RECEIVED", {"amount": 10})) is False
    assert webhook["calls"] == 3


def test_client_error_is_not_retried(webhook):
    webhook["status"] = 400

    assert asyncio.run(make_client().send_event("TRANSFER_RECEIVED", {"amount": 10})) is False
    assert webhook["calls"] == 1


def test_disabled_without_url(webhook):
    client = NotificationClient(webhook_url="")

    assert client.enabled is False
    assert asyncio.run(client.send_event("TRANSFER_RECEIVED", {})) is False
    assert webhook["calls"] == 0
