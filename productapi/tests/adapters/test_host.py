"""Tests for the aiohttp application host."""

import logging
from pathlib import Path

import pytest

from productapi.adapters.http.host import ApplicationHost
from productapi.adapters.store.sqlite import SQLiteProductStore
from productapi.config import Settings
from productapi.core.errors import SessionStateError
from productapi.tests.fakes import FakeProductStorePort


def make_settings(**overrides) -> Settings:
    """Settings bound to loopback with an ephemeral port."""
    values = {"http_host": "127.0.0.1", "http_port": 0}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def store() -> FakeProductStorePort:
    return FakeProductStorePort()


@pytest.fixture
async def host(store: FakeProductStorePort) -> ApplicationHost:
    """Host over the fake store; stopped and disposed after the test."""
    host = ApplicationHost(make_settings(), store)
    yield host
    await host.stop()
    if not host._disposed:
        await host.dispose()


@pytest.mark.asyncio
async def test_start_binds_ephemeral_port(host: ApplicationHost) -> None:
    """Port 0 resolves to a real port reported in base_url."""
    await host.start()

    assert host.running is True
    assert host.base_url.startswith("http://127.0.0.1:")
    assert not host.base_url.endswith(":0")


@pytest.mark.asyncio
async def test_base_url_requires_running_host(host: ApplicationHost) -> None:
    with pytest.raises(SessionStateError, match="not running"):
        _ = host.base_url


@pytest.mark.asyncio
async def test_start_runs_migrations_when_enabled(
    host: ApplicationHost, store: FakeProductStorePort, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="productapi.adapters.http.host"):
        await host.start()

    assert store.ensure_schema_call_count == 1
    assert "Db migration had been run successfully." in caplog.text


@pytest.mark.asyncio
async def test_start_skips_migrations_when_disabled(store: FakeProductStorePort) -> None:
    host = ApplicationHost(make_settings(run_migrations=False), store)
    await host.start()
    try:
        assert store.ensure_schema_call_count == 0
    finally:
        await host.dispose()


@pytest.mark.asyncio
async def test_client_reaches_running_host(
    host: ApplicationHost, store: FakeProductStorePort
) -> None:
    """create_client returns an httpx client bound to base_url."""
    store.seed("Widget", "2.50")
    await host.start()

    async with host.create_client() as client:
        resp = await client.get("/products/1")

    assert resp.status_code == 200
    assert resp.json() == {"id": 1, "name": "Widget", "price": 2.5}


@pytest.mark.asyncio
async def test_stop_then_start_again(host: ApplicationHost) -> None:
    """A stopped host that was not disposed can serve again."""
    await host.start()
    await host.stop()

    assert host.running is False
    with pytest.raises(SessionStateError):
        _ = host.base_url

    await host.start()
    assert host.running is True


@pytest.mark.asyncio
async def test_dispose_closes_store_and_rejects_reuse(
    host: ApplicationHost, store: FakeProductStorePort
) -> None:
    await host.start()

    await host.dispose()

    assert store.closed is True
    assert host.running is False
    with pytest.raises(SessionStateError, match="already disposed"):
        await host.dispose()
    with pytest.raises(SessionStateError, match="disposed"):
        await host.start()


@pytest.mark.asyncio
async def test_host_over_sqlite_store(tmp_path: Path) -> None:
    """End-to-end through a real SQLite store with migrations on start."""
    settings = make_settings(db_connection_string=f"sqlite:///{tmp_path / 'host.db'}")
    host = ApplicationHost(settings, SQLiteProductStore.from_connection_string(
        settings.db_connection_string
    ))
    await host.start()
    try:
        async with host.create_client() as client:
            created = await client.post("/products", json={"name": "Lamp", "price": 19.95})
            fetched = await client.get(created.headers["Location"])
    finally:
        await host.dispose()

    assert created.status_code == 201
    assert fetched.json() == {"id": created.json(), "name": "Lamp", "price": 19.95}
