from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from app.api import health as health_module
from app.db import session as db_session
from app.services.reference_cache import ReferenceCache, get_reference_cache


async def _empty_map():
    return []


@pytest.fixture()
def health_client(monkeypatch, tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'health.db'}", poolclass=NullPool)
    monkeypatch.setattr(db_session, "engine", engine)

    app = FastAPI()
    app.include_router(health_module.router)
    app.dependency_overrides[get_reference_cache] = lambda: ReferenceCache(_empty_map)
    yield TestClient(app)

    asyncio.run(engine.dispose())


def test_live(health_client):
    resp = health_client.get("/live")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_ready_reports_db_and_cache(health_client):
    resp = health_client.get("/ready")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["checks"]["db"]["ok"] is True
    assert body["checks"]["reference_cache"]["entries"] == 0
    assert body["checks"]["reference_cache"]["fresh"] is False


def test_ready_degrades_when_db_is_down(monkeypatch, health_client):
    async def _broken():
        return {"ok": False, "latency_ms": 0, "error": "connection refused"}

    monkeypatch.setattr(health_module, "_check_db", _broken)

    resp = health_client.get("/ready")
    assert resp.status_code == 503
    assert resp.json()["degraded_reasons"] == ["db_unhealthy"]
