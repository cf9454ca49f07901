from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.api.auth import router as auth_router
from app.api.favorites import router as favorites_router
from app.api.market import router as market_router
from app.db import models  # noqa: F401
from app.db.session import Base, get_db
from app.main import register_error_handlers
from app.services.coingecko import get_coingecko_client
from app.services.coinmarketcap import get_cmc_client
from app.services.reference_cache import ReferenceCache, get_reference_cache
from app.tests.fakes import FakeChartSource, FakeMarketSource


@pytest.fixture()
def db_sessionmaker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def _setup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_setup())

    Session = async_sessionmaker(engine, expire_on_commit=False)
    yield Session

    asyncio.run(engine.dispose())


@pytest.fixture()
def market_source():
    return FakeMarketSource()


@pytest.fixture()
def chart_source():
    return FakeChartSource()


@pytest.fixture()
def reference_cache(market_source):
    return ReferenceCache(market_source.id_map, ttl_seconds=3600)


@pytest.fixture()
def api_app(db_sessionmaker, market_source, chart_source, reference_cache):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(market_router)
    app.include_router(auth_router)
    app.include_router(favorites_router)

    async def _get_db():
        async with db_sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_cmc_client] = lambda: market_source
    app.dependency_overrides[get_coingecko_client] = lambda: chart_source
    app.dependency_overrides[get_reference_cache] = lambda: reference_cache
    return app


@pytest.fixture()
def api_client(api_app):
    with TestClient(api_app) as client:
        yield client


@pytest.fixture()
def lenient_api_client(api_app):
    # returns 500 responses instead of re-raising server-side exceptions
    with TestClient(api_app, raise_server_exceptions=False) as client:
        yield client
