from __future__ import annotations

import asyncio
from datetime import timedelta

import jwt
from sqlalchemy import func, select

from app.config.settings import get_settings
from app.db.models import FavoriteCoin
from app.errors import UpstreamUnavailable
from app.tests.fakes import FakeMarketSource, auth_headers, signup_user
from app.utils.time import utcnow

BTC = {"coinName": "Bitcoin", "symbol": "BTC", "slug": "bitcoin"}
ETH = {"coinName": "Ethereum", "symbol": "ETH", "slug": "ethereum"}


def _token(client, email: str = "a@b.com") -> str:
    return signup_user(client, email=email)["token"]


def _count_rows(sessionmaker) -> int:
    async def _count():
        async with sessionmaker() as session:
            return (await session.execute(select(func.count()).select_from(FavoriteCoin))).scalar_one()

    return asyncio.run(_count())


def test_missing_token_is_401(api_client):
    resp = api_client.get("/favorites")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Access token required"


def test_invalid_token_is_403(api_client):
    resp = api_client.get("/favorite", headers=auth_headers("not.a.jwt"))
    assert resp.status_code == 403


def test_expired_token_is_403(api_client):
    s = get_settings()
    now = utcnow()
    expired = jwt.encode(
        {"id": 1, "email": "a@b.com", "iat": now - timedelta(days=21), "exp": now - timedelta(days=1)},
        s.JWT_SECRET,
        algorithm=s.JWT_ALGORITHM,
    )
    resp = api_client.get("/favorites", headers=auth_headers(expired))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "forbidden"


def test_token_signed_with_other_secret_is_403(api_client):
    forged = jwt.encode(
        {"id": 1, "exp": utcnow() + timedelta(days=1)},
        "some-other-secret-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )
    resp = api_client.post("/favorite/Bitcoin", json=BTC, headers=auth_headers(forged))
    assert resp.status_code == 403


def test_adding_same_favorite_twice_conflicts_and_keeps_one_row(api_client, db_sessionmaker):
    headers = auth_headers(_token(api_client))

    first = api_client.post("/favorite/Bitcoin", json=BTC, headers=headers)
    assert first.status_code == 200
    assert first.json() == {"message": "Coin added successfully"}

    second = api_client.post("/favorite/Bitcoin", json=BTC, headers=headers)
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "conflict"

    assert _count_rows(db_sessionmaker) == 1


def test_coin_name_falls_back_to_path(api_client):
    headers = auth_headers(_token(api_client))
    resp = api_client.post("/favorite/Solana", json={"symbol": "SOL", "slug": "solana"}, headers=headers)
    assert resp.status_code == 200

    rows = api_client.get("/favorites", headers=headers).json()
    assert rows[0]["coin_name"] == "Solana"


def test_add_requires_symbol_and_slug(api_client):
    headers = auth_headers(_token(api_client))
    resp = api_client.post("/favorite/Bitcoin", json={"coinName": "Bitcoin"}, headers=headers)
    assert resp.status_code == 422


def test_remove_favorite_then_remove_again_is_404(api_client, db_sessionmaker):
    headers = auth_headers(_token(api_client))
    api_client.post("/favorite/Bitcoin", json=BTC, headers=headers)

    resp = api_client.request("DELETE", "/favorite/Bitcoin", json={"symbol": "BTC", "slug": "bitcoin"}, headers=headers)
    assert resp.status_code == 200
    assert _count_rows(db_sessionmaker) == 0

    resp = api_client.request("DELETE", "/favorite/Bitcoin", json={"symbol": "BTC", "slug": "bitcoin"}, headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Coin not found in favorites"


def test_favorites_lists_raw_rows_per_user(api_client):
    alice = auth_headers(_token(api_client, "alice@b.com"))
    bob = auth_headers(_token(api_client, "bob@b.com"))
    api_client.post("/favorite/Bitcoin", json=BTC, headers=alice)
    api_client.post("/favorite/Ethereum", json=ETH, headers=alice)
    api_client.post("/favorite/Bitcoin", json=BTC, headers=bob)

    rows = api_client.get("/favorites", headers=alice).json()
    assert [(r["symbol"], r["slug"], r["coin_name"]) for r in rows] == [
        ("BTC", "bitcoin", "Bitcoin"),
        ("ETH", "ethereum", "Ethereum"),
    ]
    assert len({r["user_id"] for r in rows}) == 1
    assert len(api_client.get("/favorites", headers=bob).json()) == 1


def test_favorite_details_merge_in_two_upstream_calls(api_client, market_source):
    headers = auth_headers(_token(api_client))
    api_client.post("/favorite/Ethereum", json=ETH, headers=headers)
    api_client.post("/favorite/Bitcoin", json=BTC, headers=headers)

    resp = api_client.get("/favorite", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [d["slug"] for d in body] == ["ethereum", "bitcoin"]
    assert body[1]["price"] == 65000.0
    assert body[1]["website"] == "https://bitcoin.org/"
    assert sorted(name for name, _ in market_source.calls) == ["info", "quotes"]


def test_favorite_details_without_favorites_skip_upstream(api_client, market_source):
    headers = auth_headers(_token(api_client))
    resp = api_client.get("/favorite", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == []
    assert market_source.calls == []


def test_delisted_favorite_is_marked_stale(api_client):
    headers = auth_headers(_token(api_client))
    api_client.post("/favorite/Bitcoin", json=BTC, headers=headers)
    api_client.post("/favorite/Gone", json={"coinName": "Gone", "symbol": "GONE", "slug": "gone"}, headers=headers)

    body = api_client.get("/favorite", headers=headers).json()
    assert [(d["slug"], d["stale"]) for d in body] == [("bitcoin", False), ("gone", True)]
    assert body[1]["price"] is None


def test_only_delisted_favorites_are_returned_stale_when_provider_rejects_batch(api_client, market_source):
    headers = auth_headers(_token(api_client))
    api_client.post("/favorite/Gone", json={"coinName": "Gone", "symbol": "GONE", "slug": "gone"}, headers=headers)
    market_source.fail_with = UpstreamUnavailable("coinmarketcap", "invalid slug", upstream_status=400)

    resp = api_client.get("/favorite", headers=headers)
    assert resp.status_code == 200
    assert [(d["slug"], d["name"], d["stale"]) for d in resp.json()] == [("gone", "Gone", True)]


def test_favorite_slug_is_stored_lower_case(api_client):
    headers = auth_headers(_token(api_client))
    api_client.post("/favorite/Bitcoin", json={"coinName": "Bitcoin", "symbol": "BTC", "slug": "Bitcoin"}, headers=headers)

    assert api_client.get("/favorites", headers=headers).json()[0]["slug"] == "bitcoin"
    body = api_client.get("/favorite", headers=headers).json()
    assert [(d["slug"], d["stale"]) for d in body] == [("bitcoin", False)]

    resp = api_client.request("DELETE", "/favorite/Bitcoin", json={"symbol": "BTC", "slug": "BITCOIN"}, headers=headers)
    assert resp.status_code == 200


def test_malformed_upstream_record_renders_json_500(lenient_api_client, market_source, monkeypatch):
    headers = auth_headers(_token(lenient_api_client))
    lenient_api_client.post("/favorite/Bitcoin", json=BTC, headers=headers)

    async def info_without_name(slugs):
        rows = await FakeMarketSource.info_by_slugs(market_source, slugs)
        return {key: {k: v for k, v in row.items() if k != "name"} for key, row in rows.items()}

    monkeypatch.setattr(market_source, "info_by_slugs", info_without_name)

    resp = lenient_api_client.get("/favorite", headers=headers)
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json()["error"]["code"] == "internal_error"
