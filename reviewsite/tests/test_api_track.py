"""Tests for affiliate click redirects and the conversion beacon."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from reviewsite.models import Click, Conversion
from reviewsite.routers.track import allowed_hosts, with_query_param

ORIGIN = "https://eigoonline.com"


def test_allowed_hosts_from_outbound_urls(store):
    assert allowed_hosts(store.get_record("alpha")) == {"alpha.example.com", "plans.alpha.example.com"}
    assert allowed_hosts(store.get_record("beta")) == {"beta.example.com", "aff.example.net"}
    assert allowed_hosts(None) == set()


def test_with_query_param_replaces_existing():
    assert with_query_param("https://a.example/p?x=1&click_id=old", "click_id", "new") == (
        "https://a.example/p?x=1&click_id=new"
    )


class TestClick:
    @pytest.mark.asyncio
    async def test_redirects_with_click_id(self, client: AsyncClient, db):
        resp = await client.get(
            "/api/track/click",
            params={"offer_id": "beta", "to": "https://aff.example.net/click?id=1"},
            headers={"referer": "https://eigoonline.com/schools/beta"},
        )
        assert resp.status_code == 302
        assert resp.headers["cache-control"] == "no-store"

        location = urlsplit(resp.headers["location"])
        assert location.hostname == "aff.example.net"
        query = parse_qs(location.query)
        assert query["id"] == ["1"]

        click = (await db.execute(select(Click))).scalar_one()
        assert query["click_id"] == [click.click_id]
        assert click.offer_id == "beta"
        assert click.referrer == "https://eigoonline.com/schools/beta"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params,message", [
        ({"to": "https://alpha.example.com/"}, "offer_id is required"),
        ({"offer_id": "alpha"}, "to is required"),
        ({"offer_id": "alpha", "to": "not a url"}, "Invalid to URL"),
        ({"offer_id": "alpha", "to": "http://alpha.example.com/"}, "to must be https"),
        ({"offer_id": "alpha", "to": "https://evil.example/"}, "to host is not allowed for this offer_id"),
        ({"offer_id": "ghost", "to": "https://alpha.example.com/"}, "to host is not allowed for this offer_id"),
    ])
    async def test_rejects_bad_requests(self, client: AsyncClient, db, params, message):
        resp = await client.get("/api/track/click", params=params)
        assert resp.status_code == 400
        assert resp.text == message
        assert (await db.execute(select(Click))).first() is None


class TestConversion:
    @pytest.mark.asyncio
    async def test_preflight(self, client: AsyncClient):
        resp = await client.options("/api/track/conversion", headers={"origin": "https://www.eigoonline.com"})
        assert resp.status_code == 204
        assert resp.headers["access-control-allow-origin"] == "https://www.eigoonline.com"
        assert resp.headers["access-control-allow-methods"] == "POST, OPTIONS"

    @pytest.mark.asyncio
    async def test_records_conversion(self, client: AsyncClient, db):
        resp = await client.post(
            "/api/track/conversion",
            json={
                "offer_id": "alpha",
                "student_id": "stu-1",
                "event_id": "evt-1",
                "status": "approved",
                "reward": "1200",
                "client_ts_ms": 1700000000000,
                "page_url": "https://eigoonline.com/thanks",
            },
            headers={
                "origin": ORIGIN,
                "referer": "https://eigoonline.com/thanks",
                "cf-connecting-ip": "2001:db8::1",
                "cf-ipcountry": "JP",
                "cookie": "session=secret",
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"] is True
        assert "deduped" not in body
        assert resp.headers["access-control-allow-origin"] == ORIGIN

        conversion = (await db.execute(select(Conversion))).scalar_one()
        assert conversion.id == body["id"]
        assert conversion.status == "approved"
        assert conversion.reward == 1200.0
        assert conversion.client_ts_ms == 1700000000000
        assert conversion.student_id_hash and conversion.student_id_hash != "stu-1"
        assert conversion.ip_version == 6
        assert conversion.country == "JP"
        assert "cookie" not in conversion.request_headers
        assert conversion.request_headers["origin"] == ORIGIN

    @pytest.mark.asyncio
    async def test_duplicate_event_is_deduped(self, client: AsyncClient, db):
        payload = {"offer_id": "alpha", "event_id": "evt-dup"}
        first = await client.post("/api/track/conversion", json=payload)
        second = await client.post("/api/track/conversion", json=payload)
        assert second.status_code == 200
        assert second.json() == {"ok": True, "id": first.json()["id"], "deduped": True}
        assert len((await db.execute(select(Conversion))).scalars().all()) == 1

    @pytest.mark.asyncio
    async def test_disallowed_origin(self, client: AsyncClient, db):
        resp = await client.post(
            "/api/track/conversion", json={"offer_id": "alpha"}, headers={"origin": "https://evil.example"}
        )
        assert resp.status_code == 403
        assert resp.json() == {"ok": False, "error": "Origin is not allowed"}
        assert resp.headers["access-control-allow-origin"] == "https://eigoonline.com"
        assert (await db.execute(select(Conversion))).first() is None

    @pytest.mark.asyncio
    async def test_invalid_payloads(self, client: AsyncClient):
        resp = await client.post(
            "/api/track/conversion", content=b"{nope", headers={"content-type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid JSON"

        resp = await client.post("/api/track/conversion", json={"student_id": "x"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "offer_id is required"

    @pytest.mark.asyncio
    async def test_unknown_status_and_far_future_timestamp(self, client: AsyncClient, db):
        resp = await client.post(
            "/api/track/conversion",
            json={"offer_id": "alpha", "status": "paid", "client_ts_ms": 99999999999999},
            headers={"referer": "https://eigoonline.com/"},
        )
        assert resp.status_code == 200
        conversion = (await db.execute(select(Conversion))).scalar_one()
        assert conversion.status == "pending"
        assert conversion.client_ts_ms is None

    @pytest.mark.asyncio
    async def test_missing_referer_is_annotated(self, client: AsyncClient, db):
        resp = await client.post("/api/track/conversion", json={"offer_id": "alpha"})
        assert resp.status_code == 200
        conversion = (await db.execute(select(Conversion))).scalar_one()
        assert conversion.risk["reasons"] == ["missing_referer"]
        assert conversion.review_comment == "Refererが無い"

    @pytest.mark.asyncio
    async def test_without_database(self, no_db_client: AsyncClient):
        resp = await no_db_client.post("/api/track/conversion", json={"offer_id": "alpha"})
        assert resp.status_code == 500
        assert resp.json()["ok"] is False
        assert "access-control-allow-origin" in resp.headers
