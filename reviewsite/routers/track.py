"""Affiliate click redirects and the cross-origin conversion beacon."""

from __future__ import annotations

import logging
import time
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..content.store import SchoolContentStore, get_content_store
from ..database import get_db, get_optional_db
from ..models.tracking import CONVERSION_STATUSES
from ..schemas.common import first_error
from ..schemas.tracking import ConversionPayload
from ..security.request_meta import client_ip, ip_version, pick_headers, sha256_hex
from ..services import tracking_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/track", tags=["tracking"])

OUTBOUND_URL_FIELDS = ("officialUrl", "planUrl", "bannerHref")


def allowed_hosts(record: dict | None) -> set[str]:
    """Hostnames an offer may redirect to, taken from its static content."""
    hosts = set()
    for key in OUTBOUND_URL_FIELDS:
        value = (record or {}).get(key)
        if isinstance(value, str) and value:
            host = urlsplit(value).hostname
            if host:
                hosts.add(host)
    return hosts


def with_query_param(url: str, key: str, value: str) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    query.append((key, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


@router.get("/click")
async def track_click(
    request: Request,
    offer_id: str = "",
    to: str = "",
    db: AsyncSession = Depends(get_db),
    store: SchoolContentStore = Depends(get_content_store),
):
    offer_id, to = offer_id.strip(), to.strip()
    if not offer_id:
        return PlainTextResponse("offer_id is required", status_code=400)
    if not to:
        return PlainTextResponse("to is required", status_code=400)

    try:
        target = urlsplit(to)
        host = target.hostname
    except ValueError:
        return PlainTextResponse("Invalid to URL", status_code=400)
    if not target.scheme or not host:
        return PlainTextResponse("Invalid to URL", status_code=400)
    if target.scheme.lower() != "https":
        return PlainTextResponse("to must be https", status_code=400)
    if host not in allowed_hosts(store.get_record(offer_id)):
        return PlainTextResponse("to host is not allowed for this offer_id", status_code=400)

    ip = client_ip(request.headers)
    try:
        click = await tracking_svc.record_click(
            db,
            offer_id,
            to,
            ip=ip,
            ip_hash=sha256_hex(ip) if ip else None,
            ip_version=ip_version(ip),
            user_agent=request.headers.get("user-agent"),
            referrer=request.headers.get("referer"),
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to record click for %s", offer_id)
        await db.rollback()
        return PlainTextResponse(str(e), status_code=500)

    return RedirectResponse(
        url=with_query_param(to, "click_id", click.click_id),
        status_code=302,
        headers={"cache-control": "no-store"},
    )


def cors_headers(request: Request) -> dict[str, str]:
    origin = request.headers.get("origin")
    allowed = settings.allowed_origins_set
    return {
        "access-control-allow-origin": origin if origin in allowed else settings.conversion_default_origin,
        "access-control-allow-methods": "POST, OPTIONS",
        "access-control-allow-headers": "content-type",
        "access-control-max-age": "86400",
        "vary": "Origin",
    }


def _json(request: Request, status_code: int, body: dict) -> JSONResponse:
    headers = {"cache-control": "no-store", **cors_headers(request)}
    return JSONResponse(body, status_code=status_code, headers=headers)


@router.options("/conversion")
async def conversion_preflight(request: Request):
    return Response(status_code=204, headers=cors_headers(request))


@router.post("/conversion")
async def track_conversion(request: Request, db: AsyncSession | None = Depends(get_optional_db)):
    if db is None:
        return _json(request, 500, {"ok": False, "error": settings.db_env_error})

    try:
        raw = await request.json()
    except ValueError:
        return _json(request, 400, {"ok": False, "error": "Invalid JSON"})
    if not isinstance(raw, dict):
        return _json(request, 400, {"ok": False, "error": "Invalid JSON"})
    try:
        payload = ConversionPayload.model_validate(raw)
    except ValidationError as e:
        return _json(request, 400, {"ok": False, "error": first_error(e)[1]})

    if not payload.offer_id:
        return _json(request, 400, {"ok": False, "error": "offer_id is required"})

    headers = request.headers
    origin = headers.get("origin")
    if origin and origin not in settings.allowed_origins_set:
        return _json(request, 403, {"ok": False, "error": "Origin is not allowed"})

    now_ms = int(time.time() * 1000)
    client_ts_ms = payload.client_ts_ms
    tolerance_ms = settings.conversion_future_ts_tolerance_seconds * 1000
    if client_ts_ms is not None and not 0 < client_ts_ms < now_ms + tolerance_ms:
        client_ts_ms = None

    requested = payload.status if payload.status in CONVERSION_STATUSES else "pending"
    ip = client_ip(headers)

    try:
        result = await tracking_svc.record_conversion(
            db,
            payload.offer_id,
            requested_status=requested,
            event_id=payload.event_id,
            student_id=payload.student_id,
            student_id_hash=sha256_hex(payload.student_id) if payload.student_id else None,
            client_ts_ms=client_ts_ms,
            reward=payload.reward,
            payout=payload.payout,
            amount=payload.amount,
            commission=payload.commission,
            ip=ip,
            ip_hash=sha256_hex(ip) if ip else None,
            ip_version=ip_version(ip),
            country=headers.get("cf-ipcountry"),
            user_agent=headers.get("user-agent"),
            accept_language=headers.get("accept-language"),
            origin=origin,
            referrer=headers.get("referer"),
            page_url=payload.page_url,
            cf_ray=headers.get("cf-ray"),
            request_id=headers.get("x-request-id"),
            request_headers=pick_headers(headers),
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to record conversion for %s", payload.offer_id)
        await db.rollback()
        return _json(request, 500, {"ok": False, "error": str(e)})

    body = {"ok": True, "id": result.id}
    if result.deduped:
        body["deduped"] = True
    return _json(request, 200, body)
