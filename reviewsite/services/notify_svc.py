"""Review notification webhook.

Delivery is best-effort: a single attempt after the response has been
prepared, no retries, failures only logged. Submissions never depend on it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

USER_AGENT = "Reviewsite-Review-Webhook/1.0"


def _params(school_id: str, body: str, **extra) -> dict[str, str]:
    params = {
        "source": "reviewsite",
        "submitted_at": datetime.now(timezone.utc).isoformat(),
        "school_id": school_id,
        "body": body,
    }
    for key, value in extra.items():
        if value is not None:
            params[key] = str(value)
    return params


async def _get(url: str, params: dict[str, str], client: httpx.AsyncClient | None) -> httpx.Response:
    headers = {"User-Agent": USER_AGENT}
    if client is not None:
        return await client.get(url, params=params, headers=headers)
    async with httpx.AsyncClient(timeout=settings.review_webhook_timeout_seconds) as owned:
        return await owned.get(url, params=params, headers=headers)


async def notify_review_submitted(
    school_id: str,
    body: str,
    overall_rating: float | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Ping the configured webhook about a new review. Returns delivery success."""
    url = settings.review_webhook_url.strip()
    if not url:
        return False
    try:
        resp = await _get(url, _params(school_id, body, overall_rating=overall_rating), client)
    except httpx.HTTPError:
        logger.exception("Review webhook delivery failed")
        return False
    if resp.is_error:
        logger.warning("Review webhook returned %s", resp.status_code)
        return False
    return True


async def probe_webhook(*, client: httpx.AsyncClient | None = None) -> dict:
    """Diagnostic: send a test ping and report what came back."""
    url = settings.review_webhook_url.strip()
    if not url:
        return {"ok": False, "error": "Review webhook is not configured"}
    try:
        resp = await _get(url, _params("test", "webhook-test"), client)
    except httpx.HTTPError as e:
        return {"ok": False, "error": str(e) or e.__class__.__name__, "webhookUrl": url}
    return {
        "ok": resp.is_success,
        "status": resp.status_code,
        "statusText": resp.reason_phrase,
        "webhookUrl": str(resp.request.url),
    }
