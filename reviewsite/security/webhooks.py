"""Shared-secret verification for inbound automation webhooks."""

from __future__ import annotations

import hmac
import re

from fastapi import HTTPException, Request

from ..config import settings

_BEARER_RE = re.compile(r"^\s*Bearer\s+(.+?)\s*$", re.IGNORECASE)


def _provided_secret(request: Request) -> str:
    m = _BEARER_RE.match(request.headers.get("authorization", ""))
    if m:
        return m.group(1)
    return (
        request.headers.get("x-webhook-secret", "").strip()
        or request.headers.get("x-webhook-key", "").strip()
        or request.headers.get("x-api-key", "").strip()
        or request.query_params.get("key", "").strip()
        or request.query_params.get("secret", "").strip()
    )


def verify_webhook_secret(request: Request) -> None:
    """Reject the call unless it carries the configured secret.

    With no secret configured every call is rejected.
    """
    expected = settings.webhook_secret.strip()
    provided = _provided_secret(request)
    if not expected or not provided:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Unauthorized")
