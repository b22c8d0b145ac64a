"""Client metadata helpers for public submission endpoints."""

from __future__ import annotations

import hashlib

from starlette.datastructures import Headers

# Stored alongside conversions; never cookies or auth headers.
STORED_HEADER_KEYS: tuple[str, ...] = (
    "origin",
    "referer",
    "user-agent",
    "accept-language",
    "sec-fetch-site",
    "sec-fetch-mode",
    "sec-fetch-dest",
    "sec-ch-ua",
    "sec-ch-ua-mobile",
    "sec-ch-ua-platform",
    "cf-ray",
    "cf-connecting-ip",
    "cf-ipcountry",
    "x-forwarded-for",
    "x-real-ip",
    "x-request-id",
)


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def first_forwarded_ip(value: str | None) -> str | None:
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


def client_ip(headers: Headers) -> str | None:
    """Best-effort client IP: Cloudflare header, then X-Forwarded-For, then X-Real-IP."""
    return (
        (headers.get("cf-connecting-ip") or "").strip()
        or first_forwarded_ip(headers.get("x-forwarded-for"))
        or first_forwarded_ip(headers.get("x-real-ip"))
        or None
    )


def ip_version(ip: str | None) -> int | None:
    if not ip:
        return None
    if ":" in ip:
        return 6
    if "." in ip:
        return 4
    return None


def pick_headers(headers: Headers) -> dict[str, str]:
    return {k: headers[k] for k in STORED_HEADER_KEYS if headers.get(k)}


def safe_return_to(value: str | None, default: str) -> str:
    """Only same-origin relative paths are allowed as redirect targets."""
    target = (value or "").strip()
    if not target.startswith("/") or target.startswith("//") or "\\" in target:
        return default
    return target
