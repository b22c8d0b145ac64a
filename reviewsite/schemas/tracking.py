"""Conversion beacon payload."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

from .common import FiniteFloat, FiniteInt


def _text(limit: int):
    def clean(value: Any) -> str | None:
        if value is None:
            return None
        s = str(value).strip()[:limit]
        return s or None
    return BeforeValidator(clean)


class ConversionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    offer_id: Annotated[str | None, _text(100)] = None
    # Deprecated; accepted and ignored.
    offer_uuid: Any = None
    student_id: Annotated[str | None, _text(256)] = None
    event_id: Annotated[str | None, _text(128)] = None
    client_ts_ms: FiniteInt = None
    status: Annotated[str | None, _text(20)] = None
    reward: FiniteFloat = None
    payout: FiniteFloat = None
    amount: FiniteFloat = None
    commission: FiniteFloat = None
    page_url: Annotated[str | None, _text(2048)] = None
