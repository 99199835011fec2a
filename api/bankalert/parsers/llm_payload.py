"""
Validation of transaction payloads produced by a language model.

The model is asked to answer with a JSON object, but what reaches us is
best-effort: sometimes an object, sometimes a string that may or may not
decode. Every field is coerced on its own and falls back to a default, so a
broken payload still yields a complete record.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..schemas import (
    DEFAULT_CONFIDENCE,
    FALLBACK_ACCOUNT_NAME,
    AlertItem,
    LLMTransactionRecord,
)
from ..utils import normalize_currency, normalize_date, to_number
from .alert_normalizer import derive_type, masked_account_name
from .text import normalize_whitespace

# Resolution order: already-structured fields first, then JSON strings.
OBJECT_CANDIDATES = ("ai_json", "parsed")
JSON_CANDIDATES = ("ai_raw", "response")

DIRECTIONS = ("DEBITED", "CREDITED")


@dataclass(frozen=True)
class PayloadResolution:
    payload: Optional[Dict[str, Any]]
    source: Optional[str]

    @property
    def found(self) -> bool:
        return self.payload is not None


NO_PAYLOAD = PayloadResolution(payload=None, source=None)


def decode_payload(raw: Any) -> Optional[Dict[str, Any]]:
    """Decode a JSON object from `raw`; anything else is None."""
    if not isinstance(raw, str):
        return None
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def resolve_payload(item: AlertItem) -> PayloadResolution:
    for name in OBJECT_CANDIDATES:
        payload = getattr(item, name)
        if payload is not None:
            return PayloadResolution(payload=payload, source=name)
    for name in JSON_CANDIDATES:
        payload = decode_payload(getattr(item, name))
        if payload is not None:
            return PayloadResolution(payload=payload, source=name)
    return NO_PAYLOAD


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def coerce_direction(value: Any) -> Optional[str]:
    direction = _optional_text(value)
    if direction is None:
        return None
    direction = direction.upper()
    return direction if direction in DIRECTIONS else None


def coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if isinstance(value, float) and not math.isfinite(value):
        return DEFAULT_CONFIDENCE
    return float(max(0.0, min(1.0, value)))


def payload_account_name(payload: Mapping[str, Any], bank: Optional[str], mask: Optional[str]) -> str:
    explicit = _optional_text(payload.get("account_name"))
    if explicit:
        return explicit
    if bank and mask:
        return masked_account_name(bank, mask)
    return bank or FALLBACK_ACCOUNT_NAME


def assemble_llm_record(
    item: AlertItem,
    timestamp: str,
    resolution: Optional[PayloadResolution] = None,
) -> LLMTransactionRecord:
    if resolution is None:
        resolution = resolve_payload(item)
    payload: Mapping[str, Any] = resolution.payload or {}

    bank = _optional_text(payload.get("bank"))
    account_mask = _optional_text(payload.get("account_mask"))
    direction = coerce_direction(payload.get("direction"))
    explicit_type = _optional_text(payload.get("type"))
    subject = normalize_whitespace(item.subject_text)
    sender = normalize_whitespace(item.sender)

    return LLMTransactionRecord(
        timestamp=timestamp,
        bank=bank,
        account_name=payload_account_name(payload, bank, account_mask),
        account_mask=account_mask,
        amount=to_number(payload.get("amount")),
        currency=normalize_currency(payload.get("currency")),
        direction=direction,
        type=explicit_type or derive_type(direction),
        txn_date=normalize_date(payload.get("txn_date")),
        balance_after=to_number(payload.get("balance_after")),
        source_email=sender or None,
        subject=subject or None,
        message_id=item.message_id,
        thread_id=item.thread_id,
        raw_snippet=normalize_whitespace(item.body_text),
        ai_confidence=coerce_confidence(payload.get("confidence")),
        description=payload.get("description"),
    )
