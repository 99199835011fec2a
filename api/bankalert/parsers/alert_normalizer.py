# api/bankalert/parsers/alert_normalizer.py
from __future__ import annotations

from typing import Optional

from ..schemas import AlertItem, TransactionRecord
from ..utils import normalize_currency
from .alert_rules import AlertExtraction, extract_alert_fields
from .policy_loader import AlertProfile
from .text import normalize_whitespace

_TYPE_BY_DIRECTION = {"CREDITED": "income", "DEBITED": "expense"}


def derive_type(direction: Optional[str]) -> Optional[str]:
    return _TYPE_BY_DIRECTION.get(direction or "")


def masked_account_name(bank: str, mask: str) -> str:
    return f"{bank} - XXXX{mask}"


def alert_account_name(bank_label: str, mask: Optional[str]) -> str:
    if mask:
        return masked_account_name(bank_label, mask)
    return f"{bank_label} - Account"


def profile_text(item: AlertItem) -> str:
    """Text the profile picker matches `detect` patterns against."""
    return " ".join(
        normalize_whitespace(part) for part in (item.sender, item.subject_text, item.body_text)
    )


def assemble_alert_record(
    item: AlertItem,
    timestamp: str,
    profile: AlertProfile,
    extraction: Optional[AlertExtraction] = None,
) -> TransactionRecord:
    snippet = normalize_whitespace(item.body_text)
    subject = normalize_whitespace(item.subject_text)
    sender = normalize_whitespace(item.sender)
    if extraction is None:
        # subject goes last so a body match always wins
        extraction = extract_alert_fields(f"{snippet} {subject}", profile.rules)

    amount, currency, direction = extraction.amount
    return TransactionRecord(
        timestamp=timestamp,
        bank=profile.bank_label,
        account_name=alert_account_name(profile.bank_label, extraction.account_mask),
        account_mask=extraction.account_mask,
        amount=amount,
        currency=normalize_currency(currency),
        direction=direction,
        type=derive_type(direction),
        txn_date=extraction.txn_date,
        balance_after=extraction.balance_after,
        source_email=sender or None,
        subject=subject or None,
        message_id=item.message_id,
        thread_id=item.thread_id,
        raw_snippet=snippet,
    )
