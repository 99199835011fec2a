"""
Batch entry points for both alert pipelines.

`normalize_alert_batch` runs the regex rule table over raw alert text;
`normalize_llm_batch` validates payloads a language model produced for the
same alerts. Both map N input items to N records in the same order, and a
broken item only ever degrades its own record.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from ..config import POLICY_PATH
from ..logging_config import get_logger, log_with_context
from ..schemas import AlertItem, LLMTransactionRecord, TransactionRecord
from .alert_normalizer import assemble_alert_record, profile_text
from .alert_rules import extract_alert_fields
from .llm_payload import assemble_llm_record, resolve_payload
from .policy_loader import load_policy, pick_alert_profile
from .text import normalize_whitespace

logger = get_logger(__name__)

Timestamp = Union[str, datetime]


def _stamp(timestamp: Timestamp) -> str:
    if isinstance(timestamp, datetime):
        return timestamp.isoformat()
    return str(timestamp)


def normalize_alert(item: Any, timestamp: Timestamp, policy: Optional[Dict] = None) -> TransactionRecord:
    """Normalize a single raw alert with the profile that best matches it."""
    alert = AlertItem.from_raw(item)
    if policy is None:
        policy = load_policy(POLICY_PATH)
    profile = pick_alert_profile(profile_text(alert), policy)
    text = f"{normalize_whitespace(alert.body_text)} {normalize_whitespace(alert.subject_text)}"
    extraction = extract_alert_fields(text, profile.rules)
    log_with_context(
        logger,
        logging.DEBUG,
        "alert normalized",
        profile=profile.name,
        matched_rules=extraction.matched,
        message_id=alert.message_id,
    )
    return assemble_alert_record(alert, _stamp(timestamp), profile, extraction)


def normalize_llm_payload(item: Any, timestamp: Timestamp) -> LLMTransactionRecord:
    """Validate and coerce a single language-model payload."""
    alert = AlertItem.from_raw(item)
    resolution = resolve_payload(alert)
    log_with_context(
        logger,
        logging.DEBUG,
        "llm payload normalized",
        payload_source=resolution.source,
        message_id=alert.message_id,
    )
    return assemble_llm_record(alert, _stamp(timestamp), resolution)


def normalize_alert_batch(
    items: Iterable[Any],
    timestamp: Timestamp,
    policy: Optional[Dict] = None,
) -> List[TransactionRecord]:
    if policy is None:
        policy = load_policy(POLICY_PATH)
    stamp = _stamp(timestamp)
    records = [normalize_alert(item, stamp, policy) for item in items]
    log_with_context(
        logger,
        logging.INFO,
        "alert batch normalized",
        item_count=len(records),
        with_amount=sum(1 for r in records if r.amount is not None),
        batch_timestamp=stamp,
    )
    return records


def normalize_llm_batch(items: Iterable[Any], timestamp: Timestamp) -> List[LLMTransactionRecord]:
    stamp = _stamp(timestamp)
    records = [normalize_llm_payload(item, stamp) for item in items]
    log_with_context(
        logger,
        logging.INFO,
        "llm batch normalized",
        item_count=len(records),
        defaulted=sum(1 for r in records if r.amount is None and r.direction is None),
        batch_timestamp=stamp,
    )
    return records


__all__ = [
    "normalize_alert",
    "normalize_alert_batch",
    "normalize_llm_batch",
    "normalize_llm_payload",
]
