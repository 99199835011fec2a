from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Sequence, Tuple

from ..utils import DEFAULT_CURRENCY, to_number

# ASCII only, so Unicode digits and case-folded look-alikes (Kelvin sign,
# long s) never match.
_FLAGS = re.IGNORECASE | re.ASCII

MASK = r"[X*]+"
NUMBER = r"[\d,]+(?:\.\d{1,2})?"

FIELDS = ("amount", "account_mask", "txn_date", "balance_after")


class AmountDirection(NamedTuple):
    amount: Optional[float]
    currency: Optional[str]
    direction: Optional[str]


NO_AMOUNT = AmountDirection(amount=None, currency=None, direction=None)


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    field: str
    pattern: re.Pattern
    extract: Callable[[re.Match], Any]


def _amount_direction(m: re.Match) -> AmountDirection:
    return AmountDirection(
        amount=to_number(m.group("amount")),
        currency=(m.group("currency") or DEFAULT_CURRENCY).upper(),
        direction=m.group("direction").upper(),
    )


def _mask_digits(m: re.Match) -> str:
    return m.group("digits")


def _iso_date(m: re.Match) -> str:
    return f"{m.group('year')}-{m.group('month')}-{m.group('day')}"


def _balance(m: re.Match) -> Optional[float]:
    return to_number(m.group("amount"))


_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule(
        name="amount_has_been",
        field="amount",
        pattern=re.compile(
            rf"amount\s+of\s+(?P<currency>[A-Z]{{3}})?\s?(?P<amount>{NUMBER})\s+has\s+been\s+(?P<direction>DEBITED|CREDITED)",
            _FLAGS,
        ),
        extract=_amount_direction,
    ),
    # "to your account XXX250"
    ExtractionRule(
        name="account_masked",
        field="account_mask",
        pattern=re.compile(rf"account\s+{MASK}(?P<digits>\d{{2,}})", _FLAGS),
        extract=_mask_digits,
    ),
    # "A/c no. XXXX1234", "Ac XX1234"
    ExtractionRule(
        name="ac_no_masked",
        field="account_mask",
        pattern=re.compile(rf"A/?c\.?\s*(?:no\.?\s*)?{MASK}(?P<digits>\d{{2,}})", _FLAGS),
        extract=_mask_digits,
    ),
    ExtractionRule(
        name="on_dmy",
        field="txn_date",
        pattern=re.compile(r"\bon\s+(?P<day>\d{2})/(?P<month>\d{2})/(?P<year>\d{4})", _FLAGS),
        extract=_iso_date,
    ),
    ExtractionRule(
        name="on_ymd",
        field="txn_date",
        pattern=re.compile(r"\bon\s+(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})", _FLAGS),
        extract=_iso_date,
    ),
    # "Total Avail.bal INR 2,82,218.66", "Avl Bal: INR 1,000.00"
    ExtractionRule(
        name="available_balance",
        field="balance_after",
        pattern=re.compile(
            rf"(?:Avail\.?\s*bal|Avl\.?\s*Bal|Available\s*Balance)[^\d]*(?P<currency>[A-Z]{{3}})?\s?(?P<amount>{NUMBER})",
            _FLAGS,
        ),
        extract=_balance,
    ),
)

RULES_MAP: Dict[str, ExtractionRule] = {rule.name: rule for rule in _RULES}

# Rule order used when no profile overrides a field.
DEFAULT_RULE_PLAN: Dict[str, Tuple[str, ...]] = {
    "amount": ("amount_has_been",),
    "account_mask": ("account_masked", "ac_no_masked"),
    "txn_date": ("on_dmy", "on_ymd"),
    "balance_after": ("available_balance",),
}

_EMPTY: Dict[str, Any] = {
    "amount": NO_AMOUNT,
    "account_mask": None,
    "txn_date": None,
    "balance_after": None,
}


def first_match(rule_names: Sequence[str], text: str) -> Tuple[Optional[str], Optional[re.Match]]:
    """
    Return the first rule (by name) whose pattern matches, with its match.

    Later rules are never consulted once one matches, even if the matched
    rule's extractor later yields None.
    """
    for name in rule_names:
        rule = RULES_MAP.get(name)
        if rule is None:
            continue
        m = rule.pattern.search(text or "")
        if m:
            return name, m
    return None, None


def run_rules(field_name: str, rule_names: Sequence[str], text: str) -> Tuple[Optional[str], Any]:
    name, m = first_match(rule_names, text)
    if name is None or m is None:
        return None, _EMPTY[field_name]
    return name, RULES_MAP[name].extract(m)


def extract_amount_and_direction(text: str, rules: Sequence[str] = DEFAULT_RULE_PLAN["amount"]) -> AmountDirection:
    return run_rules("amount", rules, text)[1]


def extract_account_mask(text: str, rules: Sequence[str] = DEFAULT_RULE_PLAN["account_mask"]) -> Optional[str]:
    return run_rules("account_mask", rules, text)[1]


def extract_txn_date(text: str, rules: Sequence[str] = DEFAULT_RULE_PLAN["txn_date"]) -> Optional[str]:
    return run_rules("txn_date", rules, text)[1]


def extract_balance_after(text: str, rules: Sequence[str] = DEFAULT_RULE_PLAN["balance_after"]) -> Optional[float]:
    return run_rules("balance_after", rules, text)[1]


@dataclass
class AlertExtraction:
    amount: AmountDirection = NO_AMOUNT
    account_mask: Optional[str] = None
    txn_date: Optional[str] = None
    balance_after: Optional[float] = None
    matched: Dict[str, str] = field(default_factory=dict)


def extract_alert_fields(text: str, plan: Optional[Mapping[str, Sequence[str]]] = None) -> AlertExtraction:
    """Run every field's rule list against `text`; missing fields stay None."""
    plan = plan or DEFAULT_RULE_PLAN
    result = AlertExtraction()
    for field_name in FIELDS:
        names = plan.get(field_name, DEFAULT_RULE_PLAN[field_name])
        rule_name, value = run_rules(field_name, names, text)
        setattr(result, field_name, value)
        if rule_name:
            result.matched[field_name] = rule_name
    return result


__all__ = [
    "AlertExtraction",
    "AmountDirection",
    "DEFAULT_RULE_PLAN",
    "ExtractionRule",
    "FIELDS",
    "NO_AMOUNT",
    "RULES_MAP",
    "extract_account_mask",
    "extract_alert_fields",
    "extract_amount_and_direction",
    "extract_balance_after",
    "extract_txn_date",
    "first_match",
    "run_rules",
]
