import pytest
from pydantic import ValidationError

from bankalert.parsers import normalize_alert, normalize_alert_batch
from bankalert.schemas import AlertItem

CANARA_ITEM = {
    "id": "1989c0e3a7f2b001",
    "threadId": "1989c0e3a7f2b001",
    "From": "Canara Bank <canarabank@canarabank.com>",
    "Subject": "Transaction Alert",
    "snippet": (
        "An amount of INR 620.00 has been DEBITED from your account XXX250 on 08/08/2025.\r\n"
        "Total Avail.bal INR 2,82,218.66"
    ),
}

CORE_FIELDS = [
    "timestamp", "bank", "account_name", "account_mask", "amount", "currency",
    "direction", "type", "txn_date", "balance_after", "source_email", "subject",
    "message_id", "thread_id", "raw_snippet",
]


def test_canara_debit_alert(batch_ts):
    rec = normalize_alert(CANARA_ITEM, batch_ts)
    assert rec.amount == 620.0
    assert rec.currency == "INR"
    assert rec.direction == "DEBITED"
    assert rec.type == "expense"
    assert rec.account_mask == "250"
    assert rec.txn_date == "2025-08-08"
    assert rec.balance_after == 282218.66
    assert rec.bank == "Canara Bank"
    assert rec.account_name == "Canara Bank - XXXX250"
    assert rec.source_email == "Canara Bank <canarabank@canarabank.com>"
    assert rec.subject == "Transaction Alert"
    assert rec.message_id == "1989c0e3a7f2b001"
    assert rec.thread_id == "1989c0e3a7f2b001"
    assert rec.timestamp == batch_ts
    assert "\n" not in rec.raw_snippet


def test_text_record_has_core_fields_only(batch_ts):
    row = normalize_alert({"snippet": "Your OTP is 4321"}, batch_ts).to_row()
    assert list(row) == CORE_FIELDS
    assert "ai_confidence" not in row
    assert row["account_name"] == "Canara Bank - Account"
    assert row["currency"] == "INR"
    assert row["type"] is None
    assert row["subject"] is None
    assert row["source_email"] is None
    assert row["raw_snippet"] == "Your OTP is 4321"


def test_credit_alert_in_subject(batch_ts):
    item = {"body": "", "text": "Dear customer", "subject": "An amount of 5,000 has been CREDITED to A/c no. XX7788"}
    rec = normalize_alert(item, batch_ts)
    assert rec.direction == "CREDITED"
    assert rec.type == "income"
    assert rec.amount == 5000.0
    assert rec.account_mask == "7788"
    assert rec.raw_snippet == "Dear customer"


def test_batch_preserves_length_and_order(batch_ts):
    items = [
        CANARA_ITEM,
        {"messageId": "m-2", "snippet": "not an alert"},
        None,
        {"json": {"id": 4, "snippet": "amount of INR 10 has been credited"}},
        "garbage",
    ]
    records = normalize_alert_batch(items, batch_ts)
    assert len(records) == len(items)
    assert [r.message_id for r in records] == ["1989c0e3a7f2b001", "m-2", None, "4", None]
    assert {r.timestamp for r in records} == {batch_ts}
    assert [r.direction for r in records] == ["DEBITED", None, None, "CREDITED", None]
    assert all(r.currency == "INR" for r in records)
    assert records[2].raw_snippet == ""


def test_batch_with_custom_profiles(batch_ts, two_bank_policy):
    item = {"From": "alerts@hdfcbank.net", "snippet": "Rs 100 debited from A/c XX1234 on 2025-08-01"}
    [rec] = normalize_alert_batch([item], batch_ts, policy=two_bank_policy)
    assert rec.bank == "HDFC Bank"
    assert rec.account_name == "HDFC Bank - XXXX1234"
    assert rec.txn_date == "2025-08-01"
    assert rec.amount is None


def test_datetime_timestamp_is_serialized():
    from datetime import datetime, timezone

    ts = datetime(2025, 8, 8, 4, 45, tzinfo=timezone.utc)
    [rec] = normalize_alert_batch([CANARA_ITEM], ts)
    assert rec.timestamp == "2025-08-08T04:45:00+00:00"


def test_records_are_immutable(batch_ts):
    rec = normalize_alert(CANARA_ITEM, batch_ts)
    with pytest.raises(ValidationError):
        rec.amount = 1.0


def test_alert_item_priority_order():
    item = AlertItem.from_raw(
        {"snippet": "", "body": "from body", "text": "from text", "Subject": "S", "subject": "s",
         "From": "F", "from": "f", "id": "", "messageId": "mid", "threadId": 7}
    )
    assert item.body_text == "from body"
    assert item.subject_text == "S"
    assert item.sender == "F"
    assert item.message_id == "mid"
    assert item.thread_id == "7"


def test_look_alike_currency_degrades_only_its_own_record(batch_ts):
    items = [
        {"id": "k", "snippet": "An amount of \u212aWD 620.00 has been DEBITED from your account XXX250"},
        {"id": "ok", "snippet": "An amount of INR 10.00 has been CREDITED"},
    ]
    records = normalize_alert_batch(items, batch_ts)
    assert [r.message_id for r in records] == ["k", "ok"]
    assert [r.currency for r in records] == ["INR", "INR"]
    assert records[0].amount is None
    assert records[0].account_mask == "250"
    assert records[1].amount == 10.0


def test_non_ascii_digit_date_is_dropped(batch_ts):
    rec = normalize_alert({"snippet": "amount of INR 5 has been debited on ٠٨/٠٨/٢٠٢٥"}, batch_ts)
    assert rec.txn_date is None
    assert rec.amount == 5.0
