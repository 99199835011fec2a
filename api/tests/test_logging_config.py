import io
import json
import logging

from bankalert.logging_config import (
    ContextFormatter,
    JSONFormatter,
    log_with_context,
    record_context,
    setup_structured_logging,
)


def _record(**extra):
    record = logging.LogRecord("bankalert.parsers", logging.INFO, __file__, 1, "alert %s", ("normalized",), None)
    record.__dict__.update(extra)
    return record


def test_record_context_keeps_only_extras():
    assert record_context(_record(profile="canara", message_id="m-1")) == {"profile": "canara", "message_id": "m-1"}
    assert record_context(_record()) == {}


def test_json_formatter_line():
    line = JSONFormatter(service="bankalert-test").format(_record(matched_rules={"amount": "amount_has_been"}))
    data = json.loads(line)
    assert data["message"] == "alert normalized"
    assert data["level"] == "INFO"
    assert data["service"] == "bankalert-test"
    assert data["matched_rules"] == {"amount": "amount_has_been"}
    assert "args" not in data and "msg" not in data


def test_context_formatter_appends_pairs():
    line = ContextFormatter().format(_record(profile="canara", item_count=2))
    assert line.endswith('alert normalized [profile="canara" item_count=2]')
    assert "[" not in ContextFormatter().format(_record())


def test_setup_writes_to_given_stream():
    stream = io.StringIO()
    setup_structured_logging(use_json=True, log_level="DEBUG", stream=stream)
    try:
        log_with_context(logging.getLogger("bankalert.test"), logging.DEBUG, "hello", payload_source="ai_raw")
        data = json.loads(stream.getvalue().splitlines()[-1])
        assert data["payload_source"] == "ai_raw"
        assert data["logger"] == "bankalert.test"
    finally:
        setup_structured_logging(use_json=False, log_level="WARNING")
