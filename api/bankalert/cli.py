# Batch runner: bankalert-normalize alerts.json --mode text --format csv
import argparse
import json
import sys
from typing import List, Optional

from .config import ALERT_TIMEZONE, LOG_LEVEL, POLICY_PATH
from .exporters.sheet_csv import records_to_csv
from .logging_config import setup_structured_logging
from .parsers import normalize_alert_batch, normalize_llm_batch
from .parsers.policy_loader import load_policy
from .utils import check_iso_timestamp, now_iso


def _load_items(path: str) -> List:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        # a single item, or n8n's {"items": [...]}
        return list(data["items"]) if isinstance(data.get("items"), list) else [data]
    if isinstance(data, list):
        return data
    raise ValueError("expected a JSON list of items or a single JSON object")


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Normalize bank alert items into transaction records")
    p.add_argument("path", help="JSON file holding a list of alert items")
    p.add_argument("--mode", choices=("text", "llm"), default="text", help="raw alert text or LLM payloads")
    p.add_argument("--timestamp", help="ISO-8601 batch timestamp (default: now in ALERT_TIMEZONE)")
    p.add_argument("--format", dest="fmt", choices=("json", "csv"), default="json")
    p.add_argument("--policy", default=POLICY_PATH, help="alternative policy.yaml")
    args = p.parse_args(argv)

    # stdout carries the records
    setup_structured_logging(use_json=False, log_level=LOG_LEVEL, stream=sys.stderr)

    try:
        items = _load_items(args.path)
    except (OSError, ValueError) as e:
        print(f"error: cannot read {args.path}: {e}", file=sys.stderr)
        return 2

    if args.timestamp:
        try:
            stamp = check_iso_timestamp(args.timestamp)
        except ValueError as e:
            print(f"error: --timestamp: {e}", file=sys.stderr)
            return 2
    else:
        stamp = now_iso(ALERT_TIMEZONE)
    if args.mode == "llm":
        records = normalize_llm_batch(items, stamp)
    else:
        records = normalize_alert_batch(items, stamp, policy=load_policy(args.policy))

    if args.fmt == "csv":
        sys.stdout.write(records_to_csv(records))
    else:
        json.dump([r.to_row() for r in records], sys.stdout, indent=2, default=str)
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
