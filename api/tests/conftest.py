"""
Pytest configuration for the alert normalizer tests.

This file helps pytest find and import the application modules when the
package has not been installed.
"""

import os
import sys

# Add api directory to Python path so we can import bankalert
api_path = os.path.join(os.path.dirname(__file__), "..")
if api_path not in sys.path:
    sys.path.insert(0, api_path)

import pytest


BATCH_TS = "2025-08-08T10:15:00+05:30"


@pytest.fixture
def batch_ts():
    return BATCH_TS


# Packaged Canara profile plus a second institution declared purely as data.
TWO_BANK_POLICY = {
    "defaults": {
        "profile": "canara",
        "rules": {
            "amount": ["amount_has_been"],
            "account_mask": ["account_masked", "ac_no_masked"],
            "txn_date": ["on_dmy", "on_ymd"],
            "balance_after": ["available_balance"],
        },
    },
    "profiles": {
        "canara": {"bank_label": "Canara Bank", "detect": ["canara\\s*bank"]},
        "hdfc": {
            "bank_label": "HDFC Bank",
            "detect": ["hdfc", "hdfcbank\\.net"],
            "rules": {"account_mask": ["ac_no_masked"]},
        },
    },
}


@pytest.fixture
def two_bank_policy():
    return TWO_BANK_POLICY
