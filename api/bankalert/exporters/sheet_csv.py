import csv
from io import StringIO
from typing import Any, Dict, List, Optional, Sequence, Union

from ..schemas import LLMTransactionRecord, TransactionRecord

# Header of the transactions sheet the records are appended to.
SHEET_COLUMNS = [
    "timestamp", "bank", "account_name", "account_mask", "amount", "currency",
    "direction", "type", "txn_date", "balance_after", "source_email", "subject",
    "message_id", "thread_id", "raw_snippet",
]
LLM_SHEET_COLUMNS = SHEET_COLUMNS + ["ai_confidence", "description"]

Record = Union[TransactionRecord, Dict[str, Any]]


def columns_for(records: Sequence[Record]) -> List[str]:
    for rec in records:
        if isinstance(rec, LLMTransactionRecord) or (isinstance(rec, dict) and "ai_confidence" in rec):
            return list(LLM_SHEET_COLUMNS)
    return list(SHEET_COLUMNS)


def records_to_rows(records: Sequence[Record], columns: Optional[Sequence[str]] = None) -> List[List[Any]]:
    """Lay records out in sheet column order; None becomes an empty cell."""
    cols = list(columns) if columns else columns_for(records)
    rows: List[List[Any]] = []
    for rec in records:
        data = rec.to_row() if isinstance(rec, TransactionRecord) else rec
        rows.append(["" if data.get(c) is None else data.get(c) for c in cols])
    return rows


def records_to_csv(records: Sequence[Record], columns: Optional[Sequence[str]] = None) -> str:
    cols = list(columns) if columns else columns_for(records)
    buf = StringIO()
    w = csv.writer(buf)
    w.writerow(cols)
    for row in records_to_rows(records, cols):
        w.writerow(row)
    return buf.getvalue()
