import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .utils import DEFAULT_CURRENCY, check_iso_timestamp

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5
FALLBACK_ACCOUNT_NAME = "Bank Account"

Direction = Literal["DEBITED", "CREDITED"]


class AlertItem(BaseModel):
    """
    One message handed over by the mailbox/SMS collaborator.

    Each logical value may arrive under several keys; the properties below
    resolve them in a fixed priority order:

    - body: `snippet`, `body`, `text`
    - subject: `Subject`, `subject`
    - sender: `From`, `from`
    - message id: `id`, `messageId`
    - thread id: `threadId`
    - LLM payload: `ai_json`, `parsed` (objects), then `ai_raw`, `response`
      (JSON strings)
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    snippet: Optional[str] = None
    body: Optional[str] = None
    text: Optional[str] = None
    subject_header: Optional[str] = Field(default=None, alias="Subject")
    subject: Optional[str] = None
    from_header: Optional[str] = Field(default=None, alias="From")
    from_: Optional[str] = Field(default=None, alias="from")
    id: Optional[str] = None
    messageId: Optional[str] = None
    threadId: Optional[str] = None
    ai_json: Optional[Dict[str, Any]] = None
    parsed: Optional[Dict[str, Any]] = None
    ai_raw: Optional[str] = None
    response: Optional[str] = None

    @field_validator(
        "snippet", "body", "text", "subject_header", "subject",
        "from_header", "from_", "id", "messageId", "threadId",
        mode="before",
    )
    @classmethod
    def _stringify(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("ai_json", "parsed", mode="before")
    @classmethod
    def _objects_only(cls, v: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(v, Mapping):
            return None
        return {str(k): val for k, val in v.items()}

    @field_validator("ai_raw", "response", mode="before")
    @classmethod
    def _strings_only(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) else None

    @classmethod
    def from_raw(cls, raw: Any) -> "AlertItem":
        """Build an item from whatever the collaborator sent; never raises."""
        if isinstance(raw, AlertItem):
            return raw
        # n8n hands items over as {"json": {...}}
        if isinstance(raw, Mapping) and set(raw.keys()) <= {"json", "binary", "pairedItem"} and isinstance(raw.get("json"), Mapping):
            raw = raw["json"]
        if not isinstance(raw, Mapping):
            return cls()
        try:
            return cls.model_validate({str(k): v for k, v in raw.items()})
        except ValidationError as e:
            logger.warning("Discarding unreadable alert item fields: %s", e.errors(include_input=False))
            return cls()

    @property
    def body_text(self) -> str:
        return self.snippet or self.body or self.text or ""

    @property
    def subject_text(self) -> str:
        return self.subject_header or self.subject or ""

    @property
    def sender(self) -> str:
        return self.from_header or self.from_ or ""

    @property
    def message_id(self) -> Optional[str]:
        return self.id or self.messageId or None

    @property
    def thread_id(self) -> Optional[str]:
        return self.threadId or None


class TransactionRecord(BaseModel):
    """Canonical row written to the transactions sheet."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    bank: Optional[str] = None
    account_name: str
    account_mask: Optional[str] = None
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)
    currency: str = Field(default=DEFAULT_CURRENCY, pattern=r"^[A-Z]{3}$")
    direction: Optional[Direction] = None
    type: Optional[str] = None
    txn_date: Optional[str] = Field(default=None, pattern=r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
    balance_after: Optional[float] = Field(default=None, allow_inf_nan=False)
    source_email: Optional[str] = None
    subject: Optional[str] = None
    message_id: Optional[str] = None
    thread_id: Optional[str] = None
    raw_snippet: str = ""

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class LLMTransactionRecord(TransactionRecord):
    """Record built from a language-model payload."""

    ai_confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)
    description: Optional[Any] = None


class AlertBatchRequest(BaseModel):
    items: List[Any] = Field(default_factory=list)
    timestamp: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _iso_timestamp(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else check_iso_timestamp(v)


class AlertBatchResponse(BaseModel):
    timestamp: str
    count: int
    records: List[Dict[str, Any]]
