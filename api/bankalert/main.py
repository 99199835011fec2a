import logging

from fastapi import APIRouter, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from . import __version__
from .config import ALERT_TIMEZONE, CORS_ORIGINS, LOG_JSON, LOG_LEVEL
from .exporters.sheet_csv import records_to_csv
from .logging_config import setup_structured_logging
from .parsers import normalize_alert_batch, normalize_llm_batch
from .schemas import AlertBatchRequest, AlertBatchResponse
from .utils import now_iso

setup_structured_logging(use_json=LOG_JSON, log_level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bank Alert Normalizer", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

router = APIRouter(prefix="/v1/alerts", tags=["alerts"])

_PIPELINES = {
    "parse": normalize_alert_batch,
    "llm": normalize_llm_batch,
}


def _run(mode: str, req: AlertBatchRequest):
    pipeline = _PIPELINES.get(mode)
    if pipeline is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown pipeline '{mode}'")
    # one stamp per batch, shared by every record
    stamp = req.timestamp or now_iso(ALERT_TIMEZONE)
    return stamp, pipeline(req.items, stamp)


@app.get("/health")
def health():
    """JSON health/info endpoint for monitoring and scripts."""
    return {"ok": True, "service": "Bank Alert Normalizer", "version": __version__}


@router.post("/parse", response_model=AlertBatchResponse)
def parse_alerts(req: AlertBatchRequest):
    """Extract transactions from raw alert text."""
    stamp, records = _run("parse", req)
    return AlertBatchResponse(timestamp=stamp, count=len(records), records=[r.to_row() for r in records])


@router.post("/llm", response_model=AlertBatchResponse)
def validate_llm_payloads(req: AlertBatchRequest):
    """Validate and coerce language-model payloads."""
    stamp, records = _run("llm", req)
    return AlertBatchResponse(timestamp=stamp, count=len(records), records=[r.to_row() for r in records])


@router.post("/{mode}/csv")
def export_csv(mode: str, req: AlertBatchRequest):
    """Same as the JSON endpoints, laid out in transactions-sheet column order."""
    _, records = _run(mode, req)
    return Response(
        content=records_to_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="alerts-{mode}.csv"'},
    )


app.include_router(router)
