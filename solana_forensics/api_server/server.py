"""
FastAPI server — forensic analysis over caller-supplied transfers.

Exposes POST /analyze returning the full forensic report for one focal
address, GET /history/{address} returning the paths and funding sources
accumulated across earlier /analyze calls, and GET /health. Stateless apart
from the process-wide result cache, which is bounded by
FORENSICS_API_CACHE_MAX_NAMESPACES.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from solders.pubkey import Pubkey

from solana_forensics import __version__
from solana_forensics.analysis_engine.cache import InMemoryResultCache
from solana_forensics.analysis_engine.models import Transfer
from solana_forensics.analysis_engine.pipeline import (
    FUNDING_NAMESPACE,
    PATHS_NAMESPACE,
    run_forensic_analysis,
)
from solana_forensics.config.settings import get_settings
from solana_forensics.core.exceptions import InvalidTransferError
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

result_cache = InMemoryResultCache(max_namespaces=max(1, get_settings().api_cache_max_namespaces))


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class AnalyzeRequest(BaseModel):
    """POST /analyze body: focal wallet and its transfer records."""

    focal_address: str = Field(..., min_length=32, max_length=44, description="Focal wallet (base58)")
    transfers: list[dict[str, Any]] = Field(default_factory=list, description="Transfer records")


class HealthResponse(BaseModel):
    status: str = Field("ok", description="Liveness status")
    version: str = Field(..., description="Package version")


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Solana Forensics API",
    description="Forensic analytics (graph, paths, clusters, anomalies, entity, funding) for a wallet.",
    version=__version__,
)


def _require_pubkey(address: str) -> str:
    address = address.strip()
    try:
        Pubkey.from_string(address)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid Solana wallet address")
    return address


@app.exception_handler(InvalidTransferError)
async def invalid_transfer_handler(request: Request, exc: InvalidTransferError) -> JSONResponse:
    logger.warning("invalid_transfer_rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=422, content={"detail": str(exc), "code": exc.code})


@app.post("/analyze")
def analyze(body: AnalyzeRequest) -> dict[str, Any]:
    """
    Run every analysis component for focal_address over the supplied transfers.

    400 for an invalid address, 413 above the configured transfer cap,
    422 for a transfer without a signature.
    """
    settings = get_settings()
    focal = _require_pubkey(body.focal_address)
    if len(body.transfers) > settings.api_max_transfers:
        raise HTTPException(
            status_code=413,
            detail=f"at most {settings.api_max_transfers} transfers per request",
        )

    transfers = [Transfer.from_dict(item) for item in body.transfers]
    logger.info("analyze_called", focal_address=focal[:16] + "...", tx_count=len(transfers))
    return run_forensic_analysis(focal, transfers, settings=settings, cache=result_cache)


@app.get("/history/{address}")
def history(address: str) -> dict[str, Any]:
    """
    Paths and funding sources merged from every earlier /analyze call for address.

    Paths are ordered by significance, funding sources by amount. Unknown
    addresses return empty lists; an invalid address is a 400.
    """
    focal = _require_pubkey(address)
    paths = sorted(
        result_cache.items(f"{PATHS_NAMESPACE}:{focal}").values(),
        key=lambda p: p.significance,
        reverse=True,
    )
    sources = sorted(
        result_cache.items(f"{FUNDING_NAMESPACE}:{focal}").values(),
        key=lambda s: s.amount,
        reverse=True,
    )
    logger.debug("history_called", focal_address=focal[:16] + "...", path_count=len(paths))
    return {
        "walletAddress": focal,
        "paths": [p.to_dict() for p in paths],
        "fundingSources": [s.to_dict() for s in sources],
    }


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Liveness check: API is up."""
    return HealthResponse(status="ok", version=__version__)
