"""
Command-line entrypoint.

    python -m solana_forensics transfers.json --focal <ADDRESS>
    python -m solana_forensics --fetch --focal <ADDRESS>
    python -m solana_forensics --serve

FILE holds a JSON list of transfer records, or an object with a "transfers"
list. The report is printed to stdout as JSON; logs go to stderr.
Env: API_HOST, API_PORT, LOG_LEVEL, FORENSICS_* (see config.settings).
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from solana_forensics.analysis_engine.pipeline import run_forensic_analysis
from solana_forensics.config.settings import get_settings
from solana_forensics.core.exceptions import ForensicsError
from solana_forensics.forensics_logging import get_logger

logger = get_logger("solana_forensics.cli")


def load_transfers_file(path: Path) -> list[Any]:
    """Read transfer records from a JSON file; raise ValueError on a bad shape."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("transfers")
    if not isinstance(data, list):
        raise ValueError("expected a JSON list of transfers or an object with a 'transfers' list")
    return data


def _serve() -> int:
    import uvicorn

    from solana_forensics.api_server.server import app

    host = os.getenv("API_HOST", "127.0.0.1").strip()
    port = int(os.getenv("API_PORT", "8000").strip() or "8000")
    logger.info("api_server_starting", host=host, port=port)
    uvicorn.run(app, host=host, port=port, log_level=os.getenv("LOG_LEVEL", "info").lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="solana_forensics", description="Forensic analysis of Solana wallet transfers")
    ap.add_argument("file", nargs="?", type=Path, help="JSON file with transfer records")
    ap.add_argument("--focal", type=str, help="Focal wallet address")
    ap.add_argument("--fetch", action="store_true", help="Fetch the focal wallet history over RPC instead of FILE")
    ap.add_argument("--serve", action="store_true", help="Run the HTTP API (uvicorn)")
    ap.add_argument("--indent", type=int, default=2, help="JSON indent for the report")
    return ap


def main(argv: list[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if args.serve:
        return _serve()
    if not args.focal:
        ap.error("--focal is required")
    if args.file is None and not args.fetch:
        ap.error("pass a FILE or --fetch")

    settings = get_settings()
    if args.fetch:
        from solana_forensics.ingestion.helius import fetch_transfers

        try:
            transfers: list[Any] = fetch_transfers(args.focal, settings)
        except (ForensicsError, ValueError) as e:
            logger.error("cli_fetch_failed", focal_address=args.focal[:16], error=str(e))
            return 1
    else:
        try:
            transfers = load_transfers_file(args.file)
        except (OSError, ValueError) as e:
            logger.error("cli_input_unreadable", path=str(args.file), error=str(e))
            return 1

    report = run_forensic_analysis(args.focal, transfers, settings=settings)
    json.dump(report, sys.stdout, indent=args.indent)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
