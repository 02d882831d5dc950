"""HTTP API over the forensic analysis pipeline."""

from solana_forensics.api_server.server import app

__all__ = ["app"]
