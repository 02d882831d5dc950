"""
Configuration for Solana Forensics.

Settings come from environment variables (optionally a .env file at the
project root). Analysis thresholds have code defaults and can be overridden
with FORENSICS_* variables.
"""

from solana_forensics.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
