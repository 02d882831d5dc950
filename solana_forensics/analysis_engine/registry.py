"""
Static registries: known-entity labels and program categories.

Supplied to the analysis engine as configuration data; nothing here is
fetched at runtime. Callers may pass their own mappings to the functions that
read these defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

ENTITY_TYPE_EXCHANGE = "exchange"
ENTITY_TYPE_WALLET = "wallet"
ENTITY_TYPE_CONTRACT = "contract"
ENTITY_TYPE_UNKNOWN = "unknown"


@dataclass(frozen=True)
class KnownEntity:
    name: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type}


KNOWN_ENTITIES: dict[str, KnownEntity] = {
    # Exchanges
    "MYPTXJLxnU9JoyY7eMN3anXTsCKfQr3dkXLR9RVzYhT": KnownEntity("Binance", ENTITY_TYPE_EXCHANGE),
    "HN8SG8J4vd29mTU4pD4x4tJSMJ5XTgP9mJbngwsvuXh6": KnownEntity("Binance", ENTITY_TYPE_EXCHANGE),
    "39fEpihLATXPJCQuSiXLUSiCbGchGYjeL39eyXh32KFZ": KnownEntity("FTX", ENTITY_TYPE_EXCHANGE),
    "4pmfRbPCXzbwHzFzAR3ornVYc3zLuLv8YbYjvra3Y8JA": KnownEntity("FTX", ENTITY_TYPE_EXCHANGE),
    "CEzN7mqP9xoxn2HdyW6fjEJ55YPQpF3XxMjYxsEAcS3W": KnownEntity("Coinbase", ENTITY_TYPE_EXCHANGE),
    "D5yQ3Q76KSqkrBmWYxEMZhhP1A3EncWYPU91XxRLUcGQ": KnownEntity("Coinbase", ENTITY_TYPE_EXCHANGE),
    "FmhXe9uG6NtTfWzJTzR2SCJ3LJHLvn1HpMJR3GyLoqSD": KnownEntity("Kraken", ENTITY_TYPE_EXCHANGE),
    "GEhAuFe9ixNBGiY86UihzCQ3HJLcd2Tbj3UU9AQCFihM": KnownEntity("Gemini", ENTITY_TYPE_EXCHANGE),
    # Foundations and projects
    "9n4nbM75f5Ui33ZbPYXn59EwSgE8CGsHtAeTH5YFeJ9E": KnownEntity("Solana Foundation", ENTITY_TYPE_WALLET),
    "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM": KnownEntity("Solana Labs Treasury", ENTITY_TYPE_WALLET),
    "E2TGeCi89XiR4UUdqKFiRxocfPjDXkfNQP9CwZfHVBCU": KnownEntity("Serum", ENTITY_TYPE_CONTRACT),
    "BQcdHdAQW1hczDbBi9hiegXAR7A98Q9jx3X3iBBBDiq4": KnownEntity("Mango Markets", ENTITY_TYPE_CONTRACT),
    "So1endDq2YkqhipRh3WViPa8hdiSpxWy6z3Z6tMCpAo": KnownEntity("Solend", ENTITY_TYPE_CONTRACT),
    "BXAbeHVpoV4MZ6kGcZ3zX9LfgWRKpMac9SjkHnoZZLMJ": KnownEntity("Raydium", ENTITY_TYPE_CONTRACT),
    "A4P5xQ371g7YnM49dCK8wBmJQwjuZeT9ti7qMxLPwLNF": KnownEntity("Jupiter Aggregator", ENTITY_TYPE_CONTRACT),
    # Mints and core programs
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": KnownEntity("USDT", ENTITY_TYPE_CONTRACT),
    "So11111111111111111111111111111111111111112": KnownEntity("Wrapped SOL", ENTITY_TYPE_CONTRACT),
    "11111111111111111111111111111111": KnownEntity("System Program", ENTITY_TYPE_CONTRACT),
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA": KnownEntity("Token Program", ENTITY_TYPE_CONTRACT),
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL": KnownEntity("Associated Token Program", ENTITY_TYPE_CONTRACT),
    "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr": KnownEntity("Memo Program", ENTITY_TYPE_CONTRACT),
    "4skJ85cdxQAFVKbcGgfun8iZPL7BadVYXG3kGEGkufqA": KnownEntity("Orca Whirlpool", ENTITY_TYPE_CONTRACT),
    "DjVE6JNiYqPL2QXyCUUh8rNjHrbz9hXHNYt99MQ59qw1": KnownEntity("Metaplex", ENTITY_TYPE_CONTRACT),
    "GvDMxPzN1sCj7L26YDK2HnMRXEQmQ2aemov8YBtPS7vR": KnownEntity("Magic Eden", ENTITY_TYPE_CONTRACT),
}


@dataclass(frozen=True)
class ProgramCategory:
    """Entity category recognised by interaction with one of its programs."""

    name: str
    programs: tuple[str, ...]
    min_interactions: int


PROGRAM_CATEGORIES: tuple[ProgramCategory, ...] = (
    ProgramCategory(
        "DEX",
        (
            "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB",
            "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP",
        ),
        10,
    ),
    ProgramCategory(
        "NFT_MARKETPLACE",
        (
            "M2mx93ekt1fmXSVkTrUL9xVFHkmME8HTUi5Cyc5aF7K",
            "hausS13jsjafwWwGqZTUQRmWyvyxn9EQpqMwV1PBBmk",
        ),
        5,
    ),
    ProgramCategory(
        "GAMING",
        (
            "GAMEFiQvN1VGoy8v1H3i9STtVfqqzRd6BnhFCTmJwz9",
            "GAMEKqXzGJ4tG4F8z4L4tG4F8z4L4tG4F8z4L4tG4F8z4",
        ),
        15,
    ),
    ProgramCategory(
        "DEFI",
        (
            "Stake11111111111111111111111111111111111111",
            "Lend11111111111111111111111111111111111111",
        ),
        20,
    ),
)


def lookup_entity(
    address: str | None,
    known: Mapping[str, KnownEntity] | None = None,
) -> KnownEntity | None:
    """Known-entity label for address, or None."""
    if not address:
        return None
    return (KNOWN_ENTITIES if known is None else known).get(address)
