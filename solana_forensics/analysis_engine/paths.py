"""
Multi-hop path significance analysis over the transaction graph.

From every wallet node, a depth-bounded DFS enumerates simple paths (no
address repeated within one path, up to 4 addresses). Each path is scored by
transaction density, node-type weights and edge strength, clamped to 1.0, and
kept when it scores above 0.1. Paths across all roots are returned sorted by
significance, highest first; ties keep discovery order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from solana_forensics.analysis_engine.graph import (
    NODE_PROGRAM,
    NODE_TOKEN,
    NODE_WALLET,
    TransactionGraph,
    build_graph,
)
from solana_forensics.analysis_engine.models import Transfer
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

PATH_DIRECT_TRANSFER = "DIRECT_TRANSFER"
PATH_PROGRAM_INTERACTION = "PROGRAM_INTERACTION"
PATH_TOKEN_FLOW = "TOKEN_FLOW"
PATH_COMPLEX_FLOW = "COMPLEX_FLOW"

MAX_DEPTH = 3
MIN_SIGNIFICANCE = 0.1
MAX_SIGNIFICANCE = 1.0

SIGNATURE_WEIGHT = 0.1
EDGE_WEIGHT = 0.05
NODE_TYPE_WEIGHTS = {
    NODE_PROGRAM: 0.3,
    NODE_TOKEN: 0.2,
    NODE_WALLET: 0.1,
}


@dataclass(frozen=True)
class TransactionPath:
    addresses: tuple[str, ...]
    transactions: tuple[str, ...]
    significance: float
    type: str

    @property
    def key(self) -> str:
        return "->".join(self.addresses)

    def merge(self, other: "TransactionPath") -> "TransactionPath":
        """Combine two observations of the same path: union signatures, keep max significance."""
        signatures = tuple(sorted(set(self.transactions) | set(other.transactions)))
        return TransactionPath(
            addresses=self.addresses,
            transactions=signatures,
            significance=max(self.significance, other.significance),
            type=self.type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "addresses": list(self.addresses),
            "transactions": list(self.transactions),
            "significance": self.significance,
            "type": self.type,
        }


def _path_transactions(graph: TransactionGraph, path: tuple[str, ...]) -> set[str]:
    signatures: set[str] = set()
    for address in path:
        node = graph.nodes.get(address)
        if node is not None:
            signatures |= node.transactions
    return signatures


def calculate_path_significance(graph: TransactionGraph, path: tuple[str, ...]) -> float:
    significance = SIGNATURE_WEIGHT * len(_path_transactions(graph, path))
    for address in path:
        node = graph.nodes.get(address)
        if node is not None:
            significance += NODE_TYPE_WEIGHTS.get(node.kind, 0.0)
    for prev, nxt in zip(path, path[1:]):
        from_node = graph.nodes.get(prev)
        to_node = graph.nodes.get(nxt)
        if from_node is not None and to_node is not None:
            strength = from_node.outgoing.get(nxt, 0) + to_node.incoming.get(prev, 0)
            significance += EDGE_WEIGHT * strength
    return min(significance, MAX_SIGNIFICANCE)


def classify_path(graph: TransactionGraph, path: tuple[str, ...]) -> str:
    kinds = [graph.kind_of(a) for a in path]
    if NODE_PROGRAM in kinds:
        return PATH_PROGRAM_INTERACTION
    if NODE_TOKEN in kinds:
        return PATH_TOKEN_FLOW
    if len(path) >= 3:
        return PATH_COMPLEX_FLOW
    return PATH_DIRECT_TRANSFER


def _paths_from(graph: TransactionGraph, root: str) -> list[TransactionPath]:
    """
    Depth-first enumeration from root with an explicit stack of path tuples.

    Children are pushed in reverse so they pop in edge insertion order, which
    yields the same pre-order as a recursive walk.
    """
    found: list[TransactionPath] = []
    stack: list[tuple[str, ...]] = [(root,)]
    while stack:
        path = stack.pop()
        if len(path) > 1:
            significance = calculate_path_significance(graph, path)
            if significance > MIN_SIGNIFICANCE:
                found.append(
                    TransactionPath(
                        addresses=path,
                        transactions=tuple(sorted(_path_transactions(graph, path))),
                        significance=significance,
                        type=classify_path(graph, path),
                    )
                )
        if len(path) > MAX_DEPTH:
            continue
        for nxt in reversed(graph.neighbors(path[-1])):
            if nxt not in path:
                stack.append(path + (nxt,))
    return found


def find_significant_paths(graph: TransactionGraph) -> list[TransactionPath]:
    """All significant paths from every wallet node, sorted by significance (desc, stable)."""
    paths: list[TransactionPath] = []
    for address, node in graph.nodes.items():
        if node.kind == NODE_WALLET:
            paths.extend(_paths_from(graph, address))
    paths.sort(key=lambda p: p.significance, reverse=True)
    logger.debug("significant_paths_found", path_count=len(paths), node_count=len(graph.nodes))
    return paths


def analyze_transaction_paths(transfers: Iterable[Transfer]) -> list[TransactionPath]:
    """Build the graph and return its significant paths."""
    return find_significant_paths(build_graph(transfers))
