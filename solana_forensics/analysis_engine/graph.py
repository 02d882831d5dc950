"""
Transaction relationship graph built from transfer records.

Nodes are addresses (wallets, programs, token mints) with the signatures that
touched them. Directed edges represent sender -> receiver flows weighted by
interaction count. Built fresh per analysis; read by path analysis and used to
tag counterparties in clustering and entity analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from solana_forensics.analysis_engine.models import Transfer
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

NODE_WALLET = "wallet"
NODE_PROGRAM = "program"
NODE_TOKEN = "token"


@dataclass
class GraphNode:
    """
    One address in the graph.

    kind is set at first insertion and never changes, even if the address is
    later seen in another role.
    """

    address: str
    kind: str
    transactions: set[str] = field(default_factory=set)
    outgoing: dict[str, int] = field(default_factory=dict)
    """Receiver address -> number of transfers sent to it."""
    incoming: dict[str, int] = field(default_factory=dict)
    """Sender address -> number of transfers received from it."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "type": self.kind,
            "transactions": sorted(self.transactions),
            "outgoing": dict(self.outgoing),
            "incoming": dict(self.incoming),
        }


@dataclass
class TransactionGraph:
    """Address registry plus directed adjacency (insertion ordered)."""

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: dict[str, dict[str, None]] = field(default_factory=dict)

    def add_node(self, address: str, kind: str) -> GraphNode:
        node = self.nodes.get(address)
        if node is None:
            node = GraphNode(address=address, kind=kind)
            self.nodes[address] = node
        return node

    def add_transaction(self, address: str, signature: str) -> None:
        node = self.nodes.get(address)
        if node is not None:
            node.transactions.add(signature)

    def add_edge(self, sender: str, receiver: str) -> None:
        self.edges.setdefault(sender, {})[receiver] = None
        from_node = self.nodes.get(sender)
        to_node = self.nodes.get(receiver)
        if from_node is not None and to_node is not None:
            from_node.outgoing[receiver] = from_node.outgoing.get(receiver, 0) + 1
            to_node.incoming[sender] = to_node.incoming.get(sender, 0) + 1

    def neighbors(self, address: str) -> list[str]:
        return list(self.edges.get(address, {}))

    def kind_of(self, address: str) -> str | None:
        node = self.nodes.get(address)
        return node.kind if node is not None else None

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.edges.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "edges": [
                {"from": s, "to": r, "count": self.nodes[s].outgoing.get(r, 0)}
                for s, targets in self.edges.items()
                for r in targets
            ],
        }


def _touch(graph: TransactionGraph, address: str | None, kind: str, signature: str) -> None:
    if not address:
        return
    graph.add_node(address, kind)
    graph.add_transaction(address, signature)


def build_graph(transfers: Iterable[Transfer]) -> TransactionGraph:
    """
    Build the relationship graph from transfers.

    For each transfer: upsert sender and receiver as wallets, program_id as a
    program and each token mint as a token, recording the signature on each.
    An edge sender -> receiver is added only when both are present.
    """
    graph = TransactionGraph()
    count = 0
    for tx in transfers:
        count += 1
        _touch(graph, tx.sender, NODE_WALLET, tx.signature)
        _touch(graph, tx.receiver, NODE_WALLET, tx.signature)
        _touch(graph, tx.program_id, NODE_PROGRAM, tx.signature)
        for token in tx.token_transfers:
            _touch(graph, token.mint, NODE_TOKEN, tx.signature)
        if tx.sender and tx.receiver:
            graph.add_edge(tx.sender, tx.receiver)
    logger.debug(
        "transaction_graph_built",
        tx_count=count,
        node_count=len(graph.nodes),
        edge_count=graph.edge_count,
    )
    return graph
