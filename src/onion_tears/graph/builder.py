"""Build a NetworkX call graph from a name-keyed function table."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

import networkx as nx

if TYPE_CHECKING:
    from onion_tears.graph.callpath import FunctionEntry


def build_call_graph(table: Mapping[str, "FunctionEntry"]) -> nx.DiGraph:
    """Build a directed caller -> callee graph.

    Nodes are function names.  Functions from *table* carry ``file_path``
    and ``defined=True``; names that are only ever called (library or
    unresolved calls) appear as bare nodes.  Edges are inserted in table
    order, then callee order, so ``G.predecessors(name)`` yields callers
    deterministically.
    """
    G = nx.DiGraph()

    G.add_nodes_from(
        (name, {"file_path": entry.file_path, "defined": True}) for name, entry in table.items()
    )
    for name, entry in table.items():
        G.add_edges_from((name, callee) for callee in entry.callees)

    return G


def callers_of(G: nx.DiGraph, name: str) -> list[str]:
    """Direct callers of *name* (the inverted call relation), in insertion order."""
    if name not in G:
        return []
    return list(G.predecessors(name))
