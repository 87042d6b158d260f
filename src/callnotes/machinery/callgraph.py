"""
Directed call graph over callable units.

Nodes are CallableUnit instances (compared by identity). Edges capture
caller -> callee relationships and form a set: recording the same pair twice
keeps a single edge. The reverse view is always the exact transpose of the
forward view.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Iterator, Tuple

import networkx as nx

from callnotes.machinery.symbols import CallableUnit


class CallGraphError(Exception):
    """Base error for call graph handling issues."""


class CallGraph:
    """
    Call graph backed by a ``networkx.DiGraph``.

    Only edges between in-scope units are ever added; the graph does not
    validate scope itself, that is the builder's job.
    """

    def __init__(self) -> None:
        self._graph = nx.DiGraph()
        self._frozen = False

    # ------------------------------------------------------------------ utils
    def add_edge(self, caller: CallableUnit, callee: CallableUnit) -> None:
        """
        Record an invocation from `caller` to `callee`.

        Raises:
            CallGraphError: If the graph has been frozen.
        """
        if self._frozen:
            raise CallGraphError("cannot add edges to a frozen call graph")
        self._graph.add_edge(caller, callee)

    def add_edges(self, edges: Iterable[Tuple[CallableUnit, CallableUnit]]) -> None:
        for caller, callee in edges:
            self.add_edge(caller, callee)

    def freeze(self) -> "CallGraph":
        """Make the graph immutable. Returns self."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ---------------------------------------------------------------- queries
    def callees(self, unit: CallableUnit) -> FrozenSet[CallableUnit]:
        if unit not in self._graph:
            return frozenset()
        return frozenset(self._graph.successors(unit))

    def callers(self, unit: CallableUnit) -> FrozenSet[CallableUnit]:
        if unit not in self._graph:
            return frozenset()
        return frozenset(self._graph.predecessors(unit))

    def forward(self) -> Dict[CallableUnit, FrozenSet[CallableUnit]]:
        """Return ``{caller: callees}`` for every unit with outgoing edges."""
        return {
            node: frozenset(successors)
            for node, successors in self._graph.adjacency()
            if successors
        }

    def reverse(self) -> Dict[CallableUnit, FrozenSet[CallableUnit]]:
        """Return ``{callee: callers}``, the exact transpose of forward()."""
        transposed = self._graph.reverse(copy=False)
        return {
            node: frozenset(successors)
            for node, successors in transposed.adjacency()
            if successors
        }

    def edges(self) -> Iterator[Tuple[CallableUnit, CallableUnit]]:
        """Iterate over edges as (caller, callee) tuples."""
        return iter(self._graph.edges())

    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def __contains__(self, unit) -> bool:
        return unit in self._graph
