"""
Core data structures shared by the analysis packages: the symbol model of
callable units and the directed call graph.
"""

from .callgraph import CallGraph, CallGraphError

__all__ = ["CallGraph", "CallGraphError"]
