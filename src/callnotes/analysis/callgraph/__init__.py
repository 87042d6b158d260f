"""
Call graph construction and note rendering.

- canonical: maps resolved call targets to their declarations
- scope: decides which callable units belong to the analyzed projects
- builder: extracts the call graph from a semantic resolver
- formats: renders Markdown notes from a finished graph
"""

from .builder import CallGraphBuilder, CallGraphResult, Extracted, Skipped
from .canonical import canonicalize
from .scope import ProjectScope

__all__ = [
    "CallGraphBuilder",
    "CallGraphResult",
    "Extracted",
    "Skipped",
    "ProjectScope",
    "canonicalize",
]
