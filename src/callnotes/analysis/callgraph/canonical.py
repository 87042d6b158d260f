"""
Canonicalization of resolved call targets.

Every call target is mapped to one declaration so that edges and links are
built from exact identity comparisons instead of name matching:

1. a bound/reduced form maps to the declaration it was reduced from;
2. otherwise the original (unspecialized) definition is used;
3. an ambiguous resolution picks its first candidate.

Rule 3 is a known precision loss. Ambiguous call sites get exactly one edge,
never a fan-out over all candidates.
"""

from typing import Optional

from callnotes.machinery.symbols import CallableUnit, Resolution


def select_target(resolution: Optional[Resolution]):
    """Return the single target of a resolution, or None when there is none."""
    if resolution is None:
        return None
    if resolution.symbol is not None:
        return resolution.symbol
    if resolution.candidates:
        return resolution.candidates[0]
    return None


def canonical_symbol(symbol):
    """Map a (possibly bound or instantiated) symbol to its declaration."""
    if symbol is None:
        return None
    reduced = getattr(symbol, "reduced_from", None)
    if reduced is not None:
        return reduced
    original = getattr(symbol, "original_definition", None)
    if original is not None:
        return original
    return symbol


def canonicalize(resolution: Optional[Resolution]) -> Optional[CallableUnit]:
    """
    Produce the canonical unit for a call-site resolution.

    Args:
        resolution: What the resolver returned for the call site.

    Returns:
        The canonical CallableUnit, or None if the call has no usable target.
    """
    canon = canonical_symbol(select_target(resolution))
    if isinstance(canon, CallableUnit):
        return canon
    return None
