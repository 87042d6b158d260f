"""Project scope filter: which callable units count as "ours"."""

from typing import Iterable, Optional

from callnotes.machinery.symbols import ACCESSOR_KINDS, OPERATOR_KINDS, CallableUnit

EXCLUDED_KINDS = ACCESSOR_KINDS | OPERATOR_KINDS


class ProjectScope(object):
    """
    Pure predicate over callable units.

    A unit is in scope when it belongs to one of the project assemblies, has
    a source-backed location, is not compiler generated, and is not a
    property/event accessor or an operator.
    """

    __slots__ = ("assemblies",)

    def __init__(self, assemblies: Iterable[str]):
        self.assemblies = frozenset(assemblies)

    @classmethod
    def from_projects(cls, projects) -> "ProjectScope":
        return cls(project.assembly for project in projects)

    def in_scope(self, unit: Optional[CallableUnit]) -> bool:
        if unit is None:
            return False
        if unit.assembly not in self.assemblies:
            return False
        if not unit.in_source:
            return False
        if unit.is_implicit:
            return False
        return unit.kind not in EXCLUDED_KINDS

    __call__ = in_scope
