"""Semantic resolver interface.

The call graph builder never parses or type-checks code itself. Everything it
knows about declarations and call targets comes through a SemanticResolver:

- ``list_projects`` / ``documents``: the loaded project set and its sources
- ``declared_units``: callable declarations of a document
- ``call_sites`` / ``resolve_call``: call expressions and what they bind to
- ``raw_documentation``: structured documentation attached to a unit

Implementations signal "cannot analyze this" by raising ResolutionGap from
``documents``, ``declared_units`` or ``call_sites``. ``resolve_call`` never
raises for an unresolvable call; it returns None instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional

from callnotes.machinery.symbols import CallableUnit, Resolution


@dataclass(frozen=True)
class Project:
    """One project of the loaded project set."""

    name: str
    assembly: str
    root: str = ""
    language: str = ""


@dataclass(frozen=True)
class Document:
    """One source document of a project."""

    path: str
    project: Project


@dataclass(frozen=True)
class CallSite:
    """
    One call expression inside a declaration body.

    ``node`` is private to the resolver that produced the call site.
    """

    document: Document
    caller: CallableUnit
    line: int = 0
    column: int = 0
    node: Any = field(default=None, compare=False, repr=False)


class SemanticResolver(ABC):
    """Abstract base class for semantic resolvers."""

    def load(self) -> None:
        """Load the workspace.

        Raises:
            WorkspaceLoadError: If the project set cannot be loaded.
        """
        pass

    @abstractmethod
    def list_projects(self) -> List[Project]:
        pass

    @abstractmethod
    def documents(self, project: Project) -> List[Document]:
        pass

    @abstractmethod
    def declared_units(self, document: Document) -> List[CallableUnit]:
        pass

    @abstractmethod
    def call_sites(self, document: Document, unit: CallableUnit) -> List[CallSite]:
        pass

    @abstractmethod
    def resolve_call(self, call_site: CallSite) -> Optional[Resolution]:
        pass

    def raw_documentation(self, unit: CallableUnit) -> Optional[str]:
        return unit.documentation

    def language(self, document: Document) -> str:
        """Code fence language used when rendering signatures."""
        return document.project.language
