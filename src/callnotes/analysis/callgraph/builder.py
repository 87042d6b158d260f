"""
Call graph construction from a semantic resolver.

The builder walks every project and document the resolver reports, registers
the in-scope declarations, and records one edge per distinct
(caller, canonical callee) pair where both ends are in scope.

Extraction is best effort. Each document is processed into an immutable
outcome (Extracted or Skipped); documents can be processed in parallel since
workers only read from the resolver. A single-threaded reduction then merges
the outcomes in document order, so serial and parallel runs produce the same
graph and the same registration order.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple, Union

from callnotes.analysis.callgraph.canonical import canonicalize
from callnotes.analysis.callgraph.scope import ProjectScope
from callnotes.application.errors import ResolutionGap
from callnotes.frontend.resolver import Document, SemanticResolver
from callnotes.machinery.callgraph import CallGraph
from callnotes.machinery.symbols import CallableUnit

LOG = logging.getLogger(__name__)

Edge = Tuple[CallableUnit, CallableUnit]


@dataclass(frozen=True)
class Extracted:
    """Units and edges extracted from one document."""

    document: Document
    units: Tuple[CallableUnit, ...] = ()
    edges: Tuple[Edge, ...] = ()
    skipped_declarations: int = 0


@dataclass(frozen=True)
class Skipped:
    """A document the resolver could not analyze."""

    document: Document
    reason: str = ""


Outcome = Union[Extracted, Skipped]


@dataclass
class CallGraphResult:
    """
    Finished call graph plus the registered in-scope units.

    Attributes:
        graph: Frozen call graph between in-scope units.
        units: In-scope units in registration order, mapped to the document
            that declared them.
        scope: The scope filter used during construction.
        projects_skipped: Projects whose documents could not be listed.
        documents_skipped: Documents the resolver could not analyze.
        declarations_skipped: Declarations whose bodies could not be analyzed.
    """

    graph: CallGraph
    units: Dict[CallableUnit, Document] = field(default_factory=dict)
    scope: ProjectScope = field(default_factory=lambda: ProjectScope(()))
    projects_skipped: int = 0
    documents_skipped: int = 0
    declarations_skipped: int = 0

    def units_by_file(self) -> Dict[str, List[CallableUnit]]:
        """Group registered units by source path; both levels sorted."""
        grouped = defaultdict(list)
        for unit in self.units:
            grouped[unit.path].append(unit)
        return {
            path: sorted(grouped[path], key=CallableUnit.sort_key)
            for path in sorted(grouped)
        }

    def document_of(self, unit: CallableUnit) -> Document:
        return self.units[unit]


class CallGraphBuilder(object):
    """Builds a CallGraphResult from a SemanticResolver.

    Attributes:
        resolver: The semantic resolver to query.
        workers: Number of threads used for per-document extraction.
    """

    def __init__(self, resolver: SemanticResolver, workers: int = 1):
        self.resolver = resolver
        self.workers = max(1, workers)

    def build(self) -> CallGraphResult:
        projects = self.resolver.list_projects()
        scope = ProjectScope.from_projects(projects)

        documents = []
        projects_skipped = 0
        for project in projects:
            try:
                documents.extend(self.resolver.documents(project))
            except ResolutionGap as exc:
                LOG.debug("skipping project %s: %s", project.name, exc)
                projects_skipped += 1

        outcomes = self._extract_all(documents, scope)
        result = self._reduce(outcomes, scope)
        result.projects_skipped = projects_skipped
        return result

    def _extract_all(self, documents: Sequence[Document], scope: ProjectScope) -> List[Outcome]:
        if self.workers == 1 or len(documents) < 2:
            return [self.extract_document(document, scope) for document in documents]

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            return list(pool.map(lambda document: self.extract_document(document, scope), documents))

    def extract_document(self, document: Document, scope: ProjectScope) -> Outcome:
        """Extract the in-scope units and edges of one document."""
        try:
            declared = self.resolver.declared_units(document)
        except ResolutionGap as exc:
            LOG.debug("skipping document %s: %s", document.path, exc)
            return Skipped(document, str(exc))

        units = []
        edges = []
        skipped = 0
        for unit in declared:
            if not scope.in_scope(unit):
                continue
            try:
                sites = self.resolver.call_sites(document, unit)
            except ResolutionGap as exc:
                LOG.debug("skipping declaration %s in %s: %s", unit.name, document.path, exc)
                skipped += 1
                continue

            units.append(unit)
            for site in sites:
                target = canonicalize(self.resolver.resolve_call(site))
                if target is None or not scope.in_scope(target):
                    continue
                edges.append((unit, target))

        return Extracted(document, tuple(units), tuple(edges), skipped)

    def _reduce(self, outcomes: Sequence[Outcome], scope: ProjectScope) -> CallGraphResult:
        graph = CallGraph()
        result = CallGraphResult(graph=graph, scope=scope)

        for outcome in outcomes:
            if isinstance(outcome, Skipped):
                result.documents_skipped += 1
                continue

            result.declarations_skipped += outcome.skipped_declarations
            for unit in outcome.units:
                if unit in result.units:
                    # First declaration wins; a second sighting is a resolver bug.
                    LOG.debug("ignoring duplicate declaration of %s in %s", unit.name, outcome.document.path)
                    continue
                result.units[unit] = outcome.document

        # Edges only between registered units.
        for outcome in outcomes:
            if isinstance(outcome, Extracted):
                graph.add_edges(
                    (caller, callee)
                    for caller, callee in outcome.edges
                    if caller in result.units and callee in result.units
                )

        graph.freeze()
        LOG.info(
            "call graph: %d units, %d edges, %d documents skipped",
            len(result.units),
            graph.edge_count(),
            result.documents_skipped,
        )
        return result
