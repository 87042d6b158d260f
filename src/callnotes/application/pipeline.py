"""Generation pipeline for callnotes.

The pipeline runs the phases of one generation in strict order:

1. load    - the resolver loads the workspace (fatal on failure)
2. build   - the call graph is extracted and finalized
3. render  - every note is rendered from the finished graph
4. write   - notes are written to the output directory

Rendering starts only after the graph is frozen, so every "Calls" and
"Called-by" list reflects the complete graph. Nothing is written when an
earlier phase fails.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from callnotes.analysis import docs
from callnotes.analysis.callgraph import formats
from callnotes.analysis.callgraph.builder import CallGraphBuilder, CallGraphResult
from callnotes.application.config import GeneratorConfig, Mode
from callnotes.frontend.python_resolver import PythonResolver
from callnotes.machinery.symbols import CallableUnit
from callnotes.util.application.console import Console
from callnotes.util.io import filesystem
from callnotes.util.io.formatting import plural

LOG = logging.getLogger(__name__)


@dataclass
class GenerationSummary:
    """Counts reported at the end of a run."""

    mode: Mode
    out_dir: str
    units: int = 0
    notes: int = 0
    written: int = 0
    unchanged: int = 0
    collisions: int = 0
    documents_skipped: int = 0

    def describe(self) -> str:
        if self.mode is Mode.PER_FILE:
            return "Wrote %s into %s → %s" % (
                plural(self.units, "method"),
                plural(self.notes, "markdown file"),
                self.out_dir,
            )
        return "Wrote %s → %s" % (plural(self.notes, "method markdown file"), self.out_dir)


class Pipeline(object):
    """Runs one generation from workspace to notes.

    Attributes:
        config: The run configuration.
        resolver: Semantic resolver; a PythonResolver over
            ``config.project_path`` unless one is supplied.
        console: Console for progress and phase timings.
    """

    def __init__(self, config: GeneratorConfig, resolver=None, console: Optional[Console] = None):
        self.config = config
        if resolver is None:
            resolver = PythonResolver(config.project_path, guess_receivers=config.guess_receivers)
        self.resolver = resolver
        self.console = console if console is not None else Console(verbose=config.verbose)
        self._docs: Dict[CallableUnit, docs.DocumentationBlock] = {}

    def run(self) -> GenerationSummary:
        """Run all phases.

        Raises:
            WorkspaceLoadError: If the workspace cannot be loaded.
        """
        with self.console.scope("load"):
            self.resolver.load()

        with self.console.scope("build"):
            result = CallGraphBuilder(self.resolver, workers=self.config.workers).build()

        with self.console.scope("render"):
            notes = self.render(result)

        summary = GenerationSummary(
            mode=self.config.mode,
            out_dir=self.config.out_dir,
            documents_skipped=result.documents_skipped,
        )
        with self.console.scope("write"):
            self.write(notes, summary)

        self.console.memory()
        return summary

    # ---------------------------------------------------------------- render
    def documentation(self, unit: CallableUnit) -> docs.DocumentationBlock:
        if unit not in self._docs:
            self._docs[unit] = docs.extract_unit(self.resolver, unit)
        return self._docs[unit]

    def section(self, unit: CallableUnit, result: CallGraphResult) -> str:
        language = self.resolver.language(result.document_of(unit))
        return formats.render_section(unit, result.graph, self.documentation(unit), language)

    def render(self, result: CallGraphResult) -> List[formats.RenderedNote]:
        """Render every note in deterministic order."""
        if self.config.mode is Mode.PER_FILE:
            return [
                formats.render_file_note(path, [self.section(unit, result) for unit in units])
                for path, units in result.units_by_file().items()
            ]

        ordered = sorted(
            result.units,
            key=lambda unit: (formats.unit_note_name(unit),) + unit.sort_key(),
        )
        return [
            formats.render_unit_note(unit, self.section(unit, result), self.source_path(unit, result))
            for unit in ordered
        ]

    def source_path(self, unit: CallableUnit, result: CallGraphResult) -> str:
        root = result.document_of(unit).project.root
        if not root:
            return unit.path
        return filesystem.relative(unit.path, root)

    # ----------------------------------------------------------------- write
    def write(self, notes: List[formats.RenderedNote], summary: GenerationSummary) -> None:
        """Write notes; the first note wins when two share a file name."""
        seen = set()
        for note in notes:
            key = note.filename.lower()
            if key in seen:
                LOG.warning("note %s already written in this run; skipping duplicate", note.filename)
                summary.collisions += 1
                continue
            seen.add(key)
            summary.units += note.units

            if filesystem.writeFileIfChanged(self.config.out_dir, note.filename, None, note.text):
                summary.written += 1
            else:
                summary.unchanged += 1
            summary.notes += 1

        self.console.verbose_output(
            "%s written, %s unchanged, %s skipped"
            % (plural(summary.written, "note"), plural(summary.unchanged, "note"), plural(summary.collisions, "collision")),
            0,
        )
