"""
Markdown note generation for the call graph.

Two granularities are produced from the same section renderer:

- a per-file note: front matter tagged ``file``, the file name as title, and
  one section per in-scope unit declared in that file;
- a per-unit note: front matter tagged ``method``, a header naming the
  declaring type and the source path, and exactly one section.

Cross-reference links use the unit's display name (``[[Name]]``). Distinct
units sharing a display name alias to the same link target; link keys are
meant to be human readable, not globally unique.

All orderings are by display name, so identical input always renders
byte-identical notes.
"""

import os
from typing import Iterable, List, NamedTuple

from callnotes.analysis.docs import DocumentationBlock
from callnotes.machinery.callgraph import CallGraph
from callnotes.machinery.symbols import CallableUnit
from callnotes.util.io.filesystem import sanitizeFilename

DOC_PLACEHOLDER = "- _TODO: Plain-English walkthrough._"
IMPROVEMENTS_PLACEHOLDER = "- _TODO: Suggested optimizations._"
CALLS_HEADING = "**Calls →**"
CALLED_BY_HEADING = "**Called-by ←**"

FILE_TAG = "file"
UNIT_TAG = "method"


class RenderedNote(NamedTuple):
    """One output document and the number of unit sections it holds."""

    filename: str
    text: str
    units: int = 1


def front_matter(tag: str) -> List[str]:
    return ["---", "tags:", "  - %s" % tag, "---"]


def link(unit: CallableUnit) -> str:
    return "[[%s]]" % unit.name


def _link_list(heading: str, units: Iterable[CallableUnit]) -> List[str]:
    ordered = sorted(units, key=CallableUnit.sort_key)
    if not ordered:
        return []
    return [heading] + ["- %s" % link(unit) for unit in ordered] + [""]


def render_section(unit: CallableUnit, graph: CallGraph, doc: DocumentationBlock, language: str = "") -> str:
    """
    Render the documentation section of one unit.

    Args:
        unit: The in-scope unit to document.
        graph: Finished call graph; provides the calls/called-by lists.
        doc: Normalized documentation of the unit (may be empty).
        language: Code fence language for the signature block.

    Returns:
        The section text. The "Calls" and "Called-by" lists are omitted
        entirely when empty.
    """
    lines = ["", "#### %s" % link(unit), "##### What it does:"]
    if doc.is_empty:
        lines.append(DOC_PLACEHOLDER)
    else:
        lines.extend(doc.lines())
    lines.append("")

    lines.append("##### Improvements:")
    lines.append(IMPROVEMENTS_PLACEHOLDER)
    lines.append("")

    lines.append("```%s" % language)
    lines.append(unit.signature or unit.name)
    lines.append("```")
    lines.append("")

    lines.extend(_link_list(CALLS_HEADING, graph.callees(unit)))
    lines.extend(_link_list(CALLED_BY_HEADING, graph.callers(unit)))

    return "\n".join(lines) + "\n"


def file_note_name(path: str) -> str:
    """``<source file base name>.md``"""
    base = os.path.splitext(os.path.basename(path))[0]
    return sanitizeFilename(base + ".md")


def unit_note_name(unit: CallableUnit) -> str:
    """``<DeclaringType>.<UnitName>.md`` with invalid characters replaced."""
    return sanitizeFilename("%s.%s.md" % (unit.declaring_type, unit.name))


def render_file_note(path, sections: Iterable[str]) -> RenderedNote:
    """Assemble pre-rendered sections into a per-file note.

    The caller passes sections already ordered by unit display name.
    """
    sections = list(sections)
    header = front_matter(FILE_TAG) + ["# %s" % os.path.basename(path), ""]
    text = "\n".join(header) + "\n" + "".join(sections)
    return RenderedNote(file_note_name(path), text, len(sections))


def render_unit_note(unit: CallableUnit, section: str, source_path: str) -> RenderedNote:
    """Assemble a per-unit note with its declaring type and path header."""
    header = front_matter(UNIT_TAG) + [
        "# %s::%s" % (unit.declaring_type_display, unit.name),
        "**Path**: `%s`" % source_path,
        "",
    ]
    text = "\n".join(header) + "\n" + section
    return RenderedNote(unit_note_name(unit), text)
