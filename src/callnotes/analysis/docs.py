"""
Documentation extraction.

Normalizes the structured documentation a resolver attaches to a callable
unit into a DocumentationBlock: an optional summary, an ordered list of
(parameter, description) pairs, an optional return description and optional
remarks. Two payload forms are understood:

- XML documentation comments (``<summary>``, ``<param name="x">``,
  ``<returns>``, ``<remarks>``), optionally wrapped in a ``<member>`` element;
- Python docstrings in Google, NumPy or Sphinx field-list style.

Malformed payloads never fail the run. They are reported as
DocumentationParseError internally and the extractor falls back to the raw
text, trimmed.
"""

from __future__ import annotations

import inspect
import logging
import re
import textwrap
from dataclasses import dataclass
from typing import List, Optional, Tuple
from xml.etree import ElementTree

from callnotes.application.errors import DocumentationParseError

LOG = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_GOOGLE_HEADER = re.compile(r"^(?P<name>[A-Za-z][A-Za-z ]*):\s*$")
_NUMPY_RULE = re.compile(r"^\s*-{3,}\s*$")
_GOOGLE_PARAM = re.compile(
    r"^(?P<name>\*{0,2}[A-Za-z_][\w.]*)(\s*\((?P<type>[^)]*)\))?\s*:(?P<desc>.*)$"
)
_SPHINX_FIELD = re.compile(r"^:(?P<field>[^:]+):(?P<body>.*)$")

PARAM_SECTIONS = frozenset(
    ["args", "arguments", "parameters", "params", "keyword args", "keyword arguments", "other parameters"]
)
RETURN_SECTIONS = frozenset(["returns", "return", "yields", "yield"])
REMARK_SECTIONS = frozenset(["note", "notes", "remarks", "remark"])
IGNORED_SECTIONS = frozenset(
    [
        "raises", "raise", "warns", "example", "examples", "attributes", "warning",
        "warnings", "see also", "todo", "references", "methods",
    ]
)
KNOWN_SECTIONS = PARAM_SECTIONS | RETURN_SECTIONS | REMARK_SECTIONS | IGNORED_SECTIONS

SPHINX_PARAM_FIELDS = frozenset(["param", "parameter", "arg", "argument", "key", "keyword"])
SPHINX_RETURN_FIELDS = frozenset(["returns", "return"])


def normalize_spaces(text: Optional[str]) -> str:
    """Collapse every whitespace run (newlines included) to one space."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


@dataclass(frozen=True)
class DocumentationBlock:
    """Normalized documentation of one callable unit.

    ``raw`` is only set when structured parsing failed; the other fields are
    then empty.
    """

    summary: Optional[str] = None
    parameters: Tuple[Tuple[str, str], ...] = ()
    returns: Optional[str] = None
    remarks: Optional[str] = None
    raw: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.summary or self.parameters or self.returns or self.remarks or self.raw)

    @property
    def is_raw(self) -> bool:
        return self.raw is not None

    def lines(self) -> List[str]:
        """Render the block as Markdown lines without trailing whitespace."""
        if self.raw is not None:
            return [line.rstrip() for line in self.raw.split("\n")]

        out = []
        if self.summary:
            out.append(self.summary)
        if self.parameters:
            out.append("")
            out.append("Parameters:")
            for name, description in self.parameters:
                out.append(("- %s: %s" % (name, description)).rstrip())
        if self.returns:
            out.append("")
            out.append("Returns: %s" % self.returns)
        if self.remarks:
            out.append("")
            out.append(self.remarks)

        while out and not out[0]:
            out.pop(0)
        return out


EMPTY = DocumentationBlock()


def extract(raw: Optional[str]) -> DocumentationBlock:
    """
    Normalize a raw documentation payload.

    Args:
        raw: Payload as attached by the resolver, possibly None or malformed.

    Returns:
        A DocumentationBlock; empty when there is no documentation.
    """
    if raw is None or not raw.strip():
        return EMPTY

    is_xml = raw.lstrip().startswith("<")
    try:
        block = parse_xml(raw) if is_xml else parse_docstring(raw)
    except DocumentationParseError as exc:
        LOG.debug("falling back to raw documentation text: %s", exc)
        return DocumentationBlock(raw=raw.strip())

    if block.is_empty:
        return DocumentationBlock(raw=raw.strip())
    return block


def extract_unit(resolver, unit) -> DocumentationBlock:
    """Extract the documentation a resolver attaches to ``unit``."""
    return extract(resolver.raw_documentation(unit))


# ---------------------------------------------------------------------- xml
def _element_text(element) -> Optional[str]:
    if element is None:
        return None
    return normalize_spaces("".join(element.itertext())) or None


def parse_xml(raw: str) -> DocumentationBlock:
    """Parse an XML documentation comment.

    Raises:
        DocumentationParseError: If the payload is not well-formed XML.
    """
    try:
        root = ElementTree.fromstring("<root>%s</root>" % raw)
    except ElementTree.ParseError as exc:
        raise DocumentationParseError(str(exc)) from exc

    members = root.findall("member")
    if len(members) == 1 and root.find("summary") is None:
        root = members[0]

    parameters = tuple(
        (param.get("name", ""), _element_text(param) or "")
        for param in root.findall("param")
    )
    return DocumentationBlock(
        summary=_element_text(root.find("summary")),
        parameters=parameters,
        returns=_element_text(root.find("returns")),
        remarks=_element_text(root.find("remarks")),
    )


# ---------------------------------------------------------------- docstrings
def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _split_entries(lines: List[str]) -> List[Tuple[str, List[str]]]:
    """Split a dedented section body into (head line, continuation lines)."""
    entries = []
    for line in lines:
        if not line.strip():
            if entries:
                entries[-1][1].append("")
            continue
        if _indent(line) == 0:
            entries.append((line, []))
        elif entries:
            entries[-1][1].append(line)
        else:
            raise DocumentationParseError("continuation line before first entry: %r" % line)
    return entries


class _DocstringParser(object):
    """Single-use parser for one cleaned docstring."""

    def __init__(self, text: str):
        self.lines = text.splitlines()
        self.paragraphs = [[]]
        self.parameters = []
        self.returns = []
        self.remarks = []

    def parse(self) -> DocumentationBlock:
        i = 0
        while i < len(self.lines):
            line = self.lines[i]
            stripped = line.strip()

            if self._is_numpy_header(i):
                i = self._numpy_section(stripped.lower(), i + 2)
                self._break_paragraph()
                continue

            match = _GOOGLE_HEADER.match(line)
            if match and match.group("name").strip().lower() in KNOWN_SECTIONS:
                i = self._google_section(match.group("name").strip().lower(), i + 1)
                self._break_paragraph()
                continue

            if stripped.startswith(":") and _indent(line) == 0:
                i = self._sphinx_field(i)
                self._break_paragraph()
                continue

            if stripped:
                self.paragraphs[-1].append(stripped)
            elif self.paragraphs[-1]:
                self.paragraphs.append([])
            i += 1

        paragraphs = [normalize_spaces(" ".join(p)) for p in self.paragraphs if p]
        summary = paragraphs[0] if paragraphs else None
        remarks = paragraphs[1:] + self.remarks

        return DocumentationBlock(
            summary=summary,
            parameters=tuple(self.parameters),
            returns=normalize_spaces(" ".join(self.returns)) or None,
            remarks=normalize_spaces(" ".join(remarks)) or None,
        )

    def _break_paragraph(self):
        if self.paragraphs[-1]:
            self.paragraphs.append([])

    # -- google
    def _google_section(self, name: str, start: int) -> int:
        end = start
        while end < len(self.lines):
            line = self.lines[end]
            if line.strip() and _indent(line) == 0:
                break
            end += 1

        body = textwrap.dedent("\n".join(self.lines[start:end])).splitlines()
        if name in PARAM_SECTIONS:
            for head, rest in _split_entries(body):
                match = _GOOGLE_PARAM.match(head)
                if match is None:
                    raise DocumentationParseError("malformed parameter entry: %r" % head)
                description = " ".join([match.group("desc")] + rest)
                self.parameters.append((match.group("name"), normalize_spaces(description)))
        elif name in RETURN_SECTIONS:
            self.returns.append(" ".join(body))
        elif name in REMARK_SECTIONS:
            self.remarks.append(" ".join(body))
        return end

    # -- numpy
    def _is_numpy_header(self, i: int) -> bool:
        if i + 1 >= len(self.lines):
            return False
        line = self.lines[i]
        return (
            _indent(line) == 0
            and line.strip().lower() in KNOWN_SECTIONS
            and _NUMPY_RULE.match(self.lines[i + 1]) is not None
        )

    def _numpy_section(self, name: str, start: int) -> int:
        end = start
        while end < len(self.lines) and not self._is_numpy_header(end):
            end += 1

        body = self.lines[start:end]
        if name in PARAM_SECTIONS or name in RETURN_SECTIONS:
            for head, rest in _split_entries(body):
                names, _, type_name = head.partition(":")
                names = names.strip()
                if not names:
                    raise DocumentationParseError("malformed parameter entry: %r" % head)
                description = normalize_spaces(" ".join(rest))
                if name in PARAM_SECTIONS:
                    self.parameters.append((names, description))
                elif description:
                    self.returns.append("%s: %s" % (head.strip(), description))
                else:
                    self.returns.append(head.strip())
        elif name in REMARK_SECTIONS:
            self.remarks.append(" ".join(body))
        return end

    # -- sphinx
    def _sphinx_field(self, start: int) -> int:
        line = self.lines[start].strip()
        match = _SPHINX_FIELD.match(line)
        if match is None:
            raise DocumentationParseError("unterminated field: %r" % line)

        end = start + 1
        body = [match.group("body")]
        while end < len(self.lines) and self.lines[end].strip() and _indent(self.lines[end]) > 0:
            body.append(self.lines[end])
            end += 1

        words = match.group("field").split()
        kind = words[0].lower() if words else ""
        if kind in SPHINX_PARAM_FIELDS:
            if len(words) < 2:
                raise DocumentationParseError("parameter field without a name: %r" % line)
            self.parameters.append((words[-1], normalize_spaces(" ".join(body))))
        elif kind in SPHINX_RETURN_FIELDS:
            self.returns.append(" ".join(body))
        return end


def parse_docstring(raw: str) -> DocumentationBlock:
    """Parse a Google, NumPy or Sphinx style docstring.

    Raises:
        DocumentationParseError: On a malformed parameter entry or field.
    """
    return _DocstringParser(inspect.cleandoc(raw)).parse()
