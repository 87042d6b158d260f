"""
Unit tests for callnotes.analysis.callgraph.formats
"""
import unittest

from callnotes.analysis import docs
from callnotes.analysis.callgraph import formats
from callnotes.machinery.callgraph import CallGraph

from fakes import make_unit


class TestRenderSection(unittest.TestCase):
    """Test cases for one unit section"""

    def setUp(self):
        self.foo = make_unit("Foo", declaring_type="A", signature="def Foo()")
        self.bar = make_unit("Bar", declaring_type="B", signature="def Bar(x: int) -> int")
        self.graph = CallGraph()
        self.graph.add_edge(self.foo, self.bar)
        self.graph.freeze()

    def test_section_layout(self):
        text = formats.render_section(self.foo, self.graph, docs.EMPTY, "python")
        expected = "\n".join(
            [
                "",
                "#### [[Foo]]",
                "##### What it does:",
                formats.DOC_PLACEHOLDER,
                "",
                "##### Improvements:",
                formats.IMPROVEMENTS_PLACEHOLDER,
                "",
                "```python",
                "def Foo()",
                "```",
                "",
                "**Calls →**",
                "- [[Bar]]",
                "",
            ]
        )
        self.assertEqual(text, expected + "\n")

    def test_empty_lists_are_omitted(self):
        isolated = make_unit("Alone")
        text = formats.render_section(isolated, self.graph, docs.EMPTY)
        self.assertNotIn(formats.CALLS_HEADING, text)
        self.assertNotIn(formats.CALLED_BY_HEADING, text)

    def test_called_by_list(self):
        text = formats.render_section(self.bar, self.graph, docs.EMPTY)
        self.assertNotIn(formats.CALLS_HEADING, text)
        self.assertIn("**Called-by ←**\n- [[Foo]]\n", text)

    def test_documentation_replaces_placeholder(self):
        doc = docs.extract("Add two numbers.")
        text = formats.render_section(self.foo, self.graph, doc)
        self.assertIn("##### What it does:\nAdd two numbers.\n\n##### Improvements:", text)
        self.assertNotIn(formats.DOC_PLACEHOLDER, text)
        self.assertIn(formats.IMPROVEMENTS_PLACEHOLDER, text)

    def test_links_are_sorted_by_display_name(self):
        graph = CallGraph()
        for name in ("zeta", "alpha", "Mid"):
            graph.add_edge(self.foo, make_unit(name, declaring_type="C"))
        text = formats.render_section(self.foo, graph, docs.EMPTY)
        self.assertIn("- [[Mid]]\n- [[alpha]]\n- [[zeta]]\n", text)

    def test_same_name_units_alias_to_one_link(self):
        graph = CallGraph()
        graph.add_edge(self.foo, make_unit("Run", declaring_type="X"))
        graph.add_edge(self.foo, make_unit("Run", declaring_type="Y"))
        text = formats.render_section(self.foo, graph, docs.EMPTY)
        self.assertEqual(text.count("- [[Run]]"), 2)


class TestNotes(unittest.TestCase):
    """Test cases for per-file and per-unit notes"""

    def setUp(self):
        self.foo = make_unit("Foo", declaring_type="A", display="app.A", path="/work/App/A.py")

    def test_file_note(self):
        note = formats.render_file_note("/work/App/A.py", ["\n#### [[Foo]]\n"])
        self.assertEqual(note.filename, "A.md")
        self.assertEqual(note.text, "---\ntags:\n  - file\n---\n# A.py\n\n\n#### [[Foo]]\n")
        self.assertEqual(note.units, 1)

    def test_file_note_counts_sections(self):
        note = formats.render_file_note("/work/App/A.py", iter(["\n#### [[Foo]]\n", "\n#### [[Bar]]\n"]))
        self.assertEqual(note.units, 2)
        self.assertTrue(note.text.endswith("#### [[Foo]]\n\n#### [[Bar]]\n"))

    def test_unit_note(self):
        note = formats.render_unit_note(self.foo, "\n#### [[Foo]]\n", "A.py")
        self.assertEqual(note.filename, "A.Foo.md")
        self.assertTrue(note.text.startswith("---\ntags:\n  - method\n---\n"))
        self.assertIn("# app.A::Foo\n**Path**: `A.py`\n\n", note.text)

    def test_unit_note_name_is_sanitized(self):
        unit = make_unit("op<T>", declaring_type="Box|1")
        self.assertEqual(formats.unit_note_name(unit), "Box_1.op_T_.md")

    def test_file_note_name(self):
        self.assertEqual(formats.file_note_name("/x/y/module.py"), "module.md")


if __name__ == "__main__":
    unittest.main()
