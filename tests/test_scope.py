"""
Unit tests for callnotes.analysis.callgraph.scope
"""
import unittest

from callnotes.analysis.callgraph.scope import ProjectScope
from callnotes.frontend.resolver import Project
from callnotes.machinery.symbols import MethodKind

from fakes import ASSEMBLY, make_unit


class TestProjectScope(unittest.TestCase):
    """Test cases for the project scope predicate"""

    def setUp(self):
        self.scope = ProjectScope.from_projects([Project("App", ASSEMBLY)])

    def test_project_method_in_scope(self):
        self.assertTrue(self.scope.in_scope(make_unit("Run")))
        self.assertTrue(self.scope(make_unit("Run")))

    def test_constructor_and_destructor_in_scope(self):
        self.assertTrue(self.scope.in_scope(make_unit("__init__", kind=MethodKind.CONSTRUCTOR)))
        self.assertTrue(self.scope.in_scope(make_unit("__del__", kind=MethodKind.DESTRUCTOR)))

    def test_other_assembly_out_of_scope(self):
        self.assertFalse(self.scope.in_scope(make_unit("len", assembly="builtins")))

    def test_metadata_only_out_of_scope(self):
        self.assertFalse(self.scope.in_scope(make_unit("Run", in_source=False)))

    def test_implicit_out_of_scope(self):
        self.assertFalse(self.scope.in_scope(make_unit("__init__", is_implicit=True, kind=MethodKind.CONSTRUCTOR)))

    def test_accessors_out_of_scope(self):
        for kind in (
            MethodKind.PROPERTY_GET,
            MethodKind.PROPERTY_SET,
            MethodKind.PROPERTY_DELETE,
            MethodKind.EVENT_ADD,
            MethodKind.EVENT_REMOVE,
            MethodKind.EVENT_RAISE,
        ):
            self.assertFalse(self.scope.in_scope(make_unit("value", kind=kind)), kind)

    def test_operators_out_of_scope(self):
        self.assertFalse(self.scope.in_scope(make_unit("__add__", kind=MethodKind.USER_DEFINED_OPERATOR)))
        self.assertFalse(self.scope.in_scope(make_unit("op", kind=MethodKind.BUILTIN_OPERATOR)))

    def test_none_out_of_scope(self):
        self.assertFalse(self.scope.in_scope(None))


if __name__ == "__main__":
    unittest.main()
