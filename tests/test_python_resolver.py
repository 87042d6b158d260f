"""
Unit tests for callnotes.frontend.python_resolver
"""
import networkx as nx
import pytest

from callnotes.analysis.callgraph.builder import CallGraphBuilder
from callnotes.analysis.callgraph.canonical import canonicalize
from callnotes.application.errors import ResolutionGap, WorkspaceLoadError
from callnotes.frontend.project_handler import get_modules, module_name_for
from callnotes.frontend.python_resolver import (
    PythonResolver,
    c3_linearization,
    format_signature,
    method_kind,
)
from callnotes.machinery.symbols import BoundMethod, Instantiation, MethodKind


def build(root, **kwargs):
    resolver = PythonResolver(str(root), **kwargs)
    resolver.load()
    return resolver, CallGraphBuilder(resolver).build()


def unit_named(result, qualname):
    for unit in result.units:
        if unit.identity.qualname == qualname:
            return unit
    raise AssertionError("no unit %s in %s" % (qualname, [u.identity.qualname for u in result.units]))


def callee_names(result, qualname):
    return sorted(u.identity.qualname for u in result.graph.callees(unit_named(result, qualname)))


def resolutions(resolver, qualname):
    for document in resolver.documents(resolver.project):
        for unit in resolver.declared_units(document):
            if unit.identity.qualname == qualname:
                return [resolver.resolve_call(site) for site in resolver.call_sites(document, unit)]
    raise AssertionError(qualname)


def test_module_discovery(write_project):
    root = write_project(
        {
            "pkg/__init__.py": "",
            "pkg/sub/__init__.py": "",
            "pkg/sub/mod.py": "",
            "script.py": "",
            ".hidden/skip.py": "",
            "build/skip.py": "",
        }
    )
    names = [name for name, _ in get_modules(str(root))]
    assert names == ["pkg", "pkg.sub", "pkg.sub.mod", "script"]
    assert module_name_for(str(root / "pkg" / "sub" / "mod.py")) == "pkg.sub.mod"


def test_missing_root_is_a_load_error(tmp_path):
    with pytest.raises(WorkspaceLoadError) as info:
        PythonResolver(str(tmp_path / "nope")).load()
    assert info.value.path.endswith("nope")


def test_empty_root_is_a_load_error(tmp_path):
    with pytest.raises(WorkspaceLoadError):
        PythonResolver(str(tmp_path)).load()


def test_single_project(write_project):
    root = write_project({"A.py": "def Foo():\n    pass\n"})
    resolver, _ = build(root)
    [project] = resolver.list_projects()
    assert project.name == project.assembly == "proj"
    assert project.language == "python"
    assert project.root == str(root)


def test_cross_module_calls(write_project):
    root = write_project(
        {
            "A.py": """
                from B import Bar

                def Foo():
                    return Bar()
            """,
            "B.py": """
                def Bar():
                    return 1
            """,
        }
    )
    _, result = build(root)
    foo = unit_named(result, "A.Foo")
    assert foo.declaring_type == "A"
    assert callee_names(result, "A.Foo") == ["B.Bar"]
    assert [u.identity.qualname for u in result.graph.callers(unit_named(result, "B.Bar"))] == ["A.Foo"]


def test_module_attribute_and_package_imports(write_project):
    root = write_project(
        {
            "app/__init__.py": "from .core import run\n",
            "app/core.py": """
                from . import helpers
                import app.helpers as h

                def run():
                    helpers.assist()
                    h.assist()
            """,
            "app/helpers.py": "def assist():\n    pass\n",
            "main.py": """
                import app

                def main():
                    app.run()
            """,
        }
    )
    _, result = build(root)
    assert callee_names(result, "app.core.run") == ["app.helpers.assist"]
    assert callee_names(result, "main.main") == ["app.core.run"]


def test_methods_constructors_and_inheritance(write_project):
    root = write_project(
        {
            "shapes.py": """
                class Base:
                    def __init__(self, name):
                        self.name = name

                    def describe(self):
                        return self.label()

                    def label(self):
                        return self.name


                class Square(Base):
                    def area(self):
                        return self.describe()

                    def label(self):
                        return super().label().upper()


                def make():
                    return Square("sq").area()
            """,
        }
    )
    _, result = build(root)
    assert callee_names(result, "shapes.Base.describe") == ["shapes.Base.label"]
    assert callee_names(result, "shapes.Square.area") == ["shapes.Base.describe"]
    assert callee_names(result, "shapes.Square.label") == ["shapes.Base.label"]
    # Square() reaches Base.__init__ through the class hierarchy.
    assert "shapes.Base.__init__" in callee_names(result, "shapes.make")
    assert unit_named(result, "shapes.Base.__init__").kind is MethodKind.CONSTRUCTOR


def test_diamond_inheritance_follows_c3_order(write_project):
    root = write_project(
        {
            "diamond.py": """
                class A:
                    def __init__(self):
                        pass

                    def m(self):
                        pass


                class B(A):
                    pass


                class C(A):
                    def __init__(self):
                        super().__init__()

                    def m(self):
                        pass


                class D(B, C):
                    def run(self):
                        self.m()


                def make():
                    return D()
            """,
        }
    )
    resolver, result = build(root)
    assert [c.name for c in resolver._mro(resolver.classes["diamond.D"])] == ["D", "B", "C", "A"]
    assert callee_names(result, "diamond.D.run") == ["diamond.C.m"]
    assert callee_names(result, "diamond.make") == ["diamond.C.__init__"]
    assert callee_names(result, "diamond.C.__init__") == ["diamond.A.__init__"]


def test_c3_linearization():
    graph = nx.DiGraph()
    graph.add_edges_from([("D", "B"), ("D", "C"), ("B", "A"), ("C", "A")])
    assert c3_linearization(graph, "D") == ["D", "B", "C", "A"]

    # class X(A, B) and class Y(B, A) cannot share a subclass.
    crossed = nx.DiGraph([("X", "A"), ("X", "B"), ("Y", "B"), ("Y", "A"), ("Z", "X"), ("Z", "Y")])
    assert c3_linearization(crossed, "X") == ["X", "A", "B"]
    assert c3_linearization(crossed, "Z") is None

    cyclic = nx.DiGraph([("P", "Q"), ("Q", "P")])
    assert c3_linearization(cyclic, "P") is None


def test_inconsistent_hierarchy_still_resolves(write_project):
    root = write_project(
        {
            "bad.py": """
                class A:
                    def m(self):
                        pass

                class B(A):
                    pass

                class X(A, B):
                    def run(self):
                        self.m()
            """,
        }
    )
    _, result = build(root)
    assert callee_names(result, "bad.X.run") == ["bad.A.m"]


def test_bound_and_generic_forms_are_reduced(write_project):
    root = write_project(
        {
            "box.py": """
                class Box:
                    def get(self):
                        return self.peek()

                    def peek(self):
                        return None


                def open_box():
                    return Box[int]()
            """,
        }
    )
    resolver, result = build(root)
    [bound] = resolutions(resolver, "box.Box.get")
    assert isinstance(bound.symbol, BoundMethod)
    assert canonicalize(bound) is not None
    assert canonicalize(bound).identity.qualname == "box.Box.peek"

    [generic] = resolutions(resolver, "box.open_box")
    assert isinstance(generic.symbol, Instantiation)
    assert generic.symbol.type_arguments == ("int",)
    # Box has no __init__: the implicit constructor is out of scope.
    assert canonicalize(generic).is_implicit
    assert callee_names(result, "box.open_box") == []


def test_out_of_scope_kinds(write_project):
    root = write_project(
        {
            "m.py": """
                class Money:
                    def __add__(self, other):
                        return Money()

                    @property
                    def value(self):
                        return 1

                    @value.setter
                    def value(self, v):
                        pass

                    def total(self):
                        print(len([]))
                        return self + self
            """,
        }
    )
    _, result = build(root)
    names = sorted(u.identity.qualname for u in result.units)
    assert names == ["m.Money.total"]
    assert callee_names(result, "m.Money.total") == []


def test_builtins_and_externals_are_not_in_source(write_project):
    root = write_project(
        {
            "m.py": """
                import os

                def f():
                    os.path.join("a", "b")
                    len([])
            """,
        }
    )
    resolver, _ = build(root)
    targets = [canonicalize(r) for r in resolutions(resolver, "m.f")]
    assert sorted(t.identity.qualname for t in targets) == ["builtins.len", "os.path.join"]
    assert not any(t.in_source for t in targets)


def test_nested_functions_belong_to_enclosing_unit(write_project):
    root = write_project(
        {
            "m.py": """
                def helper():
                    pass

                def outer():
                    def inner():
                        return helper()
                    return list(map(lambda x: helper(), [inner]))
            """,
        }
    )
    _, result = build(root)
    assert sorted(u.identity.qualname for u in result.units) == ["m.helper", "m.outer"]
    assert callee_names(result, "m.outer") == ["m.helper"]


def test_local_names_shadow_module_functions(write_project):
    root = write_project(
        {
            "m.py": """
                def helper():
                    pass

                def run(helper):
                    helper()
            """,
        }
    )
    _, result = build(root)
    assert callee_names(result, "m.run") == []


def test_unknown_receivers(write_project):
    files = {
        "m.py": """
            class A:
                def save(self):
                    pass

            class B:
                def save(self):
                    pass

            def persist(obj):
                obj.save()
        """,
    }
    root = write_project(files)
    _, result = build(root)
    assert callee_names(result, "m.persist") == []

    _, guessed = build(root, guess_receivers=True)
    # Ambiguous: exactly one edge, to the first candidate.
    assert callee_names(guessed, "m.persist") == ["m.A.save"]


def test_conditional_definitions_are_ambiguous(write_project):
    root = write_project(
        {
            "m.py": """
                import sys

                if sys.platform == "win32":
                    def impl():
                        pass
                else:
                    def impl():
                        pass

                def run():
                    impl()
            """,
        }
    )
    resolver, result = build(root)
    [resolution] = [r for r in resolutions(resolver, "m.run")]
    assert resolution.is_ambiguous
    assert len(resolution.candidates) == 2
    assert len(result.graph.callees(unit_named(result, "m.run"))) == 1


def test_overload_stubs_prefer_implementation(write_project):
    root = write_project(
        {
            "m.py": """
                from typing import overload

                @overload
                def conv(x: int) -> int: ...
                @overload
                def conv(x: str) -> str: ...
                def conv(x):
                    return x

                def run():
                    conv(1)
            """,
        }
    )
    resolver, _ = build(root)
    [resolution] = resolutions(resolver, "m.run")
    assert not resolution.is_ambiguous
    assert resolution.symbol.span.start_line == 7


def test_syntax_error_document_is_skipped(write_project):
    root = write_project({"good.py": "def ok():\n    pass\n", "bad.py": "def broken(:\n"})
    resolver, result = build(root)
    assert result.documents_skipped == 1
    assert [u.name for u in result.units] == ["ok"]
    bad = [d for d in resolver.documents(resolver.project) if d.path.endswith("bad.py")][0]
    with pytest.raises(ResolutionGap):
        resolver.declared_units(bad)


def test_documentation_and_signature(write_project):
    root = write_project(
        {
            "m.py": '''
                async def fetch(url: str, *, retries: int = 3) -> bytes:
                    """Fetch a URL.

                    Args:
                        url: Address.
                    """
            ''',
        }
    )
    _, result = build(root)
    unit = unit_named(result, "m.fetch")
    assert unit.signature == "async def fetch(url: str, *, retries: int=3) -> bytes"
    assert unit.documentation.startswith("Fetch a URL.")
    assert unit.path.endswith("m.py")
    assert unit.span.start_line == 1


def test_method_kinds():
    import ast

    tree = ast.parse(
        "class C:\n"
        "    def __init__(self): pass\n"
        "    def __del__(self): pass\n"
        "    def __eq__(self, o): pass\n"
        "    def __get__(self, i, o): pass\n"
        "    @staticmethod\n"
        "    def s(): pass\n"
    )
    kinds = [method_kind(node, True) for node in tree.body[0].body]
    assert kinds == [
        MethodKind.CONSTRUCTOR,
        MethodKind.DESTRUCTOR,
        MethodKind.USER_DEFINED_OPERATOR,
        MethodKind.PROPERTY_GET,
        MethodKind.ORDINARY,
    ]
    assert format_signature(tree.body[0].body[0]) == "def __init__(self)"
