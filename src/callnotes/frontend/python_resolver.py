"""Semantic resolver for Python source trees.

PythonResolver indexes a whole workspace up front (``load``) and then
answers the SemanticResolver queries from that index, read-only, so the
call graph builder may query it from several threads.

What it models:
- Declarations: module-level functions and class methods, including methods
  of nested classes and definitions under ``if``/``try``/``with`` blocks.
  Nested functions and lambdas belong to the enclosing declaration.
- Kinds: constructors (``__init__``/``__new__``), destructors, property and
  descriptor accessors, operator dunders, ordinary methods.
- Calls: module functions, classes (their constructor, found through the
  project class hierarchy), imported names and modules, builtins and other
  external names, ``self.``/``cls.`` attributes, ``super()`` calls,
  ``Class.method()`` and subscripted generics ``Cls[T]()``.

What it does not model: types of arbitrary expressions. A call on a
receiver of unknown type resolves to nothing, unless ``guess_receivers`` is
set; then every project method with that name is reported as an ambiguous
candidate.
"""

import ast
import builtins
import logging
import os
import tokenize
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import networkx as nx

from callnotes.application.errors import ResolutionGap, WorkspaceLoadError
from callnotes.frontend.project_handler import DEFAULT_EXCLUDES, get_modules
from callnotes.frontend.resolver import CallSite, Document, Project, SemanticResolver
from callnotes.machinery.symbols import (
    BoundMethod,
    CallableUnit,
    Instantiation,
    MethodKind,
    Resolution,
    SourceSpan,
    UnitId,
)

LOG = logging.getLogger(__name__)

LANGUAGE = "python"
MAX_IMPORT_DEPTH = 16

BUILTIN_NAMES = frozenset(dir(builtins))

_BINARY_OPERATORS = [
    "add", "sub", "mul", "matmul", "truediv", "floordiv", "mod", "divmod",
    "pow", "lshift", "rshift", "and", "xor", "or",
]
OPERATOR_METHODS = frozenset(
    ["__%s__" % op for op in _BINARY_OPERATORS]
    + ["__r%s__" % op for op in _BINARY_OPERATORS]
    + ["__i%s__" % op for op in _BINARY_OPERATORS if op != "divmod"]
    + ["__%s__" % op for op in ("neg", "pos", "abs", "invert")]
    + ["__%s__" % op for op in ("eq", "ne", "lt", "le", "gt", "ge")]
    + ["__%s__" % op for op in ("contains", "getitem", "setitem", "delitem")]
)

DESCRIPTOR_ACCESSORS = {
    "__get__": MethodKind.PROPERTY_GET,
    "__set__": MethodKind.PROPERTY_SET,
    "__delete__": MethodKind.PROPERTY_DELETE,
}

PROPERTY_DECORATORS = frozenset(
    ["property", "cached_property", "functools.cached_property", "abc.abstractproperty"]
)

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)
_COMPOUND_NODES = (ast.If, ast.Try, ast.With, ast.AsyncWith) + (
    (ast.TryStar,) if hasattr(ast, "TryStar") else ()
)


# ------------------------------------------------------------------ helpers
def decorator_name(node):
    """Dotted name of a decorator expression, or "" if it has none."""
    if isinstance(node, ast.Call):
        node = node.func
    return dotted_name(node) or ""


def dotted_name(node):
    """``a.b.c`` for Name/Attribute chains, else None."""
    parts = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return ".".join(reversed(parts))


def format_signature(node):
    """``def name(args) -> ret`` for a function definition node."""
    prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
    type_params = getattr(node, "type_params", None)
    generic = ""
    if type_params:
        generic = "[%s]" % ", ".join(ast.unparse(p) for p in type_params)
    returns = " -> %s" % ast.unparse(node.returns) if node.returns is not None else ""
    return "%s %s%s(%s)%s" % (prefix, node.name, generic, ast.unparse(node.args), returns)


def method_kind(node, in_class):
    """Classify a function definition."""
    for decorator in node.decorator_list:
        name = decorator_name(decorator)
        if name in PROPERTY_DECORATORS or name.endswith(".getter"):
            return MethodKind.PROPERTY_GET
        if name.endswith(".setter"):
            return MethodKind.PROPERTY_SET
        if name.endswith(".deleter"):
            return MethodKind.PROPERTY_DELETE

    if not in_class:
        return MethodKind.ORDINARY
    if node.name in ("__init__", "__new__"):
        return MethodKind.CONSTRUCTOR
    if node.name == "__del__":
        return MethodKind.DESTRUCTOR
    if node.name in DESCRIPTOR_ACCESSORS:
        return DESCRIPTOR_ACCESSORS[node.name]
    if node.name in OPERATOR_METHODS:
        return MethodKind.USER_DEFINED_OPERATOR
    return MethodKind.ORDINARY


def iter_definitions(body):
    """Yield definition and import statements of a block.

    Descends into if/try/with blocks, never into function or class bodies.
    """
    for stmt in body:
        if isinstance(stmt, _FUNCTION_NODES + (ast.ClassDef, ast.Import, ast.ImportFrom)):
            yield stmt
        elif isinstance(stmt, _COMPOUND_NODES):
            for name in ("body", "orelse", "finalbody"):
                yield from iter_definitions(getattr(stmt, name, []))
            for handler in getattr(stmt, "handlers", []):
                yield from iter_definitions(handler.body)


def c3_linearization(graph, start, cache=None):
    """C3 linearization of ``start`` over an inheritance graph.

    The successors of a node are its bases, in base-list order. Returns the
    list of nodes from ``start`` to the most basic class, or None when the
    hierarchy is cyclic or has no consistent order.
    """
    if cache is None:
        cache = {}
    active = set()

    def linearize(node):
        if node in cache:
            return cache[node]
        if node in active:
            return None
        active.add(node)

        bases = list(graph.successors(node))
        sequences = []
        for base in bases:
            order = linearize(base)
            if order is None:
                return None
            sequences.append(list(order))
        sequences.append(bases)

        result = [node]
        while True:
            sequences = [seq for seq in sequences if seq]
            if not sequences:
                break
            for seq in sequences:
                head = seq[0]
                if not any(head in other[1:] for other in sequences):
                    break
            else:
                return None
            result.append(head)
            for seq in sequences:
                if seq[0] == head:
                    del seq[0]

        active.discard(node)
        cache[node] = result
        return result

    return linearize(start)


def _span(node):
    return SourceSpan(
        node.lineno,
        node.col_offset,
        getattr(node, "end_lineno", None) or node.lineno,
        getattr(node, "end_col_offset", None) or 0,
    )


# -------------------------------------------------------------------- index
@dataclass(eq=False)
class ClassInfo:
    """One class of the workspace."""

    name: str
    qualname: str
    module: "ModuleInfo"
    node: ast.ClassDef
    methods: Dict[str, List[CallableUnit]] = field(default_factory=dict)
    nested: Dict[str, "ClassInfo"] = field(default_factory=dict)
    constructors: List[CallableUnit] = field(default_factory=list)


@dataclass(eq=False)
class ModuleInfo:
    """Index of one Python source file."""

    name: str
    path: str
    error: Optional[str] = None
    functions: Dict[str, List[CallableUnit]] = field(default_factory=dict)
    classes: Dict[str, ClassInfo] = field(default_factory=dict)
    imports: Dict[str, str] = field(default_factory=dict)
    star_imports: List[str] = field(default_factory=list)
    units: List[CallableUnit] = field(default_factory=list)
    nodes: Dict[UnitId, tuple] = field(default_factory=dict)

    @property
    def short_name(self):
        return self.name.rpartition(".")[2]

    @property
    def package(self):
        if os.path.basename(self.path) == "__init__.py":
            return self.name
        return self.name.rpartition(".")[0]


@dataclass(frozen=True)
class _Context:
    """Name-resolution context of one declaration body."""

    module: ModuleInfo
    cls: Optional[ClassInfo] = None
    receiver: Optional[str] = None
    local_names: frozenset = frozenset()
    local_imports: tuple = ()


def absolute_import(module, node):
    """Absolute module name targeted by an ImportFrom node."""
    if not node.level:
        return node.module or ""
    package = module.package
    for _ in range(node.level - 1):
        package = package.rpartition(".")[0]
    if node.module:
        return "%s.%s" % (package, node.module) if package else node.module
    return package


def collect_imports(module, statements, imports, star_imports, overwrite=True):
    """Record ``alias -> dotted target`` bindings for import statements."""
    for stmt in statements:
        if isinstance(stmt, ast.Import):
            for alias in stmt.names:
                if alias.asname:
                    key, target = alias.asname, alias.name
                else:
                    key = target = alias.name.partition(".")[0]
                if overwrite or key not in imports:
                    imports[key] = target
        elif isinstance(stmt, ast.ImportFrom):
            base = absolute_import(module, stmt)
            for alias in stmt.names:
                if alias.name == "*":
                    star_imports.append(base)
                    continue
                key = alias.asname or alias.name
                if overwrite or key not in imports:
                    imports[key] = "%s.%s" % (base, alias.name) if base else alias.name


class PythonResolver(SemanticResolver):
    """Semantic resolver over a directory of Python sources.

    Attributes:
        root: Absolute workspace path (a directory or a single file).
        guess_receivers: Report calls on unknown receivers as ambiguous.
        exclude: Directory names skipped during discovery.
    """

    def __init__(self, root, guess_receivers=False, exclude=DEFAULT_EXCLUDES):
        self.root = os.path.abspath(root)
        self.guess_receivers = guess_receivers
        self.exclude = exclude

        self.project = None
        self.modules: Dict[str, ModuleInfo] = {}
        self.by_path: Dict[str, ModuleInfo] = {}
        self.classes: Dict[str, ClassInfo] = {}
        self.inheritance = nx.DiGraph()
        self.methods_by_name: Dict[str, List[CallableUnit]] = {}
        self.top_level_packages = set()
        self._overload_stubs = set()
        self._mros: Dict[str, List[ClassInfo]] = {}

    # ------------------------------------------------------------------ load
    def load(self):
        if self.project is not None:
            return
        if not os.path.exists(self.root):
            raise WorkspaceLoadError(self.root, "path does not exist")

        try:
            modules = get_modules(self.root, self.exclude)
        except OSError as exc:
            raise WorkspaceLoadError(self.root, exc.strerror or str(exc)) from exc
        if not modules:
            raise WorkspaceLoadError(self.root, "no Python source files found")

        if os.path.isdir(self.root):
            name, project_root = os.path.basename(self.root), self.root
        else:
            name = os.path.splitext(os.path.basename(self.root))[0]
            project_root = os.path.dirname(self.root)
        project = Project(name=name, assembly=name, root=project_root, language=LANGUAGE)

        for module_name, path in modules:
            self._index_module(project, module_name, path)
        for cls in self.classes.values():
            self._index_bases(cls)
        linearized = {}
        for cls in self.classes.values():
            order = c3_linearization(self.inheritance, cls.qualname, linearized)
            if order is None:
                LOG.debug("no consistent method resolution order for %s; using depth-first order", cls.qualname)
                order = list(nx.dfs_preorder_nodes(self.inheritance, cls.qualname))
            self._mros[cls.qualname] = [self.classes[qualname] for qualname in order]
        for cls in self.classes.values():
            cls.constructors = self._constructors(project, cls)
        for units in self.methods_by_name.values():
            units.sort(key=lambda unit: (unit.path, unit.span.start_line, unit.span.start_column))

        self.project = project
        LOG.info("loaded %d modules, %d classes from %s", len(self.by_path), len(self.classes), self.root)

    def _read(self, path):
        with tokenize.open(path) as f:
            return f.read()

    def _index_module(self, project, module_name, path):
        module = ModuleInfo(name=module_name, path=path)
        self.by_path[path] = module
        if module_name in self.modules:
            LOG.debug("module name %s is shared by %s and %s", module_name, self.modules[module_name].path, path)
        else:
            self.modules[module_name] = module
        self.top_level_packages.add(module_name.partition(".")[0])

        try:
            tree = ast.parse(self._read(path), filename=path)
        except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as exc:
            LOG.debug("cannot parse %s: %s", path, exc)
            module.error = "%s: %s" % (type(exc).__name__, exc)
            return

        statements = list(iter_definitions(tree.body))
        collect_imports(module, statements, module.imports, module.star_imports)
        nested_imports = [
            node for node in ast.walk(tree) if isinstance(node, (ast.Import, ast.ImportFrom))
        ]
        collect_imports(module, nested_imports, module.imports, [], overwrite=False)

        for stmt in statements:
            if isinstance(stmt, _FUNCTION_NODES):
                unit = self._make_unit(project, module, stmt, None)
                module.functions.setdefault(stmt.name, []).append(unit)
            elif isinstance(stmt, ast.ClassDef):
                module.classes[stmt.name] = self._index_class(project, module, stmt, None)

    def _index_class(self, project, module, node, outer):
        prefix = outer.qualname if outer is not None else module.name
        cls = ClassInfo(name=node.name, qualname="%s.%s" % (prefix, node.name), module=module, node=node)
        self.classes[cls.qualname] = cls
        self.inheritance.add_node(cls.qualname)

        for stmt in iter_definitions(node.body):
            if isinstance(stmt, _FUNCTION_NODES):
                unit = self._make_unit(project, module, stmt, cls)
                cls.methods.setdefault(stmt.name, []).append(unit)
                self.methods_by_name.setdefault(stmt.name, []).append(unit)
            elif isinstance(stmt, ast.ClassDef):
                cls.nested[stmt.name] = self._index_class(project, module, stmt, cls)
        return cls

    def _make_unit(self, project, module, node, cls):
        if cls is not None:
            qualname = "%s.%s" % (cls.qualname, node.name)
            declaring_type, declaring_display = cls.name, cls.qualname
        else:
            qualname = "%s.%s" % (module.name, node.name)
            declaring_type, declaring_display = module.short_name, module.name

        unit = CallableUnit(
            identity=UnitId(project.assembly, qualname, module.path, node.lineno, node.col_offset),
            name=node.name,
            declaring_type=declaring_type,
            declaring_type_display=declaring_display,
            path=module.path,
            span=_span(node),
            assembly=project.assembly,
            in_source=True,
            is_implicit=False,
            kind=method_kind(node, cls is not None),
            signature=format_signature(node),
            documentation=ast.get_docstring(node, clean=False),
        )
        if any(decorator_name(d).rpartition(".")[2] == "overload" for d in node.decorator_list):
            self._overload_stubs.add(unit.identity)
        module.units.append(unit)
        module.nodes[unit.identity] = (node, cls)
        return unit

    def _index_bases(self, cls):
        context = _Context(module=cls.module)
        for base in cls.node.bases:
            target = self._resolve_expr(base, context)
            if target is not None and target[0] == "class":
                self.inheritance.add_edge(cls.qualname, target[1].qualname)

    def _constructors(self, project, cls):
        units = self._mro_lookup(cls, "__init__") or self._mro_lookup(cls, "__new__")
        if units:
            return units
        node = cls.node
        implicit = CallableUnit(
            identity=UnitId(project.assembly, cls.qualname + ".__init__", cls.module.path, node.lineno, node.col_offset),
            name="__init__",
            declaring_type=cls.name,
            declaring_type_display=cls.qualname,
            path=cls.module.path,
            span=_span(node),
            assembly=project.assembly,
            in_source=True,
            is_implicit=True,
            kind=MethodKind.CONSTRUCTOR,
            signature="def __init__(self)",
        )
        return [implicit]

    # ------------------------------------------------------ resolver queries
    def list_projects(self) -> List[Project]:
        self.load()
        return [self.project]

    def documents(self, project: Project) -> List[Document]:
        return [Document(path, project) for path in self.by_path]

    def declared_units(self, document: Document) -> List[CallableUnit]:
        module = self.by_path.get(document.path)
        if module is None:
            raise ResolutionGap("unknown document %s" % document.path)
        if module.error is not None:
            raise ResolutionGap(module.error)
        return list(module.units)

    def call_sites(self, document: Document, unit: CallableUnit) -> List[CallSite]:
        module = self.by_path.get(document.path)
        if module is None or unit.identity not in module.nodes:
            raise ResolutionGap("unknown declaration %s" % unit.name)

        node, cls = module.nodes[unit.identity]
        context = self._context(module, node, cls)
        calls = [
            sub
            for stmt in node.body
            for sub in ast.walk(stmt)
            if isinstance(sub, ast.Call)
        ]
        calls.sort(key=lambda call: (call.lineno, call.col_offset))
        return [
            CallSite(document, unit, call.lineno, call.col_offset, node=(call, context))
            for call in calls
        ]

    def resolve_call(self, call_site: CallSite) -> Optional[Resolution]:
        call, context = call_site.node
        func = call.func
        type_arguments = None
        if isinstance(func, ast.Subscript):
            type_arguments = (ast.unparse(func.slice),)
            func = func.value

        target = self._resolve_expr(func, context)
        if target is None:
            return None
        resolution = self._to_resolution(target)
        if resolution is None or type_arguments is None:
            return resolution

        def instantiate(symbol):
            if isinstance(symbol, CallableUnit):
                return Instantiation(symbol, type_arguments)
            return symbol

        return Resolution(
            symbol=instantiate(resolution.symbol) if resolution.symbol is not None else None,
            candidates=tuple(instantiate(c) for c in resolution.candidates),
        )

    # ------------------------------------------------------------ resolution
    def _context(self, module, node, cls):
        receiver = None
        decorators = {decorator_name(d) for d in node.decorator_list}
        positional = node.args.posonlyargs + node.args.args
        if cls is not None and "staticmethod" not in decorators and positional:
            receiver = positional[0].arg

        local_names = set()
        for arg in node.args.posonlyargs + node.args.args + node.args.kwonlyargs:
            local_names.add(arg.arg)
        for arg in (node.args.vararg, node.args.kwarg):
            if arg is not None:
                local_names.add(arg.arg)

        local_imports = {}
        for stmt in node.body:
            for sub in ast.walk(stmt):
                if isinstance(sub, ast.Name) and isinstance(sub.ctx, (ast.Store, ast.Del)):
                    local_names.add(sub.id)
                elif isinstance(sub, _FUNCTION_NODES + (ast.ClassDef,)):
                    local_names.add(sub.name)
                elif isinstance(sub, (ast.Import, ast.ImportFrom)):
                    collect_imports(module, [sub], local_imports, [])

        local_names.discard(receiver)
        return _Context(
            module=module,
            cls=cls,
            receiver=receiver,
            local_names=frozenset(local_names - set(local_imports)),
            local_imports=tuple(sorted(local_imports.items())),
        )

    def _resolve_expr(self, expr, context):
        """Resolve an expression to an index target tuple, or None.

        Targets: ("units", [units]), ("bound", [units], receiver),
        ("class", ClassInfo), ("instance", ClassInfo), ("module", ModuleInfo),
        ("external", dotted), ("guess", attribute).
        """
        if isinstance(expr, ast.Name):
            name = expr.id
            if context.receiver is not None and name == context.receiver:
                return ("instance", context.cls)
            local_imports = dict(context.local_imports)
            if name in local_imports:
                return self._lookup_dotted(local_imports[name])
            if name in context.local_names:
                return None
            return self._lookup_name(context.module, name)

        if not isinstance(expr, ast.Attribute):
            return None

        receiver = expr.value
        if (
            isinstance(receiver, ast.Call)
            and isinstance(receiver.func, ast.Name)
            and receiver.func.id == "super"
            and context.cls is not None
        ):
            units = self._mro_lookup(context.cls, expr.attr, skip_self=True)
            return ("bound", units, "super()") if units else None

        base = self._resolve_expr(receiver, context)
        if base is None:
            return ("guess", expr.attr) if self.guess_receivers else None
        if base[0] == "instance":
            units = self._mro_lookup(base[1], expr.attr)
            if units:
                return ("bound", units, ast.unparse(receiver))
            return ("guess", expr.attr) if self.guess_receivers else None
        return self._attribute(base, expr.attr)

    def _attribute(self, target, attr, depth=0):
        kind = target[0]
        if kind == "module":
            return self._member(target[1], attr, depth)
        if kind == "class":
            cls = target[1]
            if attr in cls.nested:
                return ("class", cls.nested[attr])
            units = self._mro_lookup(cls, attr)
            return ("units", units) if units else None
        if kind == "external":
            return ("external", "%s.%s" % (target[1], attr))
        return None

    def _member(self, module, name, depth=0):
        if name in module.functions:
            return ("units", module.functions[name])
        if name in module.classes:
            return ("class", module.classes[name])
        if name in module.imports:
            return self._lookup_dotted(module.imports[name], depth + 1)
        submodule = "%s.%s" % (module.name, name)
        if submodule in self.modules:
            return ("module", self.modules[submodule])
        for star in module.star_imports:
            other = self.modules.get(star)
            if other is not None and other is not module and depth < MAX_IMPORT_DEPTH:
                found = self._member(other, name, depth + 1)
                if found is not None:
                    return found
        return None

    def _lookup_name(self, module, name):
        found = self._member(module, name)
        if found is not None:
            return found
        if name in BUILTIN_NAMES:
            return ("external", "builtins.%s" % name)
        return None

    def _lookup_dotted(self, dotted, depth=0):
        if depth > MAX_IMPORT_DEPTH or not dotted:
            return None
        parts = dotted.split(".")
        for i in range(len(parts), 0, -1):
            prefix = ".".join(parts[:i])
            if prefix not in self.modules:
                continue
            target = ("module", self.modules[prefix])
            for attr in parts[i:]:
                target = self._attribute(target, attr, depth)
                if target is None:
                    return None
            return target

        if parts[0] in self.top_level_packages:
            return None
        return ("external", dotted)

    def _mro(self, cls):
        return self._mros.get(cls.qualname, [cls])

    def _mro_lookup(self, cls, name, skip_self=False):
        for candidate in self._mro(cls):
            if skip_self and candidate is cls:
                continue
            if name in candidate.methods:
                return candidate.methods[name]
        return []

    def _preferred(self, units):
        implementations = [unit for unit in units if unit.identity not in self._overload_stubs]
        return implementations or list(units)

    def _resolution_of(self, symbols):
        if not symbols:
            return None
        if len(symbols) == 1:
            return Resolution.resolved(symbols[0])
        return Resolution.ambiguous(symbols)

    def _to_resolution(self, target):
        kind = target[0]
        if kind == "units":
            return self._resolution_of(self._preferred(target[1]))
        if kind == "bound":
            return self._resolution_of([BoundMethod(unit, target[2]) for unit in self._preferred(target[1])])
        if kind == "class":
            return self._resolution_of(self._preferred(target[1].constructors))
        if kind == "external":
            return Resolution.resolved(self._external_unit(target[1]))
        if kind == "guess":
            candidates = self.methods_by_name.get(target[1])
            return Resolution.ambiguous(candidates) if candidates else None
        return None

    def _external_unit(self, dotted):
        assembly = dotted.partition(".")[0]
        owner, _, name = dotted.rpartition(".")
        return CallableUnit(
            identity=UnitId(assembly, dotted),
            name=name,
            declaring_type=owner.rpartition(".")[2],
            declaring_type_display=owner,
            assembly=assembly,
            in_source=False,
        )
