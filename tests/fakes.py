"""
In-memory semantic resolver for builder, pipeline and renderer tests.

Call sites carry the Resolution to return as their private node, so a test
states directly what each call resolves to.
"""

from callnotes.application.errors import ResolutionGap
from callnotes.frontend.resolver import CallSite, Document, Project, SemanticResolver
from callnotes.machinery.symbols import CallableUnit, MethodKind, SourceSpan, UnitId

ASSEMBLY = "App"
ROOT = "/work/App"


def make_unit(name, declaring_type="A", path=ROOT + "/A.py", line=1, assembly=ASSEMBLY,
              kind=MethodKind.ORDINARY, in_source=True, is_implicit=False,
              documentation=None, display=None, signature=None):
    return CallableUnit(
        identity=UnitId(assembly, "%s.%s" % (declaring_type, name), path, line, 0),
        name=name,
        declaring_type=declaring_type,
        declaring_type_display=display if display is not None else declaring_type,
        path=path,
        span=SourceSpan(line, 0, line + 1, 0),
        assembly=assembly,
        in_source=in_source,
        is_implicit=is_implicit,
        kind=kind,
        signature=signature if signature is not None else "def %s()" % name,
        documentation=documentation,
    )


class FakeResolver(SemanticResolver):
    """Resolver whose projects, documents and calls are set up by the test."""

    def __init__(self, projects=None):
        if projects is None:
            projects = [Project("App", ASSEMBLY, root=ROOT, language="python")]
        self.projects = projects
        self.docs = {project.name: [] for project in projects}
        self.units = {}
        self.calls = {}
        self.broken_projects = set()
        self.broken_documents = set()
        self.broken_units = set()
        self.loaded = False

    def add_document(self, path, units, project=None):
        project = project or self.projects[0]
        document = Document(path, project)
        self.docs[project.name].append(document)
        self.units[path] = list(units)
        return document

    def add_calls(self, caller, *resolutions):
        self.calls.setdefault(caller, []).extend(resolutions)

    def load(self):
        self.loaded = True

    def list_projects(self):
        return list(self.projects)

    def documents(self, project):
        if project.name in self.broken_projects:
            raise ResolutionGap("project %s cannot be listed" % project.name)
        return list(self.docs[project.name])

    def declared_units(self, document):
        if document.path in self.broken_documents:
            raise ResolutionGap("no semantic model for %s" % document.path)
        return list(self.units[document.path])

    def call_sites(self, document, unit):
        if unit in self.broken_units:
            raise ResolutionGap("no body for %s" % unit.name)
        return [
            CallSite(document, unit, line, 0, node=resolution)
            for line, resolution in enumerate(self.calls.get(unit, []), 1)
        ]

    def resolve_call(self, call_site):
        return call_site.node
