"""
Error handling for callnotes generation.

This module defines the exception classes raised while loading a workspace,
extracting the call graph and normalizing documentation. Only
WorkspaceLoadError and UsageError ever reach the user; the other two are
recovered locally by the component that provokes them.
"""


class CallnotesError(Exception):
    """Base class for all callnotes errors."""
    pass


class UsageError(CallnotesError):
    """
    Exception raised for bad or missing command-line arguments.

    Reported to the user before any work is done. No notes are written.
    """
    pass


class WorkspaceLoadError(CallnotesError):
    """
    Exception raised when the project set cannot be loaded.

    This is fatal: the run aborts before graph construction and produces
    no output at all.

    Attributes:
        path: The workspace path that was being loaded.
        reason: Human readable cause.
    """

    def __init__(self, path, reason):
        super().__init__("failed to load workspace %s: %s" % (path, reason))
        self.path = path
        self.reason = reason


class ResolutionGap(CallnotesError):
    """
    Exception raised by a resolver for something it cannot analyze.

    A project, document or declaration that raises this is skipped by the
    call graph builder; it never surfaces as a failure of the run.
    """
    pass


class DocumentationParseError(CallnotesError):
    """
    Exception raised for malformed structured documentation.

    Always caught by the documentation extractor, which falls back to the
    raw text.
    """
    pass
