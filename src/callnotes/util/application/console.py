"""
Console output and timing utilities for generation phases.

This module provides a hierarchical console: progress lines are always
written, while phase timings (``begin``/``end`` per nested scope) and memory
usage are only written in verbose mode.
"""

import sys
import time

import psutil

from callnotes.util.io import formatting


class Scope(object):
    """Represents a hierarchical scope for timing.

    Attributes:
        parent: Parent scope, or None for root scope.
        name: Name of this scope.
    """

    def __init__(self, parent, name):
        self.parent = parent
        self.name = name
        self._start = self._end = 0.0

    def begin(self):
        self._start = time.perf_counter()

    def end(self):
        self._end = time.perf_counter()

    @property
    def elapsed(self):
        """Seconds between begin() and end()."""
        return self._end - self._start

    def path(self):
        """Tuple of scope names from root (excluded) to this scope."""
        if self.parent is None:
            return ()
        else:
            return self.parent.path() + (self.name,)

    def child(self, name):
        return Scope(self, name)


class ConsoleScopeManager(object):
    """Context manager for console scopes.

    Example:
        with console.scope("render"):
            ...
    """

    __slots__ = "console", "name"

    def __init__(self, console, name):
        self.console = console
        self.name = name

    def __enter__(self):
        self.console.begin(self.name)

    def __exit__(self, type, value, tb):
        self.console.end()


class Console(object):
    """Hierarchical console output with timing and scoping.

    Attributes:
        out: Output stream (default: sys.stdout).
        root: Root scope of the hierarchy.
        current: Currently active scope.
        verbose: If True, phase timings and memory usage are written.
    """

    def __init__(self, out=None, verbose=False):
        if out is None:
            out = sys.stdout
        self.out = out

        self.root = Scope(None, "root")
        self.current = self.root

        self.verbose = verbose

    def path(self):
        """Formatted path of the current scope, e.g. "[ build | extract ]"."""
        return "[ %s ]" % " | ".join(self.current.path())

    def begin(self, name):
        scope = self.current.child(name)
        scope.begin()
        self.current = scope

        self.verbose_output("begin %s" % self.path(), 0)

    def end(self):
        self.current.end()
        self.verbose_output(
            "end   %s %s" % (self.path(), formatting.elapsedTime(self.current.elapsed)),
            0,
        )
        self.current = self.current.parent

    def scope(self, name):
        return ConsoleScopeManager(self, name)

    def output(self, s, tabs=0):
        """Write one line, indented by ``tabs`` tab characters."""
        if tabs:
            self.out.write("\t" * tabs)
        self.out.write(s)
        self.out.write("\n")

    def verbose_output(self, s, tabs=1):
        if self.verbose:
            self.output(s, tabs)

    def memory(self):
        """Report the resident memory of this process (verbose only)."""
        rss = psutil.Process().memory_info().rss
        self.verbose_output("memory %s" % formatting.memorySize(rss), 0)
