"""Project handler for discovering Python modules in a workspace.

This module finds the Python source files of a workspace and gives each one
its importable module name. Module names follow the package chain: a file's
name is prefixed by every enclosing directory that contains an
``__init__.py``, stopping at the first one that does not. Flat layouts and
``src/`` layouts therefore both produce the names that ``import`` statements
use.

Key functions:
- get_modules: Recursively discover (module_name, file_path) pairs
- module_name_for: Module name of a single file
"""

import os

DEFAULT_EXCLUDES = frozenset(
    [
        ".git",
        ".hg",
        ".svn",
        ".tox",
        ".nox",
        ".venv",
        "venv",
        "__pycache__",
        "node_modules",
        "build",
        "dist",
        ".mypy_cache",
        ".pytest_cache",
    ]
)


def _is_python_file(path):
    return os.path.splitext(path)[1] == ".py"


def _is_package(directory):
    return os.path.isfile(os.path.join(directory, "__init__.py"))


def module_name_for(path):
    """Get the qualified module name of a Python file.

    Args:
        path: Path to a ``.py`` file

    Returns:
        str: e.g. ``'pkg.sub.mod'`` for ``src/pkg/sub/mod.py``, or
            ``'pkg.sub'`` for ``src/pkg/sub/__init__.py``
    """
    path = os.path.abspath(path)
    directory, filename = os.path.split(path)
    parts = []
    if filename != "__init__.py":
        parts.append(os.path.splitext(filename)[0])

    while _is_package(directory):
        directory, package = os.path.split(directory)
        parts.append(package)
        if not package:
            break

    return ".".join(reversed(parts))


def get_modules(path, exclude=DEFAULT_EXCLUDES):
    """Recursively discover all Python modules below path.

    Directories named in ``exclude`` (and hidden directories) are pruned.
    The result is sorted by file path so that discovery order never depends
    on the file system.

    Args:
        path: Root directory, or a single ``.py`` file
        exclude: Directory names to skip

    Returns:
        list: (qualified_module_name, file_path) tuples
    """
    if os.path.isfile(path):
        if _is_python_file(path):
            return [(module_name_for(path), os.path.abspath(path))]
        return []

    modules = []
    for root, directories, filenames in os.walk(path):
        directories[:] = sorted(
            d for d in directories if d not in exclude and not d.startswith(".")
        )
        for filename in filenames:
            if _is_python_file(filename):
                file_path = os.path.abspath(os.path.join(root, filename))
                modules.append((module_name_for(file_path), file_path))

    return sorted(modules, key=lambda item: item[1])
