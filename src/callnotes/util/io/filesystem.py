"""
File system utilities for callnotes.

Provides helper functions for directory creation, path joining, file name
sanitizing, text I/O and hash-based change detection. Notes are always
written as UTF-8 with ``\\n`` line endings so reruns are byte-identical
on every platform.
"""
import hashlib
import os.path
import re

ENCODING = "utf-8"

# Characters that are invalid in file names on at least one supported platform.
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def ensureDirectoryExists(dirname):
    """
    Ensure that a directory exists, creating it if necessary.

    Creates the directory and all necessary parent directories if they
    don't already exist. Safe to call multiple times.

    Args:
        dirname: Path to the directory to ensure exists
    """
    os.makedirs(dirname, exist_ok=True)


def join(directory, name, format=None):
    """
    Join directory path with filename, optionally adding a format extension.

    Example:
        join("/path/to", "output", "md") -> "/path/to/output.md"
    """
    if format is not None:
        name = "%s.%s" % (name, format)
    return os.path.join(directory, name)


def relative(path, root):
    """
    Compute the relative path from root to path, using forward slashes.

    Falls back to the normalized absolute path when path is not below root
    (for example on another drive).
    """
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        return os.path.abspath(path).replace(os.sep, "/")
    if rel.startswith(os.pardir):
        return os.path.abspath(path).replace(os.sep, "/")
    return rel.replace(os.sep, "/")


def sanitizeFilename(name, replacement="_"):
    """
    Replace characters that are invalid in file names.

    Args:
        name: Candidate file name (no directory part)
        replacement: Replacement for each invalid character

    Returns:
        The sanitized file name
    """
    return _INVALID_FILENAME_CHARS.sub(replacement, name)


def readText(directory, name, format=None):
    """
    Read the entire contents of a text file.

    Returns:
        File contents as string
    """
    with open(join(directory, name, format), "r", encoding=ENCODING, newline="") as f:
        return f.read()


def writeText(directory, name, format, data):
    """
    Write text to a file, creating the directory if necessary.

    The file is overwritten. Newlines are written exactly as given.
    """
    ensureDirectoryExists(directory)
    with open(join(directory, name, format), "w", encoding=ENCODING, newline="") as f:
        f.write(data)


def dataHash(s):
    """
    Compute SHA-1 digest of data.

    Args:
        s: Data to hash (str is encoded as UTF-8 first)

    Returns:
        SHA-1 digest (bytes, not hex string)
    """
    if isinstance(s, str):
        s = s.encode(ENCODING)
    h = hashlib.sha1()
    h.update(s)
    return h.digest()


def fileHash(directory, name, format=None):
    """Compute SHA-1 digest of a file's raw bytes."""
    with open(join(directory, name, format), "rb") as f:
        return dataHash(f.read())


def writeFileIfChanged(directory, name, format, data):
    """
    Write text to a file only if it differs from the existing file.

    Compares the hash of the existing file (if any) with the hash of the
    new data and only writes when they differ, leaving unchanged notes
    untouched.

    Returns:
        True if the file was written (either didn't exist or changed),
        False if the file already contained the same data
    """
    if os.path.exists(join(directory, name, format)):
        if fileHash(directory, name, format) == dataHash(data):
            return False

    writeText(directory, name, format, data)
    return True
