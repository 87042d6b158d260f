"""
Utility modules for callnotes.

- io/: file system helpers and human-readable formatting
- application/: console output with phase timings
"""
