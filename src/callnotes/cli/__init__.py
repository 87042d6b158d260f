"""
callnotes CLI.

The single command generates notes for a workspace; see main.py.
"""

from .main import main

__all__ = ["main"]
