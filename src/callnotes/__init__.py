"""callnotes - call-graph annotated Markdown notes for a code base.

Builds a call graph over a workspace with a semantic resolver and renders
Obsidian-style notes (one per source file, or one per method) with
cross-linked "Calls" and "Called-by" lists.
"""

__version__ = "0.1.0"

from .application.config import GeneratorConfig, Mode
from .application.pipeline import Pipeline

__all__ = [
    "GeneratorConfig",
    "Mode",
    "Pipeline",
    "__version__",
]
