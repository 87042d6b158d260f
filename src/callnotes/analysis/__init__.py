"""
Analysis layer: call graph construction, documentation extraction and note
rendering.
"""
