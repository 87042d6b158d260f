"""
Semantic resolvers.

The resolver interface is language neutral; PythonResolver implements it for
Python source trees.
"""
