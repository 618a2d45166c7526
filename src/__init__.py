# src/__init__.py - v1
"""docparse: document parse-task tracking across callback and poll channels."""

from docparse.version import __version__

__all__ = ["__version__"]
