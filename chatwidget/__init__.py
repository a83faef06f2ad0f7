"""
Chat widget demo backend: proxy routes, diagnostics and developer console.
"""

__version__ = "1.0.0"
