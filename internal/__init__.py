"""
Internal package.
Contains API routes, schemas and other internal modules.
"""

from . import api

__all__ = [
    "api",
]
