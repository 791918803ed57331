"""
Engine Layer - record traversal.

- Field tables (shape.py)
- In-place conform of records (traversal.py)
"""

from conform.engine.shape import conform_field, describe, parse_annotation
from conform.engine.traversal import Conformer, apply, get_conformer

__all__ = [
    "Conformer",
    "apply",
    "conform_field",
    "describe",
    "get_conformer",
    "parse_annotation",
]
