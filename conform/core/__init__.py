"""
Core Layer.

This package contains:
- Configuration management (settings.py)
- Core data types (types.py) - field tables shared by engine and registry
- Trace collection
"""

from conform.core.types import FieldKind, FieldSpec, RecordShape, TransformFunc

__all__ = ["FieldKind", "FieldSpec", "RecordShape", "TransformFunc"]
