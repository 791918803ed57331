"""
Trace Module.

- Trace context (per conform call)
"""

from conform.core.trace.trace_context import TraceContext

__all__ = ['TraceContext']
