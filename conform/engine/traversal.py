"""Recursive, in-place conform of annotated text fields.

Processing Pipeline:
    1. Read-only walk over the record graph using cached field tables:
       annotated text fields are queued, nested records and sequences of
       records are recursed into (None skipped), everything else is left alone.
       Usage errors (frozen records) surface here, before any write.
    2. Each queued field is dispatched and written back in walk order.
"""

from __future__ import annotations

import collections.abc
import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from conform.core.settings import DEFAULT_SEPARATOR, DEFAULT_TAG_KEY, Settings
from conform.core.trace.trace_context import TraceContext
from conform.core.types import FieldKind, FieldSpec
from conform.engine.shape import describe, is_record
from conform.errors import ConformUsageError
from conform.libs.transform.transform_registry import TransformRegistry, get_registry
from conform.observability.logger import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class _WalkState:
    """Counters and visited set for a single apply() call."""

    visited: set[int] = field(default_factory=set)
    records_visited: int = 0
    fields_dispatched: int = 0
    fields_changed: int = 0
    none_skipped: int = 0
    unknown_identifiers: list[str] = field(default_factory=list)
    pending: list[tuple[Any, FieldSpec, str, str]] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {
            "records_visited": self.records_visited,
            "fields_dispatched": self.fields_dispatched,
            "fields_changed": self.fields_changed,
            "none_skipped": self.none_skipped,
            "unknown_identifiers": sorted(set(self.unknown_identifiers)),
        }


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and not isinstance(value, enum.Enum)


def _runtime_kind(value: Any) -> FieldKind:
    if _is_text(value):
        return FieldKind.TEXT
    if is_record(value):
        return FieldKind.RECORD
    if isinstance(value, (list, tuple)):
        return FieldKind.RECORD_SEQUENCE
    return FieldKind.OTHER


class Conformer:
    """Applies annotated transforms to dataclass records in place.

    The conformer holds no per-call state, so one instance can serve many
    threads as long as they work on distinct records.
    """

    def __init__(
        self,
        registry: Optional[TransformRegistry] = None,
        tag_key: str = DEFAULT_TAG_KEY,
        separator: str = DEFAULT_SEPARATOR,
        warn_unknown: bool = True,
        trace_file: Optional[str] = None,
    ):
        """Initialize Conformer.

        Args:
            registry: Transform registry (the process-wide one if None)
            tag_key: Field metadata key that holds the annotation
            separator: Identifier separator inside an annotation
            warn_unknown: Log unknown identifiers at WARNING instead of DEBUG
            trace_file: When set, every call writes a trace line to this file
        """
        self.registry = registry if registry is not None else get_registry()
        self.tag_key = tag_key
        self.separator = separator
        self.warn_unknown = warn_unknown
        self.trace_file = trace_file

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        registry: Optional[TransformRegistry] = None,
    ) -> "Conformer":
        """Build a conformer and register the configured pipelines on its registry."""
        configure_logging(settings.observability.log_level)

        registry = registry if registry is not None else get_registry()
        for name, steps in settings.pipelines.items():
            registry.register_pipeline(name, steps)
            logger.info("Registered pipeline '%s': %s", name, ", ".join(steps))

        return cls(
            registry=registry,
            tag_key=settings.conform.tag_key,
            separator=settings.conform.separator,
            warn_unknown=settings.conform.warn_unknown,
            trace_file=(
                settings.observability.trace_file
                if settings.observability.trace_enabled
                else None
            ),
        )

    def apply(self, record: Any, trace: Optional[TraceContext] = None) -> None:
        """Conform `record` and everything reachable from it, in place.

        Args:
            record: A mutable dataclass instance
            trace: Optional trace context; receives a "conform" stage

        Raises:
            ConformUsageError: If `record` is not a dataclass instance, or a
                frozen record holds an annotated text field
        """
        if not is_record(record):
            if isinstance(record, type):
                raise ConformUsageError(
                    f"apply() needs a record instance, got the class {record.__qualname__}"
                )
            raise ConformUsageError(
                f"apply() needs a dataclass instance, got {type(record).__name__}"
            )

        root_name = type(record).__qualname__
        if describe(type(record), self.tag_key, self.separator).frozen:
            raise ConformUsageError(f"{root_name} is frozen and cannot be conformed in place")

        owns_trace = trace is None and self.trace_file is not None
        if owns_trace:
            trace = TraceContext(log_file=self.trace_file)

        # Collect every write first: a usage error found anywhere leaves the record untouched.
        state = _WalkState()
        self._visit(record, root_name, state)
        for owner, spec, value, path in state.pending:
            self._conform_text(owner, spec, value, path, state)

        logger.debug("Conformed %s: %s", root_name, state.summary())

        if trace is not None:
            trace.record_type = f"{type(record).__module__}.{root_name}"
            trace.record_stage("conform", state.summary())
            if owns_trace:
                trace.finish()

    def _visit(self, record: Any, path: str, state: _WalkState) -> None:
        # A record reached twice (shared reference or cycle) is conformed once.
        if id(record) in state.visited:
            return
        state.visited.add(id(record))
        state.records_visited += 1

        shape = describe(type(record), self.tag_key, self.separator)

        for spec in shape.fields:
            value = getattr(record, spec.name, None)
            field_path = f"{path}.{spec.name}"

            kind = spec.kind
            if kind is FieldKind.DYNAMIC:
                kind = _runtime_kind(value)

            if value is None:
                if kind in (FieldKind.RECORD, FieldKind.RECORD_SEQUENCE):
                    state.none_skipped += 1
                continue

            if kind is FieldKind.TEXT:
                if spec.annotated and _is_text(value):
                    if shape.frozen:
                        raise ConformUsageError(
                            f"{type(record).__qualname__} is frozen and cannot be conformed in place",
                            path=field_path,
                        )
                    state.pending.append((record, spec, value, field_path))
            elif kind is FieldKind.RECORD:
                if is_record(value):
                    self._visit(value, field_path, state)
            elif kind is FieldKind.RECORD_SEQUENCE:
                self._visit_sequence(value, field_path, state)
            elif spec.annotated:
                logger.debug("Annotation on %s ignored (%s field)", field_path, kind.value)

    def _visit_sequence(self, items: Any, path: str, state: _WalkState) -> None:
        if not isinstance(items, collections.abc.Sequence) or isinstance(items, (str, bytes)):
            return
        for index, item in enumerate(items):
            if item is None:
                state.none_skipped += 1
                continue
            if is_record(item):
                self._visit(item, f"{path}[{index}]", state)

    def _conform_text(
        self,
        record: Any,
        spec: FieldSpec,
        value: str,
        path: str,
        state: _WalkState,
    ) -> None:
        def on_unknown(identifier: str) -> None:
            state.unknown_identifiers.append(identifier)
            log = logger.warning if self.warn_unknown else logger.debug
            log("Unknown transform '%s' on %s skipped", identifier, path)

        result = self.registry.dispatch(value, spec.identifiers, on_unknown=on_unknown)
        setattr(record, spec.name, result)

        state.fields_dispatched += 1
        if result != value:
            state.fields_changed += 1


_default_conformer: Optional[Conformer] = None


def get_conformer() -> Conformer:
    """Return the process-wide conformer bound to the default registry."""
    global _default_conformer
    if _default_conformer is None:
        _default_conformer = Conformer()
    return _default_conformer


def apply(record: Any, trace: Optional[TraceContext] = None) -> None:
    """Conform `record` in place using the default conformer."""
    get_conformer().apply(record, trace=trace)
