"""Trace context for recording what a conform call did."""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass
class TraceContext:
    """Per-call trace of conform stages.

    Attributes:
        trace_id: Unique identifier for this trace
        started_at: Timestamp when trace was created
        stages: Dictionary storing data from each stage
        record_type: Qualified name of the top-level record, set by the engine
        log_file: Optional JSON-lines file appended to on finish()
    """

    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=datetime.now)
    stages: Dict[str, Any] = field(default_factory=dict)
    record_type: str | None = None
    log_file: str | None = None

    def record_stage(self, stage_name: str, data: Dict[str, Any]) -> None:
        """Record data for a stage, replacing any earlier entry of the same name.

        Args:
            stage_name: Name of the stage (e.g., "conform")
            data: Stage-specific data to record
        """
        self.stages[stage_name] = {"timestamp": datetime.now().isoformat(), "data": data}

    def get_stage_data(self, stage_name: str) -> Optional[Dict[str, Any]]:
        """Return the data recorded for `stage_name`, or None."""
        entry = self.stages.get(stage_name)
        if entry is None:
            return None
        return entry["data"]

    def to_dict(self) -> Dict[str, Any]:
        ended_at = datetime.now()
        return {
            "trace_id": self.trace_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": ended_at.isoformat(),
            "total_latency": (ended_at - self.started_at).total_seconds(),
            "record_type": self.record_type,
            "stages": self.stages,
        }

    def finish(self) -> Dict[str, Any]:
        payload = self.to_dict()
        if self.log_file:
            path = Path(self.log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        return payload
