"""Settings loading and validation.

Configuration is optional: every section has a default, and
`default_settings()` returns those defaults without reading any file.

Design principles:
- Fail-fast: present but invalid fields raise a readable error that includes field path
- No side effects: this module only parses/validates configuration; registering
  pipelines or configuring loggers is left to the caller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

DEFAULT_TAG_KEY = "conform"
DEFAULT_SEPARATOR = ","


class SettingsError(ValueError):
    """Raised when settings are missing or invalid."""


@dataclass(frozen=True)
class TagSettings:
    tag_key: str = DEFAULT_TAG_KEY
    separator: str = DEFAULT_SEPARATOR
    warn_unknown: bool = True


@dataclass(frozen=True)
class ObservabilitySettings:
    log_level: str = "INFO"
    trace_enabled: bool = False
    trace_file: str = "./logs/conform_traces.jsonl"


@dataclass(frozen=True)
class Settings:
    conform: TagSettings = field(default_factory=TagSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)
    pipelines: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _optional_section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SettingsError(f"Invalid section type: {key}")
    return value


def _as_str(value: Any, path: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"Invalid value for {path}: expected non-empty string")
    return value


def _as_bool(value: Any, path: str) -> bool:
    if not isinstance(value, bool):
        raise SettingsError(f"Invalid value for {path}: expected bool")
    return value


def _as_log_level(value: Any, path: str) -> str:
    level = _as_str(value, path).strip().upper()
    # getLevelName maps known names to their numeric level, unknown ones to "Level X"
    if not isinstance(logging.getLevelName(level), int):
        raise SettingsError(f"Invalid value for {path}: unknown log level '{value}'")
    return level


def _as_str_list(value: Any, path: str) -> list[str]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise SettingsError(f"Invalid value for {path}: expected list[str]")
    out: list[str] = []
    for i, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise SettingsError(f"Invalid value for {path}[{i}]: expected non-empty str")
        out.append(item.strip())
    return out


def _parse_pipelines(raw: Mapping[str, Any]) -> dict[str, tuple[str, ...]]:
    pipelines: dict[str, tuple[str, ...]] = {}
    for name, steps in raw.items():
        path = f"pipelines.{name}"
        if not isinstance(name, str) or not name.strip():
            raise SettingsError(f"Invalid pipeline name: {name!r}")
        # a bare string is accepted in annotation form: "trim, lower"
        if isinstance(steps, str):
            steps = [s for s in steps.split(DEFAULT_SEPARATOR) if s.strip()]
        identifiers = _as_str_list(steps, path)
        if not identifiers:
            raise SettingsError(f"Invalid value for {path}: pipeline cannot be empty")
        pipelines[name] = tuple(identifiers)
    return pipelines


def _find_pipeline_loop(pipelines: Mapping[str, Sequence[str]]) -> list[str] | None:
    # A step naming its own pipeline composes with the earlier registration, so it is not an edge.
    edges = {
        name: [step for step in steps if step in pipelines and step != name]
        for name, steps in pipelines.items()
    }
    done: set[str] = set()

    def walk(name: str, trail: list[str]) -> list[str] | None:
        if name in trail:
            return trail[trail.index(name):] + [name]
        if name in done:
            return None
        for step in edges[name]:
            loop = walk(step, trail + [name])
            if loop:
                return loop
        done.add(name)
        return None

    for name in pipelines:
        loop = walk(name, [])
        if loop:
            return loop
    return None


def validate_settings(settings: Settings) -> None:
    """Validate cross-field invariants."""

    loop = _find_pipeline_loop(settings.pipelines)
    if loop:
        raise SettingsError(
            f"Invalid value for pipelines.{loop[0]}: pipelines form a loop ({' -> '.join(loop)})"
        )


def default_settings() -> Settings:
    """Return the built-in defaults."""

    return Settings()


def settings_from_mapping(raw_obj: Mapping[str, Any]) -> Settings:
    """Build settings from an already parsed mapping."""

    conform_raw = _optional_section(raw_obj, "conform")
    observability_raw = _optional_section(raw_obj, "observability")
    pipelines_raw = _optional_section(raw_obj, "pipelines")

    tags = TagSettings(
        tag_key=_as_str(conform_raw.get("tag_key", DEFAULT_TAG_KEY), "conform.tag_key"),
        separator=_as_str(
            conform_raw.get("separator", DEFAULT_SEPARATOR),
            "conform.separator",
        ),
        warn_unknown=_as_bool(conform_raw.get("warn_unknown", True), "conform.warn_unknown"),
    )

    observability = ObservabilitySettings(
        log_level=_as_log_level(
            observability_raw.get("log_level", "INFO"),
            "observability.log_level",
        ),
        trace_enabled=_as_bool(
            observability_raw.get("trace_enabled", False),
            "observability.trace_enabled",
        ),
        trace_file=_as_str(
            observability_raw.get("trace_file", "./logs/conform_traces.jsonl"),
            "observability.trace_file",
        ),
    )

    settings = Settings(
        conform=tags,
        observability=observability,
        pipelines=_parse_pipelines(pipelines_raw),
    )

    validate_settings(settings)
    return settings


def load_settings(path: str | Path) -> Settings:
    """Load settings from a YAML file."""

    settings_path = Path(path)
    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    try:
        raw_obj = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in settings file: {settings_path}") from e

    # an empty file means "all defaults"
    if raw_obj is None:
        return default_settings()
    if not isinstance(raw_obj, Mapping):
        raise SettingsError(f"Invalid settings root: expected mapping in {settings_path}")

    return settings_from_mapping(raw_obj)
